"""Log writer markdown dos scripts de administração myTech.Today.

Uso típico::

    from logwriter import open_log

    log = open_log("Demo", "2.0")
    log.write("started", "INFO")
    log.write("done", "SUCCESS")

A fachada ``initialize_logging`` / ``write_log`` / ``get_log_path`` mantém o
contrato de três operações usado pelos scripts antigos.
"""

from .system.log_helpers import LEVELS, LogRow, read_activity_rows
from .system.logs import (
    LogWriter,
    WriteResult,
    get_log_path,
    initialize_logging,
    open_log,
    write_log,
)

__version__ = "2.0.0"

__all__ = [
    "LEVELS",
    "LogRow",
    "LogWriter",
    "WriteResult",
    "get_log_path",
    "initialize_logging",
    "open_log",
    "read_activity_rows",
    "write_log",
]
