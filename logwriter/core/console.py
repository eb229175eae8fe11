"""Echo colorido das entradas de log no stdout.

Puramente cosmético: falhas de impressão nunca chegam ao chamador.
"""

import logging

from rich.console import Console
from rich.text import Text

LEVEL_COLORS = {"INFO": "cyan", "SUCCESS": "green", "WARNING": "yellow", "ERROR": "red"}

logger = logging.getLogger(__name__)


class ConsoleEcho:
    """Imprime ``[timestamp] [TAG] mensagem`` com a cor do nível."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(highlight=False, soft_wrap=True)

    def echo(self, ts: str, level: str, tag: str, message: str) -> None:
        try:
            text = Text(f"[{ts}] {tag} {message}", style=LEVEL_COLORS.get(level, "white"))
            self.console.print(text)
        except Exception as exc:
            logger.debug("ConsoleEcho.echo falhou: %s", exc)
