"""Event sinks do sistema operacional (Windows Event Log e syslog).

Os sinks expõem apenas duas operações, ``register`` e ``write``, e deixam
qualquer falha propagar: quem decide desabilitar o sink é o ``LogWriter``.
"""

from __future__ import annotations

import logging
import logging.handlers
import sys

try:
    import win32api  # type: ignore
    import win32con  # type: ignore
    import win32evtlog  # type: ignore
    import win32evtlogutil  # type: ignore
except ImportError:  # pywin32 só existe no Windows
    win32api = None
    win32con = None
    win32evtlog = None
    win32evtlogutil = None

EVENTLOG_REGISTRY_KEY = "SYSTEM\\CurrentControlSet\\Services\\EventLog"

logger = logging.getLogger(__name__)


class EventSinkUnavailable(RuntimeError):
    """O event sink não pode ser usado neste host."""


class EventSink:
    """Interface mínima de um event sink."""

    name = "null"

    def register(self, source: str) -> None:
        """Registra a origem dos eventos; levanta exceção em falha."""
        raise NotImplementedError

    def write(self, source: str, level: str, event_id: int, message: str) -> None:
        """Escreve um evento; levanta exceção em falha."""
        raise NotImplementedError


class WindowsEventSink(EventSink):
    """Escreve no Windows Event Log via pywin32.

    Registrar a origem exige privilégio de administrador na primeira vez.
    """

    name = "windows"

    def __init__(self, log_name: str = "Application") -> None:
        if win32evtlogutil is None:
            raise EventSinkUnavailable("pywin32 não está disponível")
        self.log_name = log_name

    def _event_type(self, level: str) -> int:
        if level == "ERROR":
            return win32evtlog.EVENTLOG_ERROR_TYPE
        if level == "WARNING":
            return win32evtlog.EVENTLOG_WARNING_TYPE
        return win32evtlog.EVENTLOG_INFORMATION_TYPE

    def is_registered(self, source: str) -> bool:
        """Verifica, só com leitura do registro, se a origem já existe."""
        key_path = f"{EVENTLOG_REGISTRY_KEY}\\{self.log_name}\\{source}"
        try:
            key = win32api.RegOpenKeyEx(win32con.HKEY_LOCAL_MACHINE, key_path, 0, win32con.KEY_READ)
        except win32api.error:
            return False
        win32api.RegCloseKey(key)
        return True

    def register(self, source: str) -> None:
        # escrever em HKLM exige administrador; origem existente dispensa
        if self.is_registered(source):
            return
        win32evtlogutil.AddSourceToRegistry(source, eventLogType=self.log_name)

    def write(self, source: str, level: str, event_id: int, message: str) -> None:
        win32evtlogutil.ReportEvent(
            source,
            event_id,
            eventCategory=0,
            eventType=self._event_type(level),
            strings=[message],
        )


class _EventSysLogHandler(logging.handlers.SysLogHandler):
    """SysLogHandler que mapeia SUCCESS para ``notice`` e propaga erros de envio."""

    priority_map = {**logging.handlers.SysLogHandler.priority_map, "SUCCESS": "notice"}

    def handleError(self, record):  # noqa: N802
        exc = sys.exc_info()[1]
        if exc is not None:
            raise exc


def parse_syslog_address(address: str):
    """Converte ``host:port`` em tupla UDP; caminhos ficam como socket unix."""
    if address.startswith("/") or ":" not in address:
        return address
    host, _, port = address.rpartition(":")
    return (host, int(port))


class SyslogEventSink(EventSink):
    """Escreve eventos no syslog local (ou remoto via ``host:port``)."""

    name = "syslog"

    def __init__(self, address: str) -> None:
        self.address = address
        self._handler: logging.handlers.SysLogHandler | None = None

    def register(self, source: str) -> None:
        handler = _EventSysLogHandler(address=parse_syslog_address(self.address))
        handler.ident = f"{source}: "
        handler.setFormatter(logging.Formatter("%(message)s"))
        if self._handler is not None:
            self._handler.close()
        self._handler = handler

    def write(self, source: str, level: str, event_id: int, message: str) -> None:
        if self._handler is None:
            raise EventSinkUnavailable("syslog sink não registrado")
        flat = " | ".join(line for line in message.splitlines() if line.strip())
        levelno = logging.INFO if level == "SUCCESS" else getattr(logging, level, logging.INFO)
        record = logging.LogRecord(
            name=source,
            level=levelno,
            pathname="",
            lineno=0,
            msg="[event_id=%d] %s",
            args=(event_id, flat),
            exc_info=None,
        )
        record.levelname = level
        self._handler.emit(record)


def select_event_sink(settings: dict) -> EventSink | None:
    """Escolhe o event sink da plataforma a partir dos settings validados.

    Retorna None quando desabilitado ou indisponível neste host.
    """
    if not settings.get("event_sink_enable", True):
        return None
    if sys.platform == "win32":
        try:
            return WindowsEventSink(settings.get("event_log_name") or "Application")
        except EventSinkUnavailable as exc:
            logger.debug("select_event_sink: %s", exc)
            return None
    address = settings.get("syslog_address")
    if not address:
        logger.debug("select_event_sink: nenhum socket syslog encontrado")
        return None
    return SyslogEventSink(str(address))
