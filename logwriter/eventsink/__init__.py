"""Pacote eventsink: espelhamento dos logs no event sink do sistema operacional.

Fornece Windows Event Log (pywin32) e syslog, além da mensagem expandida.
"""

from .formatters import build_event_message, event_id_for
from .sinks import EventSink, SyslogEventSink, WindowsEventSink, select_event_sink

__all__ = [
    "build_event_message",
    "event_id_for",
    "EventSink",
    "SyslogEventSink",
    "WindowsEventSink",
    "select_event_sink",
]
