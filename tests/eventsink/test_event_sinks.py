import socket
import sys
from types import SimpleNamespace

import pytest

from logwriter.eventsink import formatters as fmt
from logwriter.eventsink import sinks


def test_build_event_message_with_structured_fields(monkeypatch):
    """Mensagem expandida traz identidade, nível, corpo e campos estruturados."""
    monkeypatch.setattr(fmt, "current_computer", lambda: "HOST01")
    monkeypatch.setattr(fmt, "current_user", lambda: "operator")
    monkeypatch.setattr(fmt, "current_process", lambda: "python (PID 1)")
    body = fmt.build_event_message(
        "Demo", "2.0", "ERROR", "disk full", log_path="/logs/Demo.md", context="C:", solution="free space"
    )
    assert body == (
        "Script: Demo\n"
        "Version: 2.0\n"
        "Computer: HOST01\n"
        "User: operator\n"
        "Process: python (PID 1)\n"
        "Log File: /logs/Demo.md\n"
        "\n"
        "Level: ERROR\n"
        "\n"
        "disk full\n"
        "\n"
        "Context: C:\n"
        "Solution: free space"
    )


def test_build_event_message_without_extras():
    """Campos vazios são omitidos."""
    body = fmt.build_event_message("Demo", "2.0", "INFO", "hello", component="")
    assert body.endswith("Level: INFO\n\nhello")
    assert "Log File:" not in body
    assert "Component:" not in body


def test_event_id_for():
    """Nível desconhecido cai na faixa INFO."""
    assert fmt.event_id_for("WARNING") == 2000
    assert fmt.event_id_for("ERROR") == 3000
    assert fmt.event_id_for("TRACE") == 1000


def test_parse_syslog_address():
    """Caminhos ficam como socket unix; host:port vira tupla UDP."""
    assert sinks.parse_syslog_address("/dev/log") == "/dev/log"
    assert sinks.parse_syslog_address("loghost:514") == ("loghost", 514)


def _udp_server():
    server = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    server.bind(("127.0.0.1", 0))
    server.settimeout(5)
    return server


def test_syslog_sink_sends_priority_and_event_id():
    """SyslogEventSink envia prioridade do nível, origem e event ID."""
    server = _udp_server()
    try:
        port = server.getsockname()[1]
        sink = sinks.SyslogEventSink(f"127.0.0.1:{port}")
        sink.register("Demo")

        sink.write("Demo", "WARNING", 2000, "line1\nline2")
        data, _ = server.recvfrom(4096)
        assert data.startswith(b"<12>")
        assert b"Demo: [event_id=2000] line1 | line2" in data

        sink.write("Demo", "SUCCESS", 1001, "ok")
        data, _ = server.recvfrom(4096)
        assert data.startswith(b"<13>")
    finally:
        server.close()


def test_syslog_sink_write_before_register():
    """write sem register levanta exceção para o LogWriter tratar."""
    with pytest.raises(sinks.EventSinkUnavailable):
        sinks.SyslogEventSink("/dev/log").write("Demo", "INFO", 1000, "x")


def test_syslog_sink_propagates_send_failure(tmp_path):
    """Erros de envio chegam ao chamador em vez de irem para stderr."""
    sink = sinks.SyslogEventSink(str(tmp_path / "no-such-socket"))
    # conforme a versão do Python a falha aparece no registro ou no envio
    with pytest.raises(OSError):
        sink.register("Demo")
        sink.write("Demo", "ERROR", 3000, "boom")


class _FakeRegError(Exception):
    pass


def _fake_win32(monkeypatch, registered=()):
    calls = []

    def _open_key(hive, key_path, reserved, access):
        if key_path.rsplit("\\", 1)[-1] not in registered:
            raise _FakeRegError(2, "RegOpenKeyEx", "not found")
        calls.append(("open", key_path))
        return key_path

    fake_api = SimpleNamespace(
        RegOpenKeyEx=_open_key,
        RegCloseKey=lambda key: calls.append(("close", key)),
        error=_FakeRegError,
    )
    fake_con = SimpleNamespace(HKEY_LOCAL_MACHINE=-2147483646, KEY_READ=131097)
    fake_util = SimpleNamespace(
        AddSourceToRegistry=lambda source, eventLogType: calls.append(("register", source, eventLogType)),
        ReportEvent=lambda source, event_id, eventCategory, eventType, strings: calls.append(
            ("report", source, event_id, eventType, strings)
        ),
    )
    fake_log = SimpleNamespace(EVENTLOG_ERROR_TYPE=1, EVENTLOG_WARNING_TYPE=2, EVENTLOG_INFORMATION_TYPE=4)
    monkeypatch.setattr(sinks, "win32evtlogutil", fake_util)
    monkeypatch.setattr(sinks, "win32evtlog", fake_log)
    monkeypatch.setattr(sinks, "win32api", fake_api)
    monkeypatch.setattr(sinks, "win32con", fake_con)
    return calls


def test_windows_sink_uses_event_log_types(monkeypatch):
    """WindowsEventSink registra a origem e mapeia níveis para tipos de evento."""
    calls = _fake_win32(monkeypatch)
    sink = sinks.WindowsEventSink("Application")
    sink.register("Demo")
    sink.write("Demo", "ERROR", 3000, "boom")
    sink.write("Demo", "WARNING", 2000, "careful")
    sink.write("Demo", "SUCCESS", 1001, "done")
    assert calls == [
        ("register", "Demo", "Application"),
        ("report", "Demo", 3000, 1, ["boom"]),
        ("report", "Demo", 2000, 2, ["careful"]),
        ("report", "Demo", 1001, 4, ["done"]),
    ]


def test_windows_sink_skips_registry_write_when_source_exists(monkeypatch):
    """Origem já registrada: apenas leitura do registro, sem AddSourceToRegistry."""
    calls = _fake_win32(monkeypatch, registered=("Demo",))
    sink = sinks.WindowsEventSink("Application")
    assert sink.is_registered("Demo") is True
    calls.clear()

    sink.register("Demo")
    key = "SYSTEM\\CurrentControlSet\\Services\\EventLog\\Application\\Demo"
    assert calls == [("open", key), ("close", key)]
    assert sink.is_registered("Other") is False


def test_syslog_sink_register_closes_previous_handler():
    """Registrar de novo fecha o socket do handler anterior."""
    sink = sinks.SyslogEventSink("127.0.0.1:514")
    sink.register("Demo")
    first_socket = sink._handler.socket
    first_handler = sink._handler

    sink.register("Demo")
    try:
        assert sink._handler is not first_handler
        assert first_socket.fileno() == -1
    finally:
        sink._handler.close()


def test_windows_sink_unavailable_without_pywin32(monkeypatch):
    """Sem pywin32 o sink Windows não pode ser criado."""
    monkeypatch.setattr(sinks, "win32evtlogutil", None)
    with pytest.raises(sinks.EventSinkUnavailable):
        sinks.WindowsEventSink()


def test_select_event_sink(monkeypatch):
    """Seleção por plataforma e settings."""
    assert sinks.select_event_sink({"event_sink_enable": False}) is None

    monkeypatch.setattr(sys, "platform", "linux")
    assert sinks.select_event_sink({"event_sink_enable": True, "syslog_address": None}) is None
    selected = sinks.select_event_sink({"event_sink_enable": True, "syslog_address": "/dev/log"})
    assert isinstance(selected, sinks.SyslogEventSink)

    monkeypatch.setattr(sys, "platform", "win32")
    monkeypatch.setattr(sinks, "win32evtlogutil", None)
    assert sinks.select_event_sink({"event_sink_enable": True}) is None

    _fake_win32(monkeypatch)
    selected = sinks.select_event_sink({"event_sink_enable": True, "event_log_name": "Application"})
    assert isinstance(selected, sinks.WindowsEventSink)
