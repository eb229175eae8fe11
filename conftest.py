# conftest.py
# Configuração global para pytest: isola as variáveis MYTECH_LOG_* e desliga
# o event sink real do host, para que nenhum teste escreva fora de tmp_path.
import os

import pytest

from logwriter.eventsink.sinks import EventSink
from logwriter.system import logs as logs_mod


class FakeEventSink(EventSink):
    """Event sink em memória, com falhas opcionais em register/write."""

    name = "fake"

    def __init__(self, fail_register: bool = False, fail_write: bool = False) -> None:
        self.fail_register = fail_register
        self.fail_write = fail_write
        self.registered: list[str] = []
        self.events: list[tuple[str, str, int, str]] = []
        self.write_calls = 0

    def register(self, source: str) -> None:
        if self.fail_register:
            raise PermissionError("simulated-denied")
        self.registered.append(source)

    def write(self, source: str, level: str, event_id: int, message: str) -> None:
        self.write_calls += 1
        if self.fail_write:
            raise OSError("simulated-sink-failure")
        self.events.append((source, level, event_id, message))


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    for key in list(os.environ):
        if key.startswith("MYTECH_LOG_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("MYTECH_LOG_ENV_FILE", str(tmp_path / "absent.env"))
    monkeypatch.setenv("MYTECH_LOG_ROOT", str(tmp_path / "logs"))
    monkeypatch.setenv("MYTECH_LOG_EVENT_SINK", "0")
    monkeypatch.setenv("MYTECH_LOG_CONSOLE", "0")
    monkeypatch.setenv("MYTECH_LOG_DURABLE_WRITES", "0")
    logs_mod.reset_default_writer()
    yield
    logs_mod.reset_default_writer()


@pytest.fixture
def fake_sink_cls():
    """Classe do event sink falso (instanciar com fail_register/fail_write)."""
    return FakeEventSink


@pytest.fixture
def log_dir(tmp_path):
    return tmp_path / "logs"
