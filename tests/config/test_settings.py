from pathlib import Path

import pytest

from logwriter.config import settings as settings_mod


def test_load_settings_defaults(monkeypatch):
    """Sem ambiente, load_settings devolve os defaults."""
    for key in settings_mod.ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    s = settings_mod.load_settings()
    assert s == settings_mod.DEFAULT_SETTINGS


def test_env_file_and_environment_precedence(tmp_path, monkeypatch):
    """Valores do .env são lidos e o ambiente do processo tem precedência."""
    env_file = tmp_path / "custom.env"
    env_file.write_text(
        "# comentário\n"
        "MYTECH_LOG_MAX_SIZE_BYTES=2048\n"
        'MYTECH_LOG_EVENT_SOURCE="myTech.Today"\n'
        "linha sem igual\n"
        "MYTECH_LOG_LEVEL=debug\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("MYTECH_LOG_ENV_FILE", str(env_file))
    monkeypatch.setenv("MYTECH_LOG_LEVEL", "error")

    s = settings_mod.load_settings()
    assert s["max_size_bytes"] == "2048"
    assert s["event_source"] == "myTech.Today"
    assert s["log_level"] == "error"


def test_validate_settings_coerces_types(tmp_path):
    """Flags e inteiros textuais são normalizados."""
    s = settings_mod.validate_settings(
        {
            "log_root": str(tmp_path),
            "max_size_bytes": "1024",
            "event_sink_enable": "off",
            "console_enable": "yes",
            "archive_retention_days": "7",
            "log_level": "info",
        }
    )
    assert s["log_root"] == Path(tmp_path)
    assert s["max_size_bytes"] == 1024
    assert s["event_sink_enable"] is False
    assert s["console_enable"] is True
    assert s["archive_retention_days"] == 7
    assert s["log_level"] == "INFO"
    assert s["event_log_name"] == "Application"


@pytest.mark.parametrize(
    "override",
    [
        {"max_size_bytes": "0"},
        {"max_size_bytes": "ten"},
        {"archive_retention_days": "-1"},
        {"event_sink_enable": "maybe"},
        {"log_level": "LOUD"},
    ],
)
def test_validate_settings_rejects_invalid(override):
    """Valores inválidos levantam ValueError."""
    with pytest.raises(ValueError):
        settings_mod.validate_settings(override)


def test_validate_settings_requires_dict():
    """Tipos não-dict levantam TypeError."""
    with pytest.raises(TypeError):
        settings_mod.validate_settings(["not", "a", "dict"])


def test_get_valid_settings_falls_back(caplog):
    """Settings inválidos caem nos defaults com aviso."""
    with caplog.at_level("WARNING"):
        s = settings_mod.get_valid_settings({"max_size_bytes": "-5"})
    assert s["max_size_bytes"] == settings_mod.DEFAULT_MAX_SIZE_BYTES
    assert "DEFAULT_SETTINGS" in caplog.text


def test_default_log_root_per_platform(monkeypatch):
    """Windows usa C:/mytech.today/logs; demais plataformas usam o home."""
    monkeypatch.setattr(settings_mod.sys, "platform", "win32")
    assert settings_mod.default_log_root() == Path("C:/mytech.today/logs")
    monkeypatch.setattr(settings_mod.sys, "platform", "linux")
    assert settings_mod.default_log_root() == Path.home() / ".mytech.today" / "logs"


def test_default_syslog_address(monkeypatch, tmp_path):
    """Primeiro socket existente é escolhido."""
    present = tmp_path / "syslog"
    present.write_text("")
    candidates = (str(tmp_path / "log"), str(present))
    monkeypatch.setattr(settings_mod, "SYSLOG_CANDIDATES", candidates)
    assert settings_mod.default_syslog_address() == str(present)
    monkeypatch.setattr(settings_mod, "SYSLOG_CANDIDATES", (str(tmp_path / "log"),))
    assert settings_mod.default_syslog_address() is None
