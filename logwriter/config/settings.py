"""Configurações do log writer.

Este módulo centraliza diretório de logs, limite de rotação, event sink e
echo de console. Carrega valores a partir de ``DEFAULT_SETTINGS`` e permite
overrides via arquivo ``.env`` ou variáveis de ambiente (prefixo ``MYTECH_LOG_*``).
As funções públicas principais são:

- ``load_settings()`` -> dicionário com as chaves de ``DEFAULT_SETTINGS``.
- ``validate_settings()`` -> normaliza tipos e limites (levanta ``ValueError``).
- ``get_valid_settings()`` -> settings validados ou defaults em caso de erro.

Comentários e mensagens de log estão em português.
"""

import logging
import os
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


# ========================
# Constantes e padrões globais
# ========================

DEFAULT_MAX_SIZE_BYTES = 10 * 1024 * 1024


def default_log_root() -> Path:
    """Diretório padrão dos logs para a plataforma atual."""
    if sys.platform == "win32":
        return Path("C:/mytech.today/logs")
    return Path.home() / ".mytech.today" / "logs"


SYSLOG_CANDIDATES = ("/dev/log", "/var/run/syslog")


def default_syslog_address() -> str | None:
    """Socket local do syslog, quando existir."""
    for candidate in SYSLOG_CANDIDATES:
        if os.path.exists(candidate):
            return candidate
    return None


DEFAULT_SETTINGS = {
    "log_root": None,
    "max_size_bytes": DEFAULT_MAX_SIZE_BYTES,
    "event_sink_enable": True,
    "event_source": None,
    "event_log_name": "Application",
    "syslog_address": None,
    "console_enable": True,
    "durable_writes": True,
    "archive_retention_days": 0,
    "log_level": "WARNING",
}

# variável de ambiente -> chave de settings
ENV_KEYS = {
    "MYTECH_LOG_ROOT": "log_root",
    "MYTECH_LOG_MAX_SIZE_BYTES": "max_size_bytes",
    "MYTECH_LOG_EVENT_SINK": "event_sink_enable",
    "MYTECH_LOG_EVENT_SOURCE": "event_source",
    "MYTECH_LOG_EVENT_LOG": "event_log_name",
    "MYTECH_LOG_SYSLOG_ADDRESS": "syslog_address",
    "MYTECH_LOG_CONSOLE": "console_enable",
    "MYTECH_LOG_DURABLE_WRITES": "durable_writes",
    "MYTECH_LOG_ARCHIVE_RETENTION_DAYS": "archive_retention_days",
    "MYTECH_LOG_LEVEL": "log_level",
}

_BOOL_KEYS = ("event_sink_enable", "console_enable", "durable_writes")
_INT_KEYS = ("max_size_bytes", "archive_retention_days")
_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# ========================
# 1. Carregamento das configurações
# ========================


# Função principal do módulo; carrega todas as configurações do ambiente
def load_settings() -> dict:
    """Carrega configurações combinando DEFAULTS + .env + ambiente.

    As variáveis em ambiente sobrescrevem valores do arquivo `.env`. Os
    valores retornam crus (strings) quando vêm do ambiente; use
    ``validate_settings`` para normalizar.
    """
    settings = DEFAULT_SETTINGS.copy()
    env_path = Path(os.getenv("MYTECH_LOG_ENV_FILE", ".env"))
    env_items = _merge_env_items(env_path)
    _apply_env_overrides(env_items, settings)
    return settings


# ========================
# 2. Funções auxiliares para ambiente e overrides
# ========================


# Auxilia load_settings; criado para centralizar leitura do .env
def _read_env_file(path: Path | str) -> dict:
    """Lê um arquivo `.env` e devolve um dicionário chave->valor.

    Linhas vazias e comentários (começando com '#') são ignorados.
    """
    result: dict[str, str] = {}
    p = Path(path)
    if not p.exists():
        return result
    try:
        with p.open("r", encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                if "=" not in line:
                    continue
                key, val = line.split("=", 1)
                key = key.strip()
                val = val.strip().strip('"').strip("'")
                result[key] = val
    except OSError as exc:
        logger.debug("Falha ao ler .env em %s: %s", p, exc)
        return {}
    return result


# Auxilia load_settings; criado para unir variáveis do ambiente e .env
def _merge_env_items(env_path: Path) -> dict:
    """Retorna um mapeamento combinado de `.env` e env vars do processo.

    As variáveis do processo sobrescrevem o arquivo `.env`.
    """
    env_items = _read_env_file(env_path)
    if env_items == {} and env_path.exists():
        logger.warning("Erro ou ficheiro .env vazio em %s", env_path)
    env_items.update(os.environ)
    return env_items


# Auxilia load_settings; aplica somente chaves conhecidas com prefixo MYTECH_LOG_
def _apply_env_overrides(env_items: dict, settings: dict) -> None:
    """Aplica overrides de ``env_items`` sobre ``settings``.

    Valores vazios são ignorados para não apagar defaults.
    """
    for env_var, key in ENV_KEYS.items():
        raw = env_items.get(env_var)
        if raw is None or str(raw).strip() == "":
            continue
        settings[key] = str(raw).strip()


# ========================
# 3. Validação e normalização
# ========================


def _coerce_bool(key: str, raw) -> bool:
    """Converte flags textuais ('1', 'yes', 'off'...) para bool."""
    if isinstance(raw, bool):
        return raw
    s = str(raw).strip().lower()
    if s in _TRUE_VALUES:
        return True
    if s in _FALSE_VALUES:
        return False
    raise ValueError(f"valor booleano inválido para {key}: {raw!r}")


def _coerce_int(key: str, raw, minimum: int) -> int:
    """Converte para inteiro e garante ``>= minimum``."""
    try:
        value = int(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{key} deve ser um inteiro: {raw!r}") from exc
    if value < minimum:
        raise ValueError(f"{key} deve ser >= {minimum}: {value}")
    return value


# Função principal de validação; normaliza e valida configurações
def validate_settings(settings: dict) -> dict:
    """Normaliza e valida o dicionário de configurações.

    Preenche chaves ausentes com defaults, converte flags e inteiros e
    resolve caminhos. Levanta ``ValueError`` em valores inválidos.
    """
    if not isinstance(settings, dict):
        raise TypeError("settings deve ser um dict")

    normalized = DEFAULT_SETTINGS.copy()
    normalized.update({k: v for k, v in settings.items() if v is not None})

    for key in _BOOL_KEYS:
        normalized[key] = _coerce_bool(key, normalized[key])
    normalized["max_size_bytes"] = _coerce_int("max_size_bytes", normalized["max_size_bytes"], 1)
    normalized["archive_retention_days"] = _coerce_int(
        "archive_retention_days", normalized["archive_retention_days"], 0
    )

    level = str(normalized["log_level"]).upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"log_level inválido: {normalized['log_level']!r}")
    normalized["log_level"] = level

    root = normalized.get("log_root")
    normalized["log_root"] = Path(root).expanduser() if root else default_log_root()
    if not normalized.get("syslog_address"):
        normalized["syslog_address"] = default_syslog_address()

    logger.debug("Configurações validadas e normalizadas")
    return normalized


# Auxilia outros módulos; retorna settings validados ou padrão em caso de erro
def get_valid_settings(settings: dict | None = None) -> dict:
    """Retorna configurações validadas.

    Em caso de erro, retorna os defaults validados e registra aviso.
    """
    try:
        if settings is None:
            settings = load_settings()
        return validate_settings(settings)
    except (TypeError, ValueError, OSError) as exc:
        logger.warning("Falha ao validar settings; serão usados DEFAULT_SETTINGS: %s", exc)
        return validate_settings(DEFAULT_SETTINGS.copy())
