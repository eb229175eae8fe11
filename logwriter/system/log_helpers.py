# vulture: ignore
"""Helpers de baixo nível para o log markdown.

Fornece escrita segura (lock + fsync), renderização do cabeçalho e das
linhas da tabela de atividade, nomes de archive e movimentações atômicas.
"""

from __future__ import annotations

from pathlib import Path
from typing import NamedTuple
from datetime import datetime
import getpass
import logging
import os
import re
import shutil
import socket
import time

import portalocker
import psutil

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
MONTH_FORMAT = "%Y-%m"
ARCHIVE_STAMP_FORMAT = "%Y%m%d_%H%M%S"
LOG_SUFFIX = ".md"

TABLE_HEADER = "| Timestamp | Level | Message |\n|-----------|-------|---------|\n"

_ROW_RE = re.compile(r"^\| (\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}) \| (\[[A-Z]+\]) \| (.*) \|$")

LEVELS = ("INFO", "SUCCESS", "WARNING", "ERROR")
LEVEL_TAGS = {"INFO": "[INFO]", "SUCCESS": "[OK]", "WARNING": "[WARN]", "ERROR": "[ERROR]"}
_LEVEL_ALIASES = {"OK": "SUCCESS", "WARN": "WARNING", "ERR": "ERROR"}


class LogRow(NamedTuple):
    """Linha da tabela de atividade já parseada."""

    timestamp: str
    tag: str
    message: str


# -----------------------
# Escrita segura
# -----------------------
def write_text(path: Path, text: str, durable: bool = True) -> bool:
    """Anexe texto a `path` de forma segura, usando lock exclusivo e fsync.

    Retorna True em sucesso. Falhas de I/O são registradas e devolvem False;
    nunca propaga exceção para o chamador.
    """
    try:
        with path.open("a", encoding="utf-8") as fh:
            locked = False
            try:
                try:
                    portalocker.lock(fh, portalocker.LOCK_EX)
                    locked = True
                except Exception as exc:
                    logger.debug("write_text: portalocker.lock falhou em %s: %s", path, exc)

                fh.write(text)
                fh.flush()

                if durable:
                    try:
                        os.fsync(fh.fileno())
                    except OSError as exc:
                        logger.debug("write_text: fsync falhou em %s: %s", path, exc)
            finally:
                if locked:
                    try:
                        portalocker.unlock(fh)
                    except Exception as exc:
                        logger.debug("write_text: portalocker.unlock falhou em %s: %s", path, exc)
        return True
    except OSError as exc:
        logger.debug("write_text: falhou em %s: %s", path, exc, exc_info=True)
        return False


def create_text(path: Path, text: str) -> None:
    """Cria (ou substitui) `path` com `text`; erros de I/O propagam."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="\n") as fh:
        fh.write(text)
        fh.flush()


# -----------------------
# Identidade do host/processo
# -----------------------
def current_computer() -> str:
    """Nome do host local."""
    try:
        return socket.gethostname() or "unknown"
    except OSError:
        return "unknown"


def current_user() -> str:
    """Usuário dono do processo atual (psutil, com fallback via getpass)."""
    try:
        return psutil.Process().username()
    except (psutil.Error, OSError, KeyError) as exc:
        logger.debug("current_user: psutil falhou: %s", exc)
    try:
        return getpass.getuser()
    except (OSError, KeyError, ImportError):
        return "unknown"


def current_process() -> str:
    """Descrição curta do processo atual: ``<nome> (PID <pid>)``."""
    pid = os.getpid()
    try:
        name = psutil.Process(pid).name()
    except (psutil.Error, OSError):
        name = "python"
    return f"{name} (PID {pid})"


# -----------------------
# Normalização e formatação
# -----------------------
def normalize_level(level) -> str | None:
    """Normaliza um nível (case-insensitive, aceita aliases OK/WARN/ERR).

    Retorna None quando o nível não for reconhecido.
    """
    s = message_to_text(level or "").strip().upper()
    s = _LEVEL_ALIASES.get(s, s)
    return s if s in LEVEL_TAGS else None


def sanitize_log_name(raw_name: str, fallback: str = "script") -> str:
    """Sanitize o nome base de um ficheiro de log para uso seguro no filesystem.

    Remove caracteres potencialmente perigosos e limita o comprimento.
    """
    rn = Path(raw_name or fallback).name.lstrip(".")
    name = re.sub(r"[^A-Za-z0-9._-]+", "_", rn)
    if not name:
        name = fallback
    if len(name) > 200:
        name = name[:200]
    return name


def message_to_text(msg) -> str:
    """Converte a mensagem do chamador em texto sem nunca levantar exceção."""
    if msg is None:
        return ""
    try:
        return str(msg)
    except Exception:
        logger.debug("message_to_text: str() falhou para %s", type(msg).__name__, exc_info=True)
        return f"<unrepr {type(msg).__name__}>"


def normalize_message_for_row(msg, max_len: int | None = None) -> str:
    """Normalize uma mensagem para caber em uma única linha da tabela markdown.

    Novas linhas viram espaço e ``|`` é escapado; corta em `max_len` apenas
    quando definido (por padrão o texto é preservado inteiro).
    """
    s = message_to_text(msg)
    s = s.replace("\r\n", " ").replace("\n", " ").replace("\r", " ")
    s = s.replace("|", "\\|")
    return s[:max_len] if max_len and len(s) > max_len else s


def format_timestamp(dt: datetime | None = None) -> str:
    """Timestamp no formato ``yyyy-MM-dd HH:mm:ss`` (hora local)."""
    return (dt or datetime.now()).strftime(TIMESTAMP_FORMAT)


def format_month(dt: datetime | None = None) -> str:
    """Mês no formato ``yyyy-MM``."""
    return (dt or datetime.now()).strftime(MONTH_FORMAT)


def build_header(
    script_name: str,
    script_version: str,
    started: datetime | None = None,
    note: str | None = None,
) -> str:
    """Compõe o bloco de cabeçalho fixo do log markdown.

    O `note` opcional (motivo de rollover) entra no bloco de identidade,
    nunca como linha da tabela de atividade.
    """
    lines = [
        f"# {script_name} Log",
        "",
        f"**Script Version:** {script_version}",
        f"**Log Started:** {format_timestamp(started)}",
        f"**Computer:** {current_computer()}",
        f"**User:** {current_user()}",
    ]
    if note:
        lines.append(f"**Rollover:** {note}")
    lines.extend(["", "---", "", "## Activity Log", "", ""])
    return "\n".join(lines) + TABLE_HEADER


def build_row(ts: str, tag: str, msg_str: str) -> str:
    """Compõe uma linha da tabela de atividade."""
    return f"| {ts} | {tag} | {msg_str} |\n"


def parse_row(line: str) -> LogRow | None:
    """Parse de uma linha da tabela; None quando não for linha de atividade."""
    m = _ROW_RE.match(line.rstrip("\r\n"))
    if not m:
        return None
    return LogRow(m.group(1), m.group(2), m.group(3))


def read_activity_rows(path: Path | str) -> list[LogRow]:
    """Lê as linhas de atividade de um log markdown.

    Retorna lista vazia quando o ficheiro não existe ou não pode ser lido.
    """
    p = Path(path)
    rows: list[LogRow] = []
    try:
        with p.open("r", encoding="utf-8") as fh:
            for line in fh:
                row = parse_row(line)
                if row is not None:
                    rows.append(row)
    except OSError as exc:
        logger.debug("read_activity_rows: falha ao ler %s: %s", p, exc)
    return rows


# -----------------------
# Nomes de archive / idade
# -----------------------
def month_archive_name(base: str, month: str) -> str:
    """Nome de archive para rollover mensal: ``<base>.<yyyy-MM>.md``."""
    return f"{base}.{month}{LOG_SUFFIX}"


def size_archive_path(log_dir: Path, base: str, now: datetime | None = None) -> Path:
    """Caminho livre para rollover por tamanho: ``<base>_archived_<yyyyMMdd_HHmmss>.md``.

    Acrescenta ``_<n>`` quando o nome já existir, para nunca reutilizar um archive.
    """
    stamp = (now or datetime.now()).strftime(ARCHIVE_STAMP_FORMAT)
    candidate = log_dir / f"{base}_archived_{stamp}{LOG_SUFFIX}"
    n = 2
    while candidate.exists():
        candidate = log_dir / f"{base}_archived_{stamp}_{n}{LOG_SUFFIX}"
        n += 1
    return candidate


def is_archive_of(name: str, base: str) -> bool:
    """True se `name` for um archive (mensal ou por tamanho) do log `base`."""
    b = re.escape(base)
    pattern = rf"^(?:{b}\.\d{{4}}-\d{{2}}|{b}_archived_\d{{8}}_\d{{6}}(?:_\d+)?){re.escape(LOG_SUFFIX)}$"
    return re.match(pattern, name) is not None


def list_archives(log_dir: Path, base: str) -> list[Path]:
    """Lista, ordenados por nome, os archives de `base` em `log_dir`."""
    try:
        return sorted(p for p in log_dir.iterdir() if p.is_file() and is_archive_of(p.name, base))
    except OSError as exc:
        logger.debug("list_archives: falha ao listar %s: %s", log_dir, exc)
        return []


def last_write_month(p: Path) -> str | None:
    """Mês (``yyyy-MM``, hora local) da última escrita de `p`; None se inacessível."""
    try:
        st = p.stat()
    except OSError as exc:
        logger.debug("last_write_month: falha ao acessar %s: %s", p, exc)
        return None
    return datetime.fromtimestamp(st.st_mtime).strftime(MONTH_FORMAT)


def file_size(p: Path) -> int:
    """Tamanho de `p` em bytes; 0 quando inacessível."""
    try:
        return p.stat().st_size
    except OSError:
        return 0


def archive_file_is_old(p: Path, now_ts: float, retention_days: int) -> bool:
    """Return True se o ficheiro em archive for mais antigo que `retention_days`."""
    try:
        st = p.stat()
    except OSError as exc:
        logger.error("archive_file_is_old: falha ao acessar %s: %s", p, exc, exc_info=True)
        return False
    cutoff = now_ts - retention_days * 86400
    return st.st_mtime < cutoff


# -----------------------
# Rotação
# -----------------------
def _attempt_rename(s: Path, d: Path) -> bool:
    try:
        s.rename(d)
        return True
    except OSError as exc:
        logger.debug("atomic_move: rename failed: %s", exc)
        return False


def _copy_fallback(s: Path, d: Path) -> bool:
    tmp = d.with_suffix(d.suffix + ".tmp")
    try:
        shutil.copy2(s, tmp)
        os.replace(tmp, d)
        s.unlink(missing_ok=True)
        return True
    except OSError as exc:
        logger.debug("atomic_move: copy fallback failed: %s", exc, exc_info=True)
        tmp.unlink(missing_ok=True)
        return False


def atomic_move(src: Path, dst: Path, attempts: int = 3, base_delay: float = 0.05) -> bool:
    """Move `src` para `dst` sem sobrescrever um destino existente.

    Tenta rename e, em falha (ficheiro em uso no Windows), cópia + remoção,
    com backoff curto entre tentativas.
    """
    if dst.exists():
        logger.debug("atomic_move: destino já existe: %s", dst)
        return False
    for i in range(attempts):
        if _attempt_rename(src, dst):
            return True
        if _copy_fallback(src, dst):
            return True
        if i + 1 < attempts:
            time.sleep(base_delay * (2**i))
    return False


# -----------------------
# Diretórios / permissões
# -----------------------
def ensure_dir_writable(p: Path) -> bool:
    """Garante, em melhor esforço, que `p` existe e é gravável."""
    try:
        p.mkdir(parents=True, exist_ok=True)
        test = p / f".touch-{os.getpid()}"
        try:
            with open(test, "a", encoding="utf-8") as f:
                f.write("ok")
                f.flush()
        except OSError as exc:
            logger.error("ensure_dir_writable: write test failed for %s: %s", p, exc)
            return False
        finally:
            try:
                if test.exists():
                    test.unlink()
            except OSError:
                # nosec B110 - cleanup must not raise in best-effort path
                pass
        return True
    except OSError as exc:
        logger.error("ensure_dir_writable: failed for %s: %s", p, exc)
        return False
