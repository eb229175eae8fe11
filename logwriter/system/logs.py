"""Subsistema de logs markdown: inicialização, rotação e escrita dual-sink.

Cada script administrativo mantém um ficheiro ``<nome>.md`` com cabeçalho
fixo e uma tabela de atividade. O ficheiro é arquivado quando muda o mês
(``<nome>.<yyyy-MM>.md``) ou quando excede o limite de tamanho
(``<nome>_archived_<yyyyMMdd_HHmmss>.md``). Cada entrada é também ecoada no
console e, em melhor esforço, espelhada no event sink do sistema.

Nenhuma operação pública levanta exceção: falhas viram avisos locais
(``logging``) e, opcionalmente, chamadas ao callback de diagnóstico.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from ..config.settings import get_valid_settings
from ..core.console import ConsoleEcho
from ..eventsink.formatters import build_event_message, event_id_for
from ..eventsink.sinks import EventSink, select_event_sink
from .log_helpers import (
    LEVEL_TAGS,
    LOG_SUFFIX,
    archive_file_is_old,
    atomic_move,
    build_header,
    build_row,
    create_text,
    ensure_dir_writable,
    file_size,
    format_month,
    format_timestamp,
    last_write_month,
    list_archives,
    message_to_text,
    month_archive_name,
    normalize_level,
    normalize_message_for_row,
    sanitize_log_name,
    size_archive_path,
    write_text,
)

logger = logging.getLogger(__name__)

ErrorCallback = Callable[[str, BaseException], None]

# marca "usar o padrão dos settings" para event_sink/console
_DEFAULT = object()


@dataclass(frozen=True)
class WriteResult:
    """Resultado interno de uma chamada a ``LogWriter.write``."""

    file_written: bool
    event_written: bool = False
    archived: Path | None = None


# ========================
# 1. Log Writer
# ========================


class LogWriter:
    """Estado de um log markdown de script (caminho, limites e event sink).

    Ciclo de vida: ``Uninitialized -> Active -> (Archived + novo Active)*``.
    Não existe operação de fechamento; o ficheiro ativo no fim do processo
    é o estado terminal.
    """

    def __init__(
        self,
        script_name: str,
        script_version: str = "1.0",
        log_dir: str | Path | None = None,
        max_size_bytes: int | None = None,
        event_sink=_DEFAULT,
        event_source: str | None = None,
        console=_DEFAULT,
        on_error: ErrorCallback | None = None,
        settings: dict | None = None,
    ) -> None:
        self.settings = get_valid_settings(settings)
        self.script_name = str(script_name or "script")
        self.script_version = str(script_version or "")
        self.base_name = sanitize_log_name(self.script_name)
        self.log_directory = self._resolve_log_dir(log_dir)
        self.max_size_bytes = self._resolve_max_size(max_size_bytes)
        self.event_source_name = event_source or self.settings.get("event_source") or self.script_name

        if event_sink is _DEFAULT:
            event_sink = select_event_sink(self.settings)
        self.event_sink: EventSink | None = event_sink
        self.event_sink_enabled = event_sink is not None

        if console is _DEFAULT:
            console = ConsoleEcho() if self.settings["console_enable"] else None
        self.console: ConsoleEcho | None = console or None

        self.on_error = on_error
        self.log_file_path: Path | None = None
        self.last_result: WriteResult | None = None

    def _resolve_log_dir(self, log_dir) -> Path | None:
        """Diretório de logs; None quando `log_dir` não é um caminho válido."""
        if not log_dir:
            return self.settings["log_root"]
        try:
            return Path(log_dir).expanduser()
        except (TypeError, ValueError, RuntimeError) as exc:
            logger.warning("log_dir inválido (%r): %s", log_dir, exc)
            return None

    def _resolve_max_size(self, max_size_bytes) -> int:
        if max_size_bytes is None:
            return self.settings["max_size_bytes"]
        try:
            value = int(max_size_bytes)
        except (TypeError, ValueError):
            value = 0
        if value < 1:
            logger.warning(
                "max_size_bytes inválido (%r); usando %d", max_size_bytes, self.settings["max_size_bytes"]
            )
            return self.settings["max_size_bytes"]
        return value

    # ------------------------
    # Operações públicas
    # ------------------------

    def initialize(self) -> str | None:
        """Prepara o ficheiro ativo e registra a origem no event sink.

        Arquiva o ficheiro existente quando a última escrita foi em mês
        anterior, cria o cabeçalho quando não houver ficheiro e devolve o
        caminho resolvido. Em falha fatal de I/O devolve None.
        """
        if self.log_directory is None or not ensure_dir_writable(self.log_directory):
            logger.warning("initialize: diretório de logs indisponível: %s", self.log_directory)
            self._report("initialize", OSError(f"diretório de logs indisponível: {self.log_directory}"))
            self.log_file_path = None
            return None

        path = self.log_directory / f"{self.base_name}{LOG_SUFFIX}"
        try:
            if path.exists():
                month = last_write_month(path)
                if month is not None and month != format_month():
                    self._archive_month(path, month)
            if not path.exists():
                self._create_active(path)
        except OSError as exc:
            logger.warning("initialize: falha ao preparar %s: %s", path, exc)
            self._report("initialize", exc)
            self.log_file_path = None
            return None

        self.log_file_path = path
        self._register_event_source()
        self._prune_archives()
        return str(path)

    def write(
        self,
        message,
        level: str = "INFO",
        context: str | None = None,
        solution: str | None = None,
        component: str | None = None,
    ) -> None:
        """Registra uma entrada no ficheiro, no console e no event sink.

        Antes da escrita verifica rotação por mês e por tamanho. Nada é
        propagado ao chamador; o resultado fica em ``last_result``.
        """
        if self.log_file_path is None:
            logger.warning(
                "write chamado antes de initialize; mensagem descartada: %s", message_to_text(message)
            )
            return
        norm = normalize_level(level)
        if norm is None:
            logger.warning("Nível de log desconhecido %r; usando INFO", level)
            norm = "INFO"
        self.last_result = self._write_entry(message, norm, context, solution, component)

    def get_log_path(self) -> str | None:
        """Caminho do ficheiro ativo, ou None antes de um initialize bem-sucedido."""
        return str(self.log_file_path) if self.log_file_path is not None else None

    # ------------------------
    # Escrita
    # ------------------------

    def _write_entry(self, message, level, context, solution, component) -> WriteResult:
        path = self.log_file_path
        archived = None
        try:
            archived = self._check_rotation(path)
        except OSError as exc:
            logger.debug("rotação falhou em %s: %s", path, exc, exc_info=True)
            self._report("rotate", exc)

        ts = format_timestamp()
        tag = LEVEL_TAGS[level]
        text = message_to_text(message)
        row = build_row(ts, tag, normalize_message_for_row(text))
        file_written = write_text(path, row, durable=self.settings["durable_writes"])
        if not file_written:
            self._report("append", OSError(f"falha ao anexar em {path}"))

        if self.console is not None:
            self.console.echo(ts, level, tag, text)

        event_written = self._write_event(level, text, context, solution, component)
        return WriteResult(file_written, event_written, archived)

    def _write_event(self, level, text, context, solution, component) -> bool:
        if not self.event_sink_enabled or self.event_sink is None:
            return False
        body = build_event_message(
            self.script_name,
            self.script_version,
            level,
            text,
            log_path=self.log_file_path,
            context=context,
            solution=solution,
            component=component,
        )
        try:
            self.event_sink.write(self.event_source_name, level, event_id_for(level), body)
            return True
        except Exception as exc:
            self._disable_event_sink("write", exc)
            return False

    # ------------------------
    # Rotação
    # ------------------------

    def _check_rotation(self, path: Path) -> Path | None:
        """Aplica a política de rotação antes de uma escrita.

        Retorna o caminho do archive gerado, ou None quando não houve rotação.
        """
        if not path.exists():
            self._create_active(path)
            return None

        month = last_write_month(path)
        if month is not None and month != format_month():
            target = self._archive_month(path, month)
            self._create_active(path, note=f"monthly rollover ({month}); previous log archived as {target.name}")
            return target

        if file_size(path) > self.max_size_bytes:
            target = size_archive_path(path.parent, self.base_name)
            if not atomic_move(path, target):
                raise OSError(f"falha ao arquivar {path} em {target}")
            logger.info("log %s excedeu %d bytes; arquivado em %s", path, self.max_size_bytes, target)
            self._create_active(
                path,
                note=f"size limit of {self.max_size_bytes} bytes exceeded; previous log archived as {target.name}",
            )
            return target
        return None

    def _archive_month(self, path: Path, month: str) -> Path:
        """Arquiva `path` como ``<nome>.<month>.md``.

        Se esse archive já existir, o ficheiro obsoleto é removido: nunca
        há dois archives para o mesmo mês nem sobrescrita silenciosa.
        """
        target = path.with_name(month_archive_name(self.base_name, month))
        if target.exists():
            logger.info("archive %s já existe; removendo ficheiro obsoleto %s", target, path)
            path.unlink()
            return target
        if not atomic_move(path, target):
            raise OSError(f"falha ao arquivar {path} em {target}")
        logger.info("log de %s arquivado em %s", month, target)
        return target

    def _create_active(self, path: Path, note: str | None = None) -> None:
        create_text(path, build_header(self.script_name, self.script_version, note=note))

    def _prune_archives(self) -> None:
        """Remove archives mais antigos que ``archive_retention_days`` (0 desliga)."""
        retention_days = self.settings["archive_retention_days"]
        if retention_days <= 0:
            return
        now_ts = time.time()
        for p in list_archives(self.log_directory, self.base_name):
            if not archive_file_is_old(p, now_ts, retention_days):
                continue
            try:
                p.unlink()
                logger.info("_prune_archives: removed %s", p)
            except OSError as exc:
                logger.error("_prune_archives: falha ao remover %s: %s", p, exc)
                self._report("prune", exc)

    # ------------------------
    # Event sink / diagnóstico
    # ------------------------

    def _register_event_source(self) -> None:
        if not self.event_sink_enabled or self.event_sink is None:
            return
        try:
            self.event_sink.register(self.event_source_name)
        except Exception as exc:
            self._disable_event_sink("register", exc)

    def _disable_event_sink(self, operation: str, exc: BaseException) -> None:
        self.event_sink_enabled = False
        logger.debug("event sink desabilitado após falha em %s: %s", operation, exc)
        self._report(f"event_sink.{operation}", exc)

    def _report(self, operation: str, exc: BaseException) -> None:
        if self.on_error is None:
            return
        try:
            self.on_error(operation, exc)
        except Exception:
            logger.debug("callback de diagnóstico falhou em %s", operation, exc_info=True)


# ========================
# 2. Fachada de módulo
# ========================

_default_writer: LogWriter | None = None


def open_log(
    script_name: str,
    script_version: str = "1.0",
    log_dir: str | Path | None = None,
    max_size_bytes: int | None = None,
    **kwargs,
) -> LogWriter:
    """Cria e inicializa um ``LogWriter``.

    O writer é devolvido mesmo quando o initialize falha; nesse caso
    ``get_log_path()`` retorna None e as escritas viram avisos locais.
    """
    writer = LogWriter(script_name, script_version, log_dir=log_dir, max_size_bytes=max_size_bytes, **kwargs)
    writer.initialize()
    return writer


def initialize_logging(
    script_name: str,
    script_version: str = "1.0",
    log_path: str | Path | None = None,
    max_size_bytes: int | None = None,
    **kwargs,
) -> str | None:
    """Inicializa o writer padrão do módulo e devolve o caminho do log.

    Um event sink desabilitado por falha continua desabilitado em
    re-inicializações dentro do mesmo processo.
    """
    global _default_writer
    if _default_writer is not None and not _default_writer.event_sink_enabled:
        kwargs.setdefault("event_sink", None)
    _default_writer = open_log(script_name, script_version, log_dir=log_path, max_size_bytes=max_size_bytes, **kwargs)
    return _default_writer.get_log_path()


def write_log(
    message,
    level: str = "INFO",
    context: str | None = None,
    solution: str | None = None,
    component: str | None = None,
) -> None:
    """Escreve no writer padrão; aviso local quando não inicializado."""
    if _default_writer is None:
        logger.warning(
            "write_log chamado antes de initialize_logging; mensagem descartada: %s", message_to_text(message)
        )
        return
    _default_writer.write(message, level, context=context, solution=solution, component=component)


def get_log_path() -> str | None:
    """Caminho do log do writer padrão, ou None."""
    if _default_writer is None:
        return None
    return _default_writer.get_log_path()


def get_default_writer() -> LogWriter | None:
    """Writer padrão do módulo (None antes de ``initialize_logging``)."""
    return _default_writer


def reset_default_writer() -> None:
    """Descarta o writer padrão do módulo."""
    global _default_writer
    _default_writer = None
