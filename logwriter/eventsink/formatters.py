"""Formatação das mensagens enviadas ao event sink do sistema operacional.

A mensagem expandida leva um cabeçalho de identidade (script, versão, host,
usuário, processo e ficheiro de log), o nível, o texto livre e, quando
fornecidos, os campos estruturados Context/Solution/Component.
"""

from __future__ import annotations

from pathlib import Path

from ..system.log_helpers import current_computer, current_process, current_user

# faixas de event ID por nível
EVENT_IDS = {"INFO": 1000, "SUCCESS": 1001, "WARNING": 2000, "ERROR": 3000}


def event_id_for(level: str) -> int:
    """Retorna o event ID da faixa do nível (INFO quando desconhecido)."""
    return EVENT_IDS.get(level, EVENT_IDS["INFO"])


def build_event_message(
    script_name: str,
    script_version: str,
    level: str,
    message: str,
    log_path: Path | str | None = None,
    context: str | None = None,
    solution: str | None = None,
    component: str | None = None,
) -> str:
    """Compõe a mensagem expandida para o event sink.

    Campos estruturados vazios ou None são omitidos.
    """
    lines = [
        f"Script: {script_name}",
        f"Version: {script_version}",
        f"Computer: {current_computer()}",
        f"User: {current_user()}",
        f"Process: {current_process()}",
    ]
    if log_path:
        lines.append(f"Log File: {log_path}")
    lines.extend(["", f"Level: {level}", "", str(message)])

    extras = (("Context", context), ("Solution", solution), ("Component", component))
    structured = [f"{label}: {value}" for label, value in extras if value]
    if structured:
        lines.append("")
        lines.extend(structured)
    return "\n".join(lines)
