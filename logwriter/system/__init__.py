"""Pacote system: escrita do log markdown, rotação e archives.

Re-exports úteis dos helpers de baixo nível.
"""

from .log_helpers import build_header, build_row, read_activity_rows, write_text

__all__ = ["build_header", "build_row", "read_activity_rows", "write_text"]
