"""Pacote core: console e linha de comando.

Contém o echo colorido no stdout e o parsing de argumentos do ``mytech-log``.
"""

from .args import parse_args
from .console import ConsoleEcho

__all__ = ["parse_args", "ConsoleEcho"]
