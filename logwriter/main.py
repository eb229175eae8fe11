"""Ponto de entrada do comando ``mytech-log``.

Este módulo realiza o parsing de argumentos CLI, configura o logging
interno e delega a escrita para `logwriter.system.logs`. Mantemos a lógica
de runtime fora daqui para facilitar testes e reutilização por scripts.
"""

import logging as _logging
import sys

from .core.args import get_log_config, parse_args
from .system.log_helpers import read_activity_rows
from .system.logs import open_log


def main(argv: list[str] | None = None) -> int:
    """Grava as mensagens recebidas e devolve o código de saída.

    Args:
        argv: Lista de argumentos (usada em testes). Quando ``None`` a função
            utiliza os argumentos de linha de comando do processo.

    Returns:
        0 em sucesso, 1 quando o log não pôde ser inicializado e 2 para
        argumentos inválidos.

    """
    try:
        args = parse_args(argv)
    except ValueError as exc:
        print(f"mytech-log: erro: {exc}", file=sys.stderr)
        return 2

    log_conf = get_log_config(args)
    level = getattr(_logging, log_conf.get("level", "WARNING"), _logging.WARNING)
    _logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    kwargs = {}
    if args.no_event_sink:
        kwargs["event_sink"] = None
    if args.no_console:
        kwargs["console"] = None
    writer = open_log(args.name, args.script_version, log_dir=args.log_dir, max_size_bytes=args.max_size, **kwargs)

    path = writer.get_log_path()
    if path is None:
        print("mytech-log: não foi possível inicializar o log", file=sys.stderr)
        return 1

    for msg in args.message:
        writer.write(msg, args.level, context=args.context, solution=args.solution, component=args.component)

    if args.print_path:
        print(path)
    if args.tail:
        for row in read_activity_rows(path)[-args.tail :]:
            print(f"{row.timestamp} {row.tag} {row.message}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
