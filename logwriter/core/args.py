"""Parser de argumentos do comando ``mytech-log``.

Docstrings e mensagens em português.

Este módulo fornece um parser simples que expõe:
- identidade do script (-n / --name, -V / --script-version)
- nível da entrada (-l / --level) e campos estruturados do event sink
- destino e limite de rotação (--log-dir, --max-size)
- consulta do log (--print-path, --tail)
- verbosidade (-v) e nível do logging interno (--log-level)

As funções retornam objetos compatíveis com argparse.Namespace para
serem consumidos por `logwriter.main`.
"""

import argparse
import logging
import os
from typing import Sequence

from ..system.log_helpers import normalize_level

# ========================
# 0. Configuração do parser e argumentos padrão
# ========================


# Função principal do módulo; cria e retorna o ArgumentParser configurado
def configure_argparser() -> argparse.ArgumentParser:
    """Cria e retorna ArgumentParser configurado para o log writer."""
    parser = argparse.ArgumentParser(
        prog="mytech-log",
        description="Grava entradas no log markdown do script (com rotação mensal/por tamanho e event sink)",
    )

    parser.add_argument("message", nargs="*", help="Mensagem(ns) a registrar; cada uma vira uma linha")
    parser.add_argument("-n", "--name", dest="name", type=str, default=None, help="Nome do script (obrigatório)")
    parser.add_argument(
        "-V",
        "--script-version",
        dest="script_version",
        type=str,
        default="1.0",
        help="Versão do script gravada no cabeçalho",
    )
    parser.add_argument(
        "-l",
        "--level",
        type=str,
        default="INFO",
        help="Nível da entrada: INFO, SUCCESS (OK), WARNING (WARN) ou ERROR",
    )
    parser.add_argument("--log-dir", dest="log_dir", type=str, default=None, help="Diretório dos logs")
    parser.add_argument(
        "--max-size",
        dest="max_size",
        type=int,
        default=None,
        help="Limite em bytes para rotação por tamanho (padrão 10 MiB)",
    )
    parser.add_argument("--context", type=str, default=None, help="Campo Context do event sink")
    parser.add_argument("--solution", type=str, default=None, help="Campo Solution do event sink")
    parser.add_argument("--component", type=str, default=None, help="Campo Component do event sink")
    parser.add_argument(
        "--no-event-sink",
        dest="no_event_sink",
        action="store_true",
        help="Não espelhar entradas no event sink do sistema",
    )
    parser.add_argument("--no-console", dest="no_console", action="store_true", help="Não ecoar entradas no console")
    parser.add_argument("--print-path", dest="print_path", action="store_true", help="Imprime o caminho do log ativo")
    parser.add_argument("--tail", type=int, default=0, help="Imprime as últimas N linhas de atividade")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Aumenta a verbosidade (-v, -vv)")
    parser.add_argument(
        "--log-level",
        dest="log_level",
        type=str,
        default=None,
        help="Nível do logging interno (DEBUG/INFO/WARNING/ERROR). Se ausente, definido por -v",
    )

    return parser


# ========================
# 1. Funções auxiliares para análise e validação de argumentos
# ========================


# Auxilia logwriter.main; criado para analisar argv e validar argumentos
def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Analisa argv e retorna Namespace validado para uso no programa."""
    parser = configure_argparser()
    ns = parser.parse_args(argv)
    env_map = {
        "name": "MYTECH_LOG_SCRIPT_NAME",
        "script_version": "MYTECH_LOG_SCRIPT_VERSION",
        "log_dir": "MYTECH_LOG_ROOT",
        "max_size": "MYTECH_LOG_MAX_SIZE_BYTES",
    }

    # Aplicar overrides via variáveis de ambiente SOMENTE quando o argumento
    # não foi fornecido pela linha de comando (CLI tem precedência).
    for arg, env_var in env_map.items():
        env_val = os.getenv(env_var)
        if env_val is None or env_val.strip() == "":
            continue
        current_val = getattr(ns, arg, None)
        if current_val is not None and current_val != parser.get_default(arg):
            continue
        try:
            setattr(ns, arg, int(env_val) if arg == "max_size" else env_val)
        except ValueError as exc:
            logging.getLogger(__name__).warning(f"{env_var} inválido ('{env_val}'): {exc}. Usando valor do argumento.")
    validate_args(ns)
    return ns


# Auxilia parse_args; criado para garantir valores corretos e seguros
def validate_args(args: argparse.Namespace) -> None:
    """Valida e normaliza argumentos do log writer."""
    name = getattr(args, "name", None)
    if not name or not str(name).strip():
        raise ValueError("nome do script é obrigatório (-n/--name ou MYTECH_LOG_SCRIPT_NAME)")
    args.name = str(name).strip()

    level = normalize_level(getattr(args, "level", "INFO"))
    if level is None:
        raise ValueError(f"nível inválido: {getattr(args, 'level', None)!r}")
    args.level = level

    max_size = getattr(args, "max_size", None)
    if max_size is not None:
        try:
            args.max_size = int(max_size)
        except (TypeError, ValueError) as exc:
            raise ValueError("max-size deve ser um inteiro >= 1") from exc
        if args.max_size < 1:
            raise ValueError("max-size deve ser >= 1")

    try:
        args.tail = int(getattr(args, "tail", 0) or 0)
    except (TypeError, ValueError) as exc:
        raise ValueError("tail deve ser um inteiro >= 0") from exc
    if args.tail < 0:
        raise ValueError("tail deve ser >= 0")


# ========================
# 2. Função auxiliar para configuração de logging
# ========================


# Auxilia logwriter.main; criado para extrair o nível do logging interno
def get_log_config(args: argparse.Namespace) -> dict:
    """Retorna dict com configuração do logging interno ('level')."""
    if getattr(args, "log_level", None):
        level = str(args.log_level).upper()
    else:
        v = getattr(args, "verbose", 0) or 0
        if v >= 2:
            level = "DEBUG"
        elif v == 1:
            level = "INFO"
        else:
            level = "WARNING"
    return {"level": level}
