"""
Command-line entry point.

    cgtable table --j1 3/2 --j2 1 [--html] [--float]
    cgtable multi --states "1/2,1/2;1,0;1/2,-1/2" [--html]
"""

from __future__ import annotations
import argparse
import logging
import pathlib
import sys
from .halfint import parse_half_integer
from .misc import InputError, InvariantViolation, load_config
from .multi import TableCache, decompose
from .render import text_table, write_multi_html, write_table_html
from .table import build_table

logger = logging.getLogger(__name__)

def make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cgtable",
        description="Exact Clebsch-Gordan coefficient tables.",
    )
    parser.add_argument(
        "--config", type=pathlib.Path, default=pathlib.Path("cgtable.toml"),
        help="TOML config file (default: ./cgtable.toml, if present)",
    )
    parser.add_argument(
        "--log-level", type=str, default=None,
        help="override the configured log level",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_table = sub.add_parser("table", help="print or render the table for j1, j2")
    p_table.add_argument("--j1", type=str, required=True, help="j1 value, e.g. 3/2")
    p_table.add_argument("--j2", type=str, required=True, help="j2 value, e.g. 1")
    p_table.add_argument(
        "--html", action="store_true", help="write an HTML table and print its path")
    p_table.add_argument(
        "--float", dest="floats", action="store_true",
        help="show floating-point coefficients instead of signed squares",
    )

    p_multi = sub.add_parser(
        "multi", help="decompose a product of several |j,m> states")
    p_multi.add_argument(
        "--states", type=str, required=True, help="j1,m1;j2,m2[;...;jk,mk]")
    p_multi.add_argument(
        "--html", action="store_true", help="write a MathJax page and print its path")
    return parser

def run_table(args, config) -> None:
    twoj1 = parse_half_integer(args.j1)
    twoj2 = parse_half_integer(args.j2)
    table = build_table(twoj1, twoj2, config.max_workers or None)
    if args.html:
        outfile = write_table_html(
            table, config.outdir / config.table_filename, floats=args.floats)
        print(outfile)
    else:
        print(text_table(table, args.floats, config.float_precision))

def run_multi(args, config) -> None:
    cache = TableCache(config.max_workers or None)
    decomp = decompose(args.states, cache)
    if args.html:
        outfile = write_multi_html(decomp, config.outdir / config.multi_filename)
        print(outfile)
    else:
        print(decomp.latex(), end="")

def main(argv: list[str]=None) -> int:
    args = make_parser().parse_args(argv)
    try:
        config = load_config(args.config)
    except InputError as err:
        print(f"cgtable: {err}", file=sys.stderr)
        return 2
    try:
        logging.basicConfig(
            level=(args.log_level or config.log_level).upper(),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    except ValueError as err:
        print(f"cgtable: {err}", file=sys.stderr)
        return 2
    logger.debug(repr(config))
    try:
        match args.command:
            case "table":
                run_table(args, config)
            case "multi":
                run_multi(args, config)
    except InputError as err:
        print(f"cgtable: {err}", file=sys.stderr)
        return 2
    except InvariantViolation as err:
        logger.error("internal consistency check failed: %s", err)
        return 1
    return 0

if __name__ == "__main__":
    sys.exit(main())
