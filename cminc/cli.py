"""Command-line interface for the C-minus compiler."""

import argparse
import logging
import sys
from pathlib import Path


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="cminc",
        description="C-minus compiler front end: parses and semantically checks .cm files",
    )
    parser.add_argument("input", nargs="?", help="Input .cm file")
    parser.add_argument(
        "--dump-ast", action="store_true", help="Dump the syntax tree and exit"
    )
    parser.add_argument(
        "--print-table", action="store_true",
        help="Print the symbol table after analysis",
    )
    parser.add_argument(
        "--trace", action="store_true",
        help="Trace the analyzer's traversal (debug logging)",
    )
    parser.add_argument(
        "--no-main-check", action="store_true",
        help="Do not require a main function",
    )
    parser.add_argument(
        "--version", action="version", version="cminc 0.1.0"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.trace else logging.WARNING,
        format="%(name)s: %(message)s",
    )

    if args.input is None:
        parser.print_help()
        sys.exit(0)

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: file not found: {input_path}", file=sys.stderr)
        sys.exit(1)

    source = input_path.read_text(encoding="utf-8")

    from cminc.compiler import compile_source

    try:
        result = compile_source(
            source=source,
            source_name=input_path.name,
            dump_ast=args.dump_ast,
            print_table=args.print_table,
            require_main=not args.no_main_check,
        )
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if result is not None:
        print(f"{input_path.name}: no semantic errors")


if __name__ == "__main__":
    main()
