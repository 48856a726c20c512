"""
tangler – command-line interface
================================

Usage
-----
::

    python -m tangler.cli SOURCE [OPTIONS]

Options
-------
--output-dir, -d      Base directory for relative output paths (default: .).
--expand-tabs N       Expand tabs to N-column tab stops before scanning.
--only-if-changed     Do not rewrite files whose contents are unchanged.
--no-post-create      Do not run ``@post_create`` commands.
--list                Print the output file names and exit.
--dump-json FILE      Write the gathered chunks and commands as JSON.
--verbose, -v         Enable DEBUG logging.

Examples
--------
::

    python -m tangler.cli program.w
    python -m tangler.cli program.w -d build --expand-tabs 4
    cat program.w | python -m tangler.cli - --list
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from .errors import TangleError
from .output.emitter import OutputEmitter
from .pipeline.tangle_analysis import TangleAnalysis


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="tangler",
        description="tangler – extract the output files of a literate document",
    )
    p.add_argument("source", help="Literate source document ('-' for stdin)")
    p.add_argument(
        "--output-dir", "-d",
        default=".",
        metavar="DIR",
        help="Directory that relative output paths are resolved against",
    )
    p.add_argument(
        "--expand-tabs",
        type=int,
        default=0,
        metavar="N",
        help="Expand tabs to N-column tab stops before scanning (default: keep tabs)",
    )
    p.add_argument(
        "--only-if-changed",
        action="store_true",
        help="Leave files alone when their contents would not change",
    )
    p.add_argument(
        "--no-post-create",
        action="store_true",
        help="Do not run @post_create commands",
    )
    p.add_argument(
        "--list",
        action="store_true",
        help="Print the names of the output files and exit without writing",
    )
    p.add_argument(
        "--dump-json",
        default="",
        metavar="FILE",
        help="Write the gathered chunks and post-create commands to FILE as JSON",
    )
    p.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )
    return p


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.expand_tabs < 0:
        print("error: --expand-tabs must not be negative", file=sys.stderr)
        return 2

    analysis = TangleAnalysis(tab_size=args.expand_tabs)

    try:
        result = analysis.tangle_file(args.source)
    except TangleError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"error: cannot read {args.source}: {exc}", file=sys.stderr)
        return 2

    if args.dump_json:
        Path(args.dump_json).write_text(
            json.dumps(result.to_dict(), indent=2), encoding="utf-8"
        )
        print(f"Chunk dump written to {args.dump_json}", file=sys.stderr)

    if args.list:
        for name in result.files:
            print(name)
        return 0

    emitter = OutputEmitter(
        output_dir=args.output_dir,
        only_if_changed=args.only_if_changed,
        run_post_create=not args.no_post_create,
    )
    written = analysis.write(result, emitter)
    for path in written:
        print(f"  wrote {path}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
