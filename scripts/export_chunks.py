"""
export_chunks.py
================
Run the tangler on one or more literate documents and write the **expanded
text** of every code chunk and file block to individual files under
``outputs/chunks/<document-stem>/``.

Handy for checking what a single chunk turns into without writing the real
output files.

Usage
-----
    python scripts/export_chunks.py \\
        --sources tests/fixtures/sample.w \\
        --output-dir outputs/chunks
"""
from __future__ import annotations

import argparse
import re
import sys
from pathlib import Path
from typing import Set

# Allow running from the repo root without installing the package
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from tangler.expansion.expansion_engine import ExpansionEngine
from tangler.models import Namespace
from tangler.pipeline.extract_blocks import ExtractBlocksTask


def _safe_filename(name: str) -> str:
    """Return a filesystem-safe stem for a chunk or file name."""
    safe = re.sub(r"[^A-Za-z0-9\-.]", "_", name)
    return re.sub(r"_+", "_", safe).strip("_") or "CHUNK"


def _unique_stem(base: str, used: Set[str]) -> str:
    """Disambiguate names that collide after sanitisation (``a b`` vs ``a_b``)."""
    stem, counter = base, 0
    while stem in used:
        counter += 1
        stem = f"{base}_{counter}"
    used.add(stem)
    return stem


def export(source: str, tab_size: int, output_dir: Path) -> None:
    document = ExtractBlocksTask(tab_size=tab_size).sections(source)
    engine = ExpansionEngine(document.registry)

    dest = output_dir / Path(source).stem
    dest.mkdir(parents=True, exist_ok=True)
    used: Set[str] = set()

    for block in document.registry.blocks(Namespace.CODE):
        out_file = dest / f"{_unique_stem('chunk_' + _safe_filename(block.name), used)}.txt"
        header = (
            f"# CHUNK  : {block.name}\n"
            f"# DEFINED: {', '.join(str(p) for p in block.positions)}\n"
            f"#{'─' * 66}\n"
        )
        out_file.write_text(header + engine.expand_chunk(block.name) + "\n", encoding="utf-8")
        print(f"  wrote {out_file}")

    for name, body in engine.expand_all().items():
        out_file = dest / f"{_unique_stem('file_' + _safe_filename(name), used)}.txt"
        out_file.write_text(body + "\n", encoding="utf-8")
        print(f"  wrote {out_file}")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Export the expanded text of every chunk in literate documents"
    )
    parser.add_argument("--sources", nargs="+", required=True, metavar="FILE")
    parser.add_argument("--expand-tabs", type=int, default=0, metavar="N")
    parser.add_argument(
        "--output-dir", "-o", default="outputs/chunks", metavar="DIR"
    )
    args = parser.parse_args()

    out = Path(args.output_dir)
    out.mkdir(parents=True, exist_ok=True)

    for src in args.sources:
        print(f"\n=== {src} ===")
        export(source=src, tab_size=args.expand_tabs, output_dir=out)


if __name__ == "__main__":
    main()
