"""
ExtractBlocksTask
=================

Runs the scanning half of a tangle and returns the gathered document.

Pipeline stages:

1. :class:`~tangler.passes.expand_tabs.ExpandTabsPass`
   – Expand tabs to spaces (skipped when ``tab_size`` is 0).
2. :class:`~tangler.parser.block_classifier.BlockClassifier`
   – Sort lines into file and code blocks, collect ``@post_create``
   commands and check the document structure.

Nothing is expanded here; see :mod:`tangler.pipeline.tangle_analysis`.
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List

from ..parser.block_classifier import BlockClassifier, ClassifiedDocument
from ..passes.expand_tabs import ExpandTabsPass

logger = logging.getLogger(__name__)


def split_lines(text: str) -> List[str]:
    """
    Split *text* on ``\\n`` only.

    Unlike :meth:`str.splitlines`, form feeds and other Unicode line
    separators stay inside their line.  A final newline does not produce an
    extra empty line; ``\\r`` of CRLF endings is dropped by the classifier.
    """
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


class ExtractBlocksTask:
    """
    Entry point for the scanning pipeline.

    Parameters
    ----------
    tab_size:
        Tab stop width for :class:`ExpandTabsPass`; 0 keeps tabs as they are.
    """

    def __init__(self, tab_size: int = 0) -> None:
        self.tab_size = tab_size

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def sections(self, file_path: str) -> ClassifiedDocument:
        """
        Scan a document **file**; ``"-"`` reads standard input.

        Parameters
        ----------
        file_path:
            Path to the literate source document.

        Returns
        -------
        ClassifiedDocument
        """
        if file_path == "-":
            logger.info("Reading document from stdin")
            return self._run_pipeline(split_lines(sys.stdin.read()), "<stdin>")

        logger.info("Reading document: %s", file_path)
        text = Path(file_path).read_text(encoding="utf-8", errors="replace")
        return self._run_pipeline(split_lines(text), file_path)

    def sections_from_text(self, source: str, source_name: str = "<inline>") -> ClassifiedDocument:
        """Scan a document supplied as a **string**."""
        return self._run_pipeline(split_lines(source), source_name)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _run_pipeline(self, lines: List[str], source_name: str) -> ClassifiedDocument:
        # Stage 1 – tab expansion
        lines = ExpandTabsPass(self.tab_size).run(lines)

        # Stage 2 – block classification
        return BlockClassifier(source=source_name).run(lines)
