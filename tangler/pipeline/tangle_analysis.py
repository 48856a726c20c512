"""
TangleAnalysis
==============

Full tangle pipeline.

Combines :class:`~tangler.pipeline.extract_blocks.ExtractBlocksTask`
(gathering), :class:`~tangler.expansion.expansion_engine.ExpansionEngine`
(resolution) and :class:`~tangler.output.emitter.OutputEmitter` (writing).

Gathering finishes before any expansion starts, and every file block is
expanded before anything is written, so a malformed document never leaves
partial output behind.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from ..expansion.expansion_engine import ExpansionEngine
from ..models import PostCreationCommand
from ..output.emitter import OutputEmitter
from ..parser.block_classifier import ClassifiedDocument
from .extract_blocks import ExtractBlocksTask

logger = logging.getLogger(__name__)


@dataclass
class TangleResult:
    """Expanded file bodies of one document, ready to be written."""

    document: ClassifiedDocument
    files: Dict[str, str] = field(default_factory=dict)

    @property
    def post_create(self) -> Dict[str, PostCreationCommand]:
        return self.document.post_create

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.document.source,
            "registry": self.document.registry.to_dict(),
            "post_create": [c.to_dict() for c in self.post_create.values()],
            "warnings": self.document.warnings,
        }


class TangleAnalysis:
    """
    High-level facade for tangling a literate document.

    Parameters
    ----------
    tab_size:
        Tab stop width applied before scanning; 0 disables tab expansion.
    """

    def __init__(self, tab_size: int = 0) -> None:
        self._extractor = ExtractBlocksTask(tab_size=tab_size)

    # ------------------------------------------------------------------
    # Primary API
    # ------------------------------------------------------------------

    def tangle_file(self, file_path: str) -> TangleResult:
        """Gather and expand every file block of the document at *file_path*."""
        return self._expand(self._extractor.sections(file_path))

    def tangle_text(self, source: str, source_name: str = "<inline>") -> TangleResult:
        """Gather and expand every file block of a document given as text."""
        return self._expand(self._extractor.sections_from_text(source, source_name))

    def write(self, result: TangleResult, emitter: OutputEmitter) -> List[Path]:
        """Hand every expanded file to *emitter*."""
        return emitter.emit_all(result.files, result.post_create)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _expand(self, document: ClassifiedDocument) -> TangleResult:
        engine = ExpansionEngine(document.registry)
        files = engine.expand_all()
        for name in document.post_create:
            if name not in files:
                logger.warning(
                    "%s: @post_create for %r, which is not an output file",
                    document.post_create[name].position,
                    name,
                )
        logger.info("Tangled %s: %d output file(s)", document.source, len(files))
        return TangleResult(document=document, files=files)
