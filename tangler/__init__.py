"""
tangler
=======

The *tangle* half of a literate-programming toolchain: reads a document
that mixes prose with named chunks and writes out the files those chunks
describe, with every ``@<chunk@>`` reference expanded.

Quick start
-----------
>>> from tangler import TangleAnalysis
>>> result = TangleAnalysis().tangle_text(
...     "@(out.txt@) =\\nhello @<name@>\\n@\\n@<name@> =\\nworld\\n@\\n"
... )
>>> result.files["out.txt"]
'hello world'
"""

from .errors import TangleError
from .expansion.expansion_engine import ExpansionEngine
from .models import Block, Namespace, OpenConstructKind, SourcePosition
from .output.emitter import OutputEmitter
from .parser.block_classifier import BlockClassifier, ClassifiedDocument
from .pipeline.extract_blocks import ExtractBlocksTask
from .pipeline.tangle_analysis import TangleAnalysis, TangleResult
from .registry.chunk_registry import ChunkRegistry

__version__ = "0.1.0"
__all__ = [
    "Block",
    "BlockClassifier",
    "ChunkRegistry",
    "ClassifiedDocument",
    "ExpansionEngine",
    "ExtractBlocksTask",
    "Namespace",
    "OpenConstructKind",
    "OutputEmitter",
    "SourcePosition",
    "TangleAnalysis",
    "TangleError",
    "TangleResult",
]
