"""
Core data models for the tangler.

Everything the classifier produces and the expansion engine consumes is
described here as a plain dataclass or enum.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


# ---------------------------------------------------------------------------
# Positions and open constructs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SourcePosition:
    """A (source, line) pair; ``line`` is 1-based."""

    source: str
    line: int

    def __str__(self) -> str:
        return f"{self.source}:{self.line}"

    def to_dict(self) -> Dict[str, Any]:
        return {"source": self.source, "line": self.line}


class OpenConstructKind(Enum):
    """Constructs that are opened on one line and must be closed later."""

    FILE_CHUNK = "file section"
    CODE_CHUNK = "code section"
    IF_WEAVE = "@ifweave"
    IF_TANGLE = "@iftangle"

    def __str__(self) -> str:
        return self.value


CHUNK_KINDS = (OpenConstructKind.FILE_CHUNK, OpenConstructKind.CODE_CHUNK)
BRACKET_KINDS = (OpenConstructKind.IF_WEAVE, OpenConstructKind.IF_TANGLE)


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------


class Namespace(Enum):
    """The two disjoint name spaces a block can live in."""

    FILE = "file"
    CODE = "code"


@dataclass
class Block:
    """
    A named unit of accumulated raw text.

    ``body`` holds the gathered lines joined by ``\\n`` with no trailing
    newline.  Every (re)definition of the same name appends to ``body`` and
    records where it happened in ``positions``.  ``line_positions`` runs
    parallel to ``body.split("\\n")`` and gives the source line of each body
    line (an empty definition maps to its opening line).
    """

    namespace: Namespace
    name: str
    body: str
    positions: List[SourcePosition] = field(default_factory=list)
    line_positions: List[SourcePosition] = field(default_factory=list)

    @property
    def position(self) -> SourcePosition:
        """Where the block was first defined."""
        return self.positions[0]

    def line_position(self, index: int) -> SourcePosition:
        """Source position of body line *index*, or the block position."""
        if 0 <= index < len(self.line_positions):
            return self.line_positions[index]
        return self.position

    def __repr__(self) -> str:
        return (
            f"Block({self.namespace.value}:{self.name!r}, "
            f"lines={self.body.count(chr(10)) + 1}, "
            f"definitions={len(self.positions)})"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "namespace": self.namespace.value,
            "name": self.name,
            "body": self.body,
            "positions": [p.to_dict() for p in self.positions],
        }


@dataclass(frozen=True)
class ChunkReference:
    """An ``@<name@>`` occurrence inside one line of a block body."""

    name: str
    start: int
    end: int
    leading_text: str

    @property
    def is_indented(self) -> bool:
        """True when only whitespace precedes the reference on its line."""
        return self.leading_text.strip() == ""


# ---------------------------------------------------------------------------
# Post-creation commands
# ---------------------------------------------------------------------------


@dataclass
class PostCreationCommand:
    """Shell command run after the file ``name`` has been written."""

    name: str
    command: str
    position: SourcePosition

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "command": self.command,
            "position": self.position.to_dict(),
        }
