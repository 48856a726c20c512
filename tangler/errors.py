"""
Fatal tangle errors.

Every malformed document ends in one of these.  They carry the position of
the line that triggered them and, for the "unfinished" and "nested" family,
the position where the offending construct was opened.  Only the CLI turns
them into an exit status.
"""
from __future__ import annotations

from typing import Optional

from .models import OpenConstructKind, SourcePosition


class TangleError(Exception):
    """Base class for every fatal condition."""

    def __init__(self, message: str, position: Optional[SourcePosition] = None) -> None:
        self.message = message
        self.position = position
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.position is None:
            return self.message
        return f"{self.position}: {self.message}"


class NestedBracketError(TangleError):
    """``@ifweave`` / ``@iftangle`` opened while one of them is already open."""

    def __init__(
        self,
        directive: str,
        open_kind: OpenConstructKind,
        opened_at: SourcePosition,
        position: SourcePosition,
    ) -> None:
        self.directive = directive
        self.open_kind = open_kind
        self.opened_at = opened_at
        super().__init__(
            f"{directive} nested inside {open_kind} opened at {opened_at}",
            position,
        )


class NestedChunkError(TangleError):
    """A chunk start seen while another chunk is still being gathered."""

    def __init__(
        self,
        open_kind: OpenConstructKind,
        open_name: str,
        opened_at: SourcePosition,
        new_name: str,
        position: SourcePosition,
    ) -> None:
        self.open_kind = open_kind
        self.open_name = open_name
        self.opened_at = opened_at
        self.new_name = new_name
        super().__init__(
            f"start of section {new_name!r} while {open_kind} "
            f"{open_name!r} (opened at {opened_at}) is unfinished",
            position,
        )


class UnfinishedConstructError(TangleError):
    """A chunk or bracket left open at end of input or at a checkpoint."""

    def __init__(
        self,
        kind: OpenConstructKind,
        opened_at: SourcePosition,
        position: SourcePosition,
        name: Optional[str] = None,
    ) -> None:
        self.kind = kind
        self.opened_at = opened_at
        self.name = name
        label = f"{kind} {name!r}" if name else str(kind)
        super().__init__(f"unfinished {label} opened at {opened_at}", position)


class PostCreateSyntaxError(TangleError):
    """``@post_create`` without both a file name and a command."""


class UndefinedChunkError(TangleError):
    """A reference to a chunk name that was never defined."""

    def __init__(self, name: str, line: str, context: str, position: SourcePosition) -> None:
        self.name = name
        self.line = line
        self.context = context
        super().__init__(
            f"chunk {name!r} used but not defined (in {context}: {line.strip()!r})",
            position,
        )


class RecursiveChunkError(TangleError):
    """A chunk whose expansion reaches itself again."""

    def __init__(self, name: str, line: str, context: str, position: SourcePosition) -> None:
        self.name = name
        self.line = line
        self.context = context
        super().__init__(
            f"chunk {name!r} expands itself recursively (in {context}: {line.strip()!r})",
            position,
        )
