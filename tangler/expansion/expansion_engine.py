"""
ExpansionEngine
===============

Resolves ``@<name@>`` chunk references inside gathered block bodies.

Algorithm, for every block body:

1.  Split the body into lines.  A line without references is emitted as-is.
2.  For a line with references, every referenced name must be a defined code
    block (:class:`~tangler.errors.UndefinedChunkError` otherwise) and must
    not already be on the active expansion path
    (:class:`~tangler.errors.RecursiveChunkError` otherwise).
3.  The first reference is replaced by the fully expanded body of its chunk.
    When only whitespace precedes it, that whitespace is an indentation
    prefix and is repeated in front of every inserted line; otherwise the
    leading text is kept once, in front of the first inserted line.
4.  Text after the first reference is copied through, with any further
    references replaced by their expanded bodies (no indentation).
5.  The assembled text is scanned again and steps 1-4 repeat until no
    references remain.

Expansion only starts once the whole document has been gathered, so a chunk
may be used before it is defined.  The engine reads the registry and never
writes to it.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Set

from ..errors import RecursiveChunkError, UndefinedChunkError
from ..models import Block, ChunkReference, Namespace, SourcePosition
from ..registry.chunk_registry import ChunkRegistry

logger = logging.getLogger(__name__)

_REFERENCE_RE = re.compile(r"@<(?P<name>.+?)@>")


def find_references(line: str) -> List[ChunkReference]:
    """Return every chunk reference on *line*, left to right."""
    return [
        ChunkReference(
            name=m.group("name"),
            start=m.start(),
            end=m.end(),
            leading_text=line[: m.start()],
        )
        for m in _REFERENCE_RE.finditer(line)
    ]


def indent_lines(prefix: str, text: str) -> str:
    """Prefix every line of *text* (empty ones included) with *prefix*."""
    return "\n".join(prefix + line for line in text.split("\n"))


@dataclass
class ExpansionState:
    """Names currently being expanded on the active call path."""

    root: Block
    active: Set[str] = field(default_factory=set)


class ExpansionEngine:
    """
    Expands file and code blocks held in a :class:`ChunkRegistry`.

    Parameters
    ----------
    registry:
        A fully populated registry.  It is treated as read-only.
    """

    def __init__(self, registry: ChunkRegistry) -> None:
        self.registry = registry

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def expand_file(self, name: str) -> str:
        """
        Return the fully resolved body of the file block *name*.

        The result carries no trailing newline; writers add exactly one.
        Raises ``KeyError`` when *name* is not a file block.
        """
        block = self.registry.get(Namespace.FILE, name)
        if block is None:
            raise KeyError(name)
        logger.debug("Expanding file block %r", name)
        state = ExpansionState(root=block)
        return self._expand_text(block.body, block, state)

    def expand_chunk(self, name: str) -> str:
        """Return the fully resolved body of the code block *name*."""
        block = self.registry.get(Namespace.CODE, name)
        if block is None:
            raise KeyError(name)
        state = ExpansionState(root=block, active={name})
        return self._expand_text(block.body, block, state)

    def expand_all(self) -> Dict[str, str]:
        """Expand every file block, in first-definition order."""
        return {name: self.expand_file(name) for name in self.registry.names(Namespace.FILE)}

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _expand_text(self, text: str, block: Block, state: ExpansionState) -> str:
        passes = 0
        while _REFERENCE_RE.search(text):
            passes += 1
            # only the first pass still lines up with the block body
            text = "\n".join(
                self._expand_line(
                    line,
                    block,
                    state,
                    block.line_position(index) if passes == 1 else block.position,
                )
                for index, line in enumerate(text.split("\n"))
            )
        if passes > 1:
            logger.debug("Block %r reached a fixpoint after %d passes", block.name, passes)
        return text

    def _expand_line(
        self,
        line: str,
        block: Block,
        state: ExpansionState,
        position: SourcePosition,
    ) -> str:
        references = find_references(line)
        if not references:
            return line

        for ref in references:
            self._check_reference(ref, line, block, state, position)

        first = references[0]
        body = self._resolve(first.name, state)
        if first.is_indented:
            parts = [indent_lines(first.leading_text, body)]
        else:
            parts = [first.leading_text + body]

        cursor = first.end
        for ref in references[1:]:
            parts.append(line[cursor:ref.start])
            parts.append(self._resolve(ref.name, state))
            cursor = ref.end
        parts.append(line[cursor:])
        return "".join(parts)

    def _check_reference(
        self,
        ref: ChunkReference,
        line: str,
        block: Block,
        state: ExpansionState,
        position: SourcePosition,
    ) -> None:
        context = f"{block.namespace.value} block {block.name!r}"
        if not self.registry.contains(Namespace.CODE, ref.name):
            raise UndefinedChunkError(ref.name, line, context, position)
        if ref.name in state.active:
            raise RecursiveChunkError(ref.name, line, context, position)

    def _resolve(self, name: str, state: ExpansionState) -> str:
        chunk = self.registry.get(Namespace.CODE, name)
        state.active.add(name)
        try:
            return self._expand_text(chunk.body, chunk, state)
        finally:
            state.active.discard(name)
