"""
BlockClassifier
===============

Scans a literate document line by line and sorts its lines into named
blocks.

Directives are recognised only at column 1:

+------------------------------+--------------------------------------------+
| Line                         | Action                                     |
+==============================+============================================+
| ``@(path@) =``               | Start gathering the file block ``path``    |
+------------------------------+--------------------------------------------+
| ``@<name@> =``               | Start gathering the code block ``name``    |
+------------------------------+--------------------------------------------+
| ``@``                        | Close the block being gathered             |
+------------------------------+--------------------------------------------+
| ``@ifweave`` … ``@end        | Drop everything, bracket lines included    |
| ifweave``                    |                                            |
+------------------------------+--------------------------------------------+
| ``@iftangle`` … ``@end       | Drop the bracket lines, keep the content   |
| iftangle``                   |                                            |
+------------------------------+--------------------------------------------+
| ``@post_create NAME CMD…``   | Register a command to run after ``NAME``   |
|                              | is written                                 |
+------------------------------+--------------------------------------------+
| anything else                | Appended to the open block, else ignored   |
+------------------------------+--------------------------------------------+

Chunk state (``Normal`` / gathering a file / gathering a code block) and
bracket state (none / ``@ifweave`` / ``@iftangle``) are independent.  Any
structural mistake raises a :class:`~tangler.errors.TangleError`; an
unmatched terminator only logs a warning.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from ..errors import NestedBracketError, NestedChunkError, PostCreateSyntaxError
from ..models import (
    BRACKET_KINDS,
    CHUNK_KINDS,
    Namespace,
    OpenConstructKind,
    PostCreationCommand,
    SourcePosition,
)
from ..registry.chunk_registry import ChunkRegistry
from .location_tracker import LocationTracker

logger = logging.getLogger(__name__)

_FILE_START_RE = re.compile(r"^@\((?P<name>.+?)@\) =\s*$")
_CODE_START_RE = re.compile(r"^@<(?P<name>.+?)@> =\s*$")
_TERMINATOR_RE = re.compile(r"^@\s*$")
_POST_CREATE_RE = re.compile(r"^@post_create(?:\s|$)")

_BRACKET_START_RE = {
    OpenConstructKind.IF_WEAVE: re.compile(r"^@ifweave\s*$"),
    OpenConstructKind.IF_TANGLE: re.compile(r"^@iftangle\s*$"),
}
_BRACKET_END_RE = {
    OpenConstructKind.IF_WEAVE: re.compile(r"^@end ifweave\s*$"),
    OpenConstructKind.IF_TANGLE: re.compile(r"^@end iftangle\s*$"),
}

_NAMESPACE_FOR = {
    OpenConstructKind.FILE_CHUNK: Namespace.FILE,
    OpenConstructKind.CODE_CHUNK: Namespace.CODE,
}


@dataclass
class ClassifiedDocument:
    """Everything gathered from one scan of a document."""

    source: str
    registry: ChunkRegistry
    post_create: Dict[str, PostCreationCommand] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)


class BlockClassifier:
    """
    State machine that turns document lines into registry entries.

    Parameters
    ----------
    source:
        Name of the input stream, used in every position and message.
    registry:
        Registry to fill.  A fresh one is created when omitted.
    """

    def __init__(self, source: str = "<inline>", registry: Optional[ChunkRegistry] = None) -> None:
        self.source = source
        self.registry = registry if registry is not None else ChunkRegistry()
        self.tracker = LocationTracker()
        self.post_create: Dict[str, PostCreationCommand] = {}
        self.warnings: List[str] = []

        self._line_no = 0
        self._kind: Optional[OpenConstructKind] = None
        self._name = ""
        self._lines: List[str] = []
        self._positions: List[SourcePosition] = []

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def run(self, lines: Iterable[str]) -> ClassifiedDocument:
        """Feed every line of *lines* and finish the scan."""
        for line in lines:
            self.feed(line)
        return self.finish()

    def feed(self, line: str) -> None:
        """Classify a single line (a trailing newline is ignored)."""
        line = line.rstrip("\r\n")
        self._line_no += 1
        position = SourcePosition(self.source, self._line_no)

        if self._handle_bracket(line, position):
            return

        if self.tracker.is_open(OpenConstructKind.IF_WEAVE):
            return

        match = _FILE_START_RE.match(line)
        if match:
            self._start_chunk(OpenConstructKind.FILE_CHUNK, match.group("name"), position)
            return

        match = _CODE_START_RE.match(line)
        if match:
            self._start_chunk(OpenConstructKind.CODE_CHUNK, match.group("name"), position)
            return

        if _TERMINATOR_RE.match(line):
            self._terminate(position)
            return

        if _POST_CREATE_RE.match(line):
            self._register_post_create(line, position)
            return

        if self._kind is not None:
            self._lines.append(line)
            self._positions.append(position)

    def finish(self) -> ClassifiedDocument:
        """Check that nothing is left open and return the gathered document."""
        end = SourcePosition(self.source, self._line_no)
        self.tracker.check_closed(list(OpenConstructKind), end)
        logger.info(
            "Classified %s: %d file block(s), %d code block(s)",
            self.source,
            len(self.registry.names(Namespace.FILE)),
            len(self.registry.names(Namespace.CODE)),
        )
        return ClassifiedDocument(
            source=self.source,
            registry=self.registry,
            post_create=dict(self.post_create),
            warnings=list(self.warnings),
        )

    # ------------------------------------------------------------------
    # Brackets
    # ------------------------------------------------------------------

    def _handle_bracket(self, line: str, position: SourcePosition) -> bool:
        """Process ``@ifweave``/``@iftangle`` lines; True when *line* was one."""
        for kind, pattern in _BRACKET_START_RE.items():
            if pattern.match(line):
                self._enter_bracket(kind, position)
                return True

        for kind, pattern in _BRACKET_END_RE.items():
            if not pattern.match(line):
                continue
            if self.tracker.is_open(kind):
                self.tracker.clear_open(kind)
            elif not self.tracker.is_open(OpenConstructKind.IF_WEAVE):
                self._warn(f"unmatched @end {kind.value.lstrip('@')}", position)
            return True

        return False

    def _enter_bracket(self, kind: OpenConstructKind, position: SourcePosition) -> None:
        for open_kind in BRACKET_KINDS:
            opened_at = self.tracker.is_open(open_kind)
            if opened_at is not None:
                raise NestedBracketError(kind.value, open_kind, opened_at, position)
        self.tracker.mark_open(kind, position)

    # ------------------------------------------------------------------
    # Chunks
    # ------------------------------------------------------------------

    def _start_chunk(self, kind: OpenConstructKind, name: str, position: SourcePosition) -> None:
        if self._kind is not None:
            raise NestedChunkError(
                self._kind,
                self._name,
                self.tracker.is_open(self._kind),
                name,
                position,
            )
        self._kind = kind
        self._name = name
        self._lines = []
        self._positions = []
        self.tracker.mark_open(kind, position, name=name)

    def _terminate(self, position: SourcePosition) -> None:
        if self._kind is None:
            self._warn("unmatched terminating @-sign", position)
            return

        opened_at = self.tracker.is_open(self._kind)
        self.registry.define_or_append(
            _NAMESPACE_FOR[self._kind],
            self._name,
            "\n".join(self._lines),
            opened_at,
            line_positions=self._positions or [opened_at],
        )
        self.tracker.clear_open(self._kind)
        self._kind = None
        self._name = ""
        self._lines = []
        self._positions = []

    # ------------------------------------------------------------------
    # Post-creation commands
    # ------------------------------------------------------------------

    def _register_post_create(self, line: str, position: SourcePosition) -> None:
        self.tracker.check_closed(CHUNK_KINDS, position)

        tokens = line.split(None, 2)
        if len(tokens) < 3 or not tokens[2].strip():
            raise PostCreateSyntaxError(
                "@post_create needs a file name followed by a command", position
            )

        name, command = tokens[1], tokens[2].rstrip()
        if name in self.post_create:
            logger.debug(
                "Replacing post-create command for %r (was set at %s)",
                name,
                self.post_create[name].position,
            )
        self.post_create[name] = PostCreationCommand(name=name, command=command, position=position)

    # ------------------------------------------------------------------

    def _warn(self, message: str, position: SourcePosition) -> None:
        text = f"{position}: {message}"
        self.warnings.append(text)
        logger.warning("%s", text)
