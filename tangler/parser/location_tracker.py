"""
LocationTracker
===============

Remembers where each currently open construct (file chunk, code chunk,
``@ifweave`` bracket, ``@iftangle`` bracket) was opened, so that errors
raised much later can still point at the opening line.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from ..errors import UnfinishedConstructError
from ..models import OpenConstructKind, SourcePosition


class LocationTracker:
    """Bookkeeping of open constructs and their opening positions."""

    def __init__(self) -> None:
        self._open: Dict[OpenConstructKind, SourcePosition] = {}
        self._names: Dict[OpenConstructKind, str] = {}

    def mark_open(
        self,
        kind: OpenConstructKind,
        position: SourcePosition,
        name: Optional[str] = None,
    ) -> None:
        self._open[kind] = position
        if name is not None:
            self._names[kind] = name

    def clear_open(self, kind: OpenConstructKind) -> None:
        self._open.pop(kind, None)
        self._names.pop(kind, None)

    def is_open(self, kind: OpenConstructKind) -> Optional[SourcePosition]:
        """Return the opening position of *kind*, or None when it is closed."""
        return self._open.get(kind)

    def name_of(self, kind: OpenConstructKind) -> Optional[str]:
        return self._names.get(kind)

    def open_kinds(self) -> List[OpenConstructKind]:
        """Open kinds in the order they were opened."""
        return sorted(self._open, key=lambda k: self._open[k].line)

    def check_closed(
        self,
        kinds: Iterable[OpenConstructKind],
        at: SourcePosition,
    ) -> None:
        """
        Raise :class:`UnfinishedConstructError` for the first of *kinds*
        that is still open.

        Parameters
        ----------
        kinds:
            Construct kinds that must be closed at this point.
        at:
            Position of the line (or end of input) doing the check.
        """
        wanted = set(kinds)
        for kind in self.open_kinds():
            if kind in wanted:
                raise UnfinishedConstructError(
                    kind, self._open[kind], at, name=self._names.get(kind)
                )
