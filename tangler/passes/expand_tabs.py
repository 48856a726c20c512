"""
ExpandTabsPass
==============

Replaces tab characters with spaces, aligning to fixed tab stops.

Runs before classification so that indentation-sensitive chunk references
see the same leading whitespace the author saw in the editor.  Disabled
(tab size ``0``) unless asked for, because some outputs (Makefiles) need
literal tabs.
"""
from __future__ import annotations

from typing import List


class ExpandTabsPass:
    """Expands tabs in every line to multiples of ``tab_size`` columns."""

    DEFAULT_TAB_SIZE: int = 8

    def __init__(self, tab_size: int = DEFAULT_TAB_SIZE) -> None:
        if tab_size < 0:
            raise ValueError(f"tab size must not be negative, got {tab_size}")
        self.tab_size = tab_size

    def run(self, lines: List[str]) -> List[str]:
        """
        Apply the pass to a list of source lines.

        Parameters
        ----------
        lines:
            Document lines (newlines already stripped).

        Returns
        -------
        List[str]
            The same lines with tabs expanded; unchanged when ``tab_size``
            is 0.
        """
        if not self.tab_size:
            return list(lines)
        return [line.expandtabs(self.tab_size) for line in lines]
