"""
ChunkRegistry
=============

Holds every gathered block, keyed by namespace (file or code) and name.

A name defined more than once is not overwritten: each later body is
appended to the existing one with a single newline in between, so the final
body is the concatenation of all definitions in encounter order.  The
registry only grows; there is no deletion.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..models import Block, Namespace, SourcePosition

logger = logging.getLogger(__name__)


class ChunkRegistry:
    """Append-only store of file blocks and code blocks."""

    def __init__(self) -> None:
        self._blocks: Dict[Namespace, Dict[str, Block]] = {
            Namespace.FILE: {},
            Namespace.CODE: {},
        }

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def define_or_append(
        self,
        namespace: Namespace,
        name: str,
        body: str,
        position: SourcePosition,
        line_positions: Optional[List[SourcePosition]] = None,
    ) -> Block:
        """
        Insert *name* or append *body* to its existing definition.

        *line_positions* gives the source line of each body line; when
        omitted the body is assumed to start right after *position*.
        """
        line_count = body.count("\n") + 1
        if line_positions is None:
            line_positions = [
                SourcePosition(position.source, position.line + 1 + offset)
                for offset in range(line_count)
            ]
        elif len(line_positions) != line_count:
            raise ValueError(
                f"{len(line_positions)} line positions for a "
                f"{line_count}-line body of {name!r}"
            )

        blocks = self._blocks[namespace]
        block = blocks.get(name)
        if block is None:
            block = Block(
                namespace=namespace,
                name=name,
                body=body,
                positions=[position],
                line_positions=list(line_positions),
            )
            blocks[name] = block
            logger.debug("Defined %s block %r at %s", namespace.value, name, position)
        else:
            block.body = f"{block.body}\n{body}"
            block.positions.append(position)
            block.line_positions.extend(line_positions)
            logger.debug(
                "Extended %s block %r at %s (%d definitions)",
                namespace.value,
                name,
                position,
                len(block.positions),
            )
        return block

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def lookup(self, namespace: Namespace, name: str) -> str:
        """Return the body of *name*; raises ``KeyError`` when undefined."""
        return self._blocks[namespace][name].body

    def get(self, namespace: Namespace, name: str) -> Optional[Block]:
        return self._blocks[namespace].get(name)

    def contains(self, namespace: Namespace, name: str) -> bool:
        return name in self._blocks[namespace]

    def names(self, namespace: Namespace) -> List[str]:
        """Block names of *namespace* in first-definition order."""
        return list(self._blocks[namespace])

    def blocks(self, namespace: Namespace) -> List[Block]:
        return list(self._blocks[namespace].values())

    def __len__(self) -> int:
        return sum(len(blocks) for blocks in self._blocks.values())

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "files": [b.to_dict() for b in self.blocks(Namespace.FILE)],
            "chunks": [b.to_dict() for b in self.blocks(Namespace.CODE)],
        }
