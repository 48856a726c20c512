"""
OutputEmitter
=============

Writes expanded file blocks to disk and runs their ``@post_create``
commands.

Each body is written followed by exactly one newline.  Relative paths are
resolved against ``output_dir``; missing parent directories are created.
A post-create command runs through the shell with ``output_dir`` as its
working directory; a failing command is reported but does not stop the run.
"""
from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Dict, List, Optional

from ..models import PostCreationCommand

logger = logging.getLogger(__name__)


class OutputEmitter:
    """
    Persists tangled files.

    Parameters
    ----------
    output_dir:
        Base directory for relative output paths.
    only_if_changed:
        Leave a file alone (and skip its post-create command) when its
        current contents already match.
    run_post_create:
        Set to False to never run ``@post_create`` commands.
    """

    def __init__(
        self,
        output_dir: str | Path = ".",
        only_if_changed: bool = False,
        run_post_create: bool = True,
    ) -> None:
        self.output_dir = Path(output_dir)
        self.only_if_changed = only_if_changed
        self.run_post_create = run_post_create

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def emit_all(
        self,
        files: Dict[str, str],
        post_create: Optional[Dict[str, PostCreationCommand]] = None,
    ) -> List[Path]:
        """Write every ``name -> body`` pair; returns the paths written."""
        post_create = post_create or {}
        written: List[Path] = []
        for name, body in files.items():
            path = self.emit(name, body, post_create.get(name))
            if path is not None:
                written.append(path)
        return written

    def emit(
        self,
        name: str,
        body: str,
        command: Optional[PostCreationCommand] = None,
    ) -> Optional[Path]:
        """
        Write one file and run its post-create command.

        Returns
        -------
        Path | None
            The written path, or None when ``only_if_changed`` skipped it.
        """
        path = self.output_dir / name
        content = body + "\n"

        if self.only_if_changed and self._unchanged(path, content):
            logger.info("Unchanged, not rewritten: %s", path)
            return None

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        logger.info("Wrote %s", path)

        if command is not None and self.run_post_create:
            self._run_command(command)
        return path

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _unchanged(path: Path, content: str) -> bool:
        if not path.is_file():
            return False
        return path.read_text(encoding="utf-8") == content

    def _run_command(self, command: PostCreationCommand) -> None:
        logger.info("Running post-create command for %s: %s", command.name, command.command)
        completed = subprocess.run(
            command.command,
            shell=True,
            cwd=self.output_dir,
            check=False,
        )
        if completed.returncode != 0:
            logger.warning(
                "Post-create command for %s (from %s) exited with status %d",
                command.name,
                command.position,
                completed.returncode,
            )
