from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Union

from mcpflow.config import get_setting


class FileSystem:
    """
    File tools confined to a workspace root.

    Paths are relative to the root; a leading ``/`` also means the root, so
    ``/`` lists the workspace itself.
    """

    def __init__(self, root: Optional[Union[str, Path]] = None) -> None:
        self.root = Path(root or get_setting("workspace_root")).resolve()
        self.logger = logging.getLogger(__name__)

    def read_file(self, path: str) -> str:
        target = self._resolve(path)
        if not target.is_file():
            raise FileNotFoundError(f"File not found: {path}")
        self.logger.info(f"📖 Reading {target}")
        return target.read_text(encoding="utf-8")

    def write_file(self, path: str, content: str) -> str:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        self.logger.info(f"💾 Wrote {len(content)} characters to {target}")
        return f"Wrote {len(content)} characters to {path}"

    def list_directory(self, path: str) -> List[str]:
        target = self._resolve(path)
        if not target.is_dir():
            raise FileNotFoundError(f"Directory not found: {path}")
        return sorted(
            f"{entry.name}/" if entry.is_dir() else entry.name
            for entry in target.iterdir()
        )

    def _resolve(self, path: str) -> Path:
        target = (self.root / str(path).lstrip("/")).resolve()
        if target != self.root and self.root not in target.parents:
            raise PermissionError(f"Path {path} is outside the workspace")
        return target
