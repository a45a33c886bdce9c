"""
Read-only filesystem views for pre-validation.

The validator only ever asks questions about paths; it never writes.
Tests substitute an in-memory view.
"""

import os
from pathlib import Path
from typing import Protocol


class FilesystemView(Protocol):
    def exists(self, path: str) -> bool: ...

    def is_dir(self, path: str) -> bool: ...

    def size(self, path: str) -> int: ...

    def listdir(self, path: str) -> list[str]: ...


class LocalFilesystem:
    """View of the real filesystem, resolving relative paths under `root`."""

    def __init__(self, root: Path | None = None):
        self.root = root if root is not None else Path.cwd()

    def _resolve(self, path: str) -> Path:
        p = Path(path)
        return p if p.is_absolute() else self.root / p

    def exists(self, path: str) -> bool:
        return self._resolve(path).exists()

    def is_dir(self, path: str) -> bool:
        return self._resolve(path).is_dir()

    def size(self, path: str) -> int:
        return self._resolve(path).stat().st_size

    def listdir(self, path: str) -> list[str]:
        try:
            return sorted(os.listdir(self._resolve(path)))
        except OSError:
            return []


class MemoryFilesystem:
    """Dict-backed view: file path -> content."""

    def __init__(self, files: dict[str, str] | None = None):
        self.files = dict(files or {})

    def _dirs(self) -> set[str]:
        dirs = set()
        for f in self.files:
            parent = os.path.dirname(f)
            while parent:
                dirs.add(parent)
                parent = os.path.dirname(parent)
        return dirs

    def exists(self, path: str) -> bool:
        return path in self.files or self.is_dir(path)

    def is_dir(self, path: str) -> bool:
        if path in ("", "."):
            return True
        return path.rstrip("/") in self._dirs()

    def size(self, path: str) -> int:
        if path not in self.files:
            return 0  # directory
        return len(self.files[path].encode())

    def listdir(self, path: str) -> list[str]:
        prefix = "" if path in ("", ".") else path.rstrip("/") + "/"
        names = set()
        for f in self.files:
            if f.startswith(prefix):
                names.add(f[len(prefix):].split("/", 1)[0])
        return sorted(names)
