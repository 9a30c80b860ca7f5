from __future__ import annotations

import logging
import os
import stat
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FilesystemSnapshot:
    """Stat-level view of one path, captured once per scan pass."""

    path: Path
    name: str
    extension: str
    is_directory: bool
    size_bytes: Optional[int]
    last_modified_utc: Optional[datetime]

    @property
    def stem(self) -> str:
        if self.is_directory or not self.extension:
            return self.name
        return self.name[: -len(self.extension)]

    @classmethod
    def from_stat(cls, path: Path, st: os.stat_result) -> "FilesystemSnapshot":
        is_directory = stat.S_ISDIR(st.st_mode)
        return cls(
            path=path,
            name=path.name,
            extension="" if is_directory else path.suffix,
            is_directory=is_directory,
            size_bytes=None if is_directory else st.st_size,
            last_modified_utc=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
        )

    @classmethod
    def from_path(cls, path: Path) -> "FilesystemSnapshot":
        """Stat ``path``; raises ``OSError`` when it cannot be read."""
        return cls.from_stat(path, path.stat())

    @classmethod
    def from_entry(cls, entry: os.DirEntry) -> "FilesystemSnapshot":
        return cls.from_stat(Path(entry.path), entry.stat())


@dataclass(frozen=True, slots=True)
class DirectoryBatch:
    directory: Path
    entries: tuple[FilesystemSnapshot, ...]

    @property
    def files(self) -> list[FilesystemSnapshot]:
        return [entry for entry in self.entries if not entry.is_directory]

    @property
    def subdirectories(self) -> list[FilesystemSnapshot]:
        return [entry for entry in self.entries if entry.is_directory]


def classify_entry(entry: os.DirEntry) -> Optional[str]:
    """``"directory"`` or ``"file"`` with symlinks followed; ``None`` for
    anything else (sockets, fifos, dangling links). May raise ``OSError``."""
    if entry.is_dir():
        return "directory"
    if entry.is_file():
        return "file"
    return None


def list_children(directory: Path) -> list[FilesystemSnapshot]:
    """Read-only listing of ``directory``; unreadable entries are dropped and
    an unreadable directory yields an empty list."""
    try:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda entry: entry.name)
    except OSError as exc:
        logger.debug("Cannot list %s: %s", directory, exc)
        return []
    children: list[FilesystemSnapshot] = []
    for entry in entries:
        try:
            if classify_entry(entry) is None:
                continue
            children.append(FilesystemSnapshot.from_entry(entry))
        except OSError as exc:
            logger.debug("Cannot stat %s: %s", entry.path, exc)
    return children
