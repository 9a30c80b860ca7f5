from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from pathlib import Path
from typing import Optional, Protocol

from .ignore import IgnoreRuleEngine
from .snapshot import DirectoryBatch, FilesystemSnapshot, classify_entry

logger = logging.getLogger(__name__)


class CancellationSignal(Protocol):
    def is_set(self) -> bool: ...


class LibraryScanner:
    """
    Depth-first, stack-driven walker yielding one ``DirectoryBatch`` per
    visited directory.

    The stream is pull-based: nothing past the current directory is read until
    the consumer asks for the next batch. Directory handles are opened and
    closed inside a single step and never held across a ``yield``.

    Directory symlinks are listed and followed like real directories. Each
    physical directory (by device and inode) is descended into once per scan,
    so a link back up the tree cannot loop.
    """

    def __init__(self, ignore_rules: Optional[IgnoreRuleEngine] = None) -> None:
        self.ignore_rules = ignore_rules or IgnoreRuleEngine()

    def scan_stream(
        self,
        root: Path,
        cancel: Optional[CancellationSignal] = None,
    ) -> Iterator[DirectoryBatch]:
        root = Path(root)
        try:
            root_stat = root.stat()
        except OSError:
            root_stat = None
        if root_stat is None or not root.is_dir():
            logger.warning("Library root does not exist: %s", root)
            return

        visited: set[tuple[int, int]] = {(root_stat.st_dev, root_stat.st_ino)}
        stack: list[Path] = [root]
        while stack:
            if _cancelled(cancel):
                logger.debug("Scan of %s cancelled", root)
                return
            current = stack.pop()

            rule = self.ignore_rules.match_directory(current, current.parent)
            if rule is not None:
                logger.debug("Ignore rule %s matched directory %s", rule.name, current)
                continue

            entries = _read_directory(current)
            if entries is None:
                yield DirectoryBatch(directory=current, entries=())
                continue

            batch: list[FilesystemSnapshot] = []
            subdirectories: list[os.DirEntry] = []
            for entry in entries:
                if _cancelled(cancel):
                    logger.debug("Scan of %s cancelled", root)
                    return
                try:
                    kind = classify_entry(entry)
                except OSError as exc:
                    logger.warning("Error accessing %s: %s", entry.path, exc)
                    continue
                if kind == "directory":
                    subdirectories.append(entry)
                    continue
                if kind is None:
                    continue
                file_path = Path(entry.path)
                rule = self.ignore_rules.match_file(file_path, current)
                if rule is not None:
                    logger.debug("Ignore rule %s matched file %s", rule.name, file_path)
                    continue
                try:
                    batch.append(FilesystemSnapshot.from_entry(entry))
                except OSError as exc:
                    logger.warning("Error accessing file %s: %s", file_path, exc)

            for entry in subdirectories:
                if _cancelled(cancel):
                    logger.debug("Scan of %s cancelled", root)
                    return
                try:
                    snapshot = FilesystemSnapshot.from_entry(entry)
                    st = entry.stat()
                except OSError as exc:
                    logger.warning("Error accessing directory %s: %s", entry.path, exc)
                    continue
                batch.append(snapshot)
                identity = (st.st_dev, st.st_ino)
                if identity in visited:
                    logger.debug("Already visited %s; not descending again", entry.path)
                    continue
                visited.add(identity)
                # Ignore rules for subdirectories run when they are popped.
                stack.append(Path(entry.path))

            yield DirectoryBatch(directory=current, entries=tuple(batch))

    def collect_directory(self, directory: Path) -> Optional[DirectoryBatch]:
        """Build the batch for a single directory without descending."""
        directory = Path(directory)
        if not directory.is_dir():
            return None
        if self.ignore_rules.should_ignore_directory(directory, directory.parent):
            return None
        entries = _read_directory(directory) or []
        files: list[FilesystemSnapshot] = []
        subdirectories: list[FilesystemSnapshot] = []
        for entry in entries:
            try:
                kind = classify_entry(entry)
                if kind is None:
                    continue
                snapshot = FilesystemSnapshot.from_entry(entry)
            except OSError as exc:
                logger.warning("Error accessing %s: %s", entry.path, exc)
                continue
            if kind == "directory":
                subdirectories.append(snapshot)
            elif not self.ignore_rules.should_ignore_file(snapshot.path, directory):
                files.append(snapshot)
        return DirectoryBatch(directory=directory, entries=tuple(files + subdirectories))


def _cancelled(cancel: Optional[CancellationSignal]) -> bool:
    return cancel is not None and cancel.is_set()


def _read_directory(directory: Path) -> Optional[list[os.DirEntry]]:
    try:
        with os.scandir(directory) as it:
            return sorted(it, key=lambda entry: entry.name)
    except OSError as exc:
        logger.warning("Access denied to directory %s: %s", directory, exc)
        return None
