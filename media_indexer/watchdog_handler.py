from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler

from .ignore import IgnoreRuleEngine
from .resolvers import is_disc_folder
from .resolvers.movie import BLURAY_FOLDER, DVD_FOLDER

logger = logging.getLogger(__name__)


def album_root(directory: Path) -> Path:
    parts = directory.parts
    for position, part in enumerate(parts[1:], start=1):
        if part.upper() in (DVD_FOLDER, BLURAY_FOLDER):
            return Path(*parts[:position])
    if is_disc_folder(directory.name) and directory.parent != directory:
        return directory.parent
    return directory


class WatchHandler(FileSystemEventHandler):
    """Maps filesystem events to the directory that must be resolved again.

    A change inside ``Album/CD2`` re-resolves ``Album`` because disc folders are
    claimed by their parent. Changes below a movie's ``VIDEO_TS`` / ``BDMV``
    structure re-resolve the movie folder.
    """

    def __init__(
        self,
        queue: asyncio.Queue[Path],
        *,
        loop: asyncio.AbstractEventLoop,
        ignore_rules: Optional[IgnoreRuleEngine] = None,
    ) -> None:
        super().__init__()
        self.queue = queue
        self.loop = loop
        self.ignore_rules = ignore_rules or IgnoreRuleEngine()

    def on_created(self, event: FileSystemEvent) -> None:
        self._maybe_enqueue(event.src_path, event.is_directory, arrived=True)

    def on_modified(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._maybe_enqueue(event.src_path, False)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._maybe_enqueue(event.src_path, event.is_directory)

    def on_moved(self, event: FileSystemEvent) -> None:
        self._maybe_enqueue(event.src_path, event.is_directory)
        self._maybe_enqueue(getattr(event, "dest_path", ""), event.is_directory, arrived=True)

    def _maybe_enqueue(self, src: str | bytes, is_directory: bool, *, arrived: bool = False) -> None:
        if isinstance(src, bytes):
            src = src.decode("utf-8", errors="replace")
        if not src:
            return
        path = Path(src)
        if not is_directory and self.ignore_rules.should_ignore_file(path, path.parent):
            return
        targets = [album_root(path.parent)]
        if is_directory and arrived:
            # A whole album moved or copied in arrives as a single directory event.
            targets.append(album_root(path))
        for target in dict.fromkeys(targets):
            if self.ignore_rules.should_ignore_directory(target, target.parent):
                continue
            logger.debug("Queued directory change: %s", target)
            self.loop.call_soon_threadsafe(self.queue.put_nowait, target)
