from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Iterator, Optional

from watchdog.observers import Observer

from .config import LibrarySettings, LocationSettings, Settings
from .entities import MediaEntity
from .ignore import build_ignore_rules
from .resolvers import ResolveContext, ResolverRegistry, build_resolvers
from .scanner import CancellationSignal, LibraryScanner
from .snapshot import FilesystemSnapshot
from .watchdog_handler import WatchHandler

if TYPE_CHECKING:
    from .sink import EntitySink

logger = logging.getLogger(__name__)


class IndexerError(Exception):
    """Raised for requests the indexer cannot serve, e.g. a path outside every library."""


@dataclass(frozen=True)
class ScanWorkItem:
    library: LibrarySettings
    location: LocationSettings
    snapshot: FilesystemSnapshot
    children: tuple[FilesystemSnapshot, ...]
    is_root: bool

    def context(self) -> ResolveContext:
        return ResolveContext(
            snapshot=self.snapshot,
            library_kind=self.library.kind,
            is_library_root=self.is_root,
            children=self.children,
            library_section_id=self.library.section_id,
            section_location_id=self.location.id,
        )


@dataclass(frozen=True)
class ResolvedItem:
    work_item: ScanWorkItem
    entity: MediaEntity

    @property
    def path(self) -> Path:
        return self.work_item.snapshot.path

    def to_record(self) -> dict[str, object]:
        return {
            "library": self.work_item.library.name,
            "library_section_id": self.work_item.library.section_id,
            "section_location_id": self.work_item.location.id,
            "path": str(self.path),
            "entity": self.entity.to_record(),
        }


@dataclass
class ScanStats:
    directories: int = 0
    resolved: int = 0
    unclaimed: int = 0
    libraries: set[str] = field(default_factory=set)

    def merge(self, other: "ScanStats") -> None:
        self.directories += other.directories
        self.resolved += other.resolved
        self.unclaimed += other.unclaimed
        self.libraries |= other.libraries


class LibraryIndexer:
    """
    Wires the streaming scanner to the resolver registry.

    Every batch the scanner yields becomes one work item for the batch's
    directory, with the batch entries as prefetched children. Files are
    claimed through their directory, never on their own.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        scanner: Optional[LibraryScanner] = None,
        registry: Optional[ResolverRegistry] = None,
    ) -> None:
        self.settings = settings
        self.scanner = scanner or LibraryScanner(build_ignore_rules(settings.scanner))
        self.registry = registry or build_resolvers(settings.scanner)

    def iter_work_items(
        self,
        library: LibrarySettings,
        location: LocationSettings,
        cancel: Optional[CancellationSignal] = None,
    ) -> Iterator[ScanWorkItem]:
        root = location.path
        try:
            root_snapshot = FilesystemSnapshot.from_path(root)
        except OSError as exc:
            logger.warning("Cannot read library root %s: %s", root, exc)
            return
        # Snapshots of subdirectories seen in a parent batch, consumed when
        # their own batch arrives.
        pending: dict[Path, FilesystemSnapshot] = {root: root_snapshot}
        try:
            for batch in self.scanner.scan_stream(root, cancel):
                snapshot = pending.pop(batch.directory, None)
                for entry in batch.subdirectories:
                    pending[entry.path] = entry
                if snapshot is None:
                    logger.debug("No snapshot captured for %s; skipping", batch.directory)
                    continue
                yield ScanWorkItem(
                    library=library,
                    location=location,
                    snapshot=snapshot,
                    children=batch.entries,
                    is_root=batch.directory == root,
                )
        finally:
            pending.clear()

    def resolve(self, item: ScanWorkItem) -> Optional[ResolvedItem]:
        entity = self.registry.resolve_directory(item.context())
        if entity is None:
            logger.debug("Skipping unclaimed directory %s", item.snapshot.path)
            return None
        return ResolvedItem(work_item=item, entity=entity)

    def iter_resolved(
        self,
        library: LibrarySettings,
        location: LocationSettings,
        cancel: Optional[CancellationSignal] = None,
    ) -> Iterator[ResolvedItem]:
        for item in self.iter_work_items(library, location, cancel):
            resolved = self.resolve(item)
            if resolved is not None:
                yield resolved

    def resolve_path(self, directory: Path) -> Optional[ResolvedItem]:
        """Resolve one directory against the library location that contains it."""
        directory = Path(directory).expanduser().resolve()
        owner = self.settings.library_for(directory)
        if owner is None:
            raise IndexerError(f"{directory} is not inside any configured library")
        library, location = owner
        batch = self.scanner.collect_directory(directory)
        if batch is None:
            logger.debug("Nothing to resolve at %s", directory)
            return None
        try:
            snapshot = FilesystemSnapshot.from_path(directory)
        except OSError as exc:
            logger.warning("Cannot read %s: %s", directory, exc)
            return None
        item = ScanWorkItem(
            library=library,
            location=location,
            snapshot=snapshot,
            children=batch.entries,
            is_root=directory == location.path,
        )
        return self.resolve(item)

    def scan_location(
        self,
        library: LibrarySettings,
        location: LocationSettings,
        sink: "EntitySink",
        cancel: Optional[CancellationSignal] = None,
    ) -> ScanStats:
        stats = ScanStats(libraries={library.name})
        logger.debug("Scanning %s (%s)", location.path, library.name)
        for item in self.iter_work_items(library, location, cancel):
            stats.directories += 1
            resolved = self.resolve(item)
            if resolved is None:
                stats.unclaimed += 1
                continue
            stats.resolved += 1
            sink.write(resolved)
        return stats

    async def run_scan(
        self,
        sink: "EntitySink",
        *,
        library_names: Optional[list[str]] = None,
        cancel: Optional[CancellationSignal] = None,
    ) -> ScanStats:
        """Scan every configured location, one executor thread per location."""
        libraries = self._select_libraries(library_names)
        loop = asyncio.get_running_loop()
        tasks = [
            loop.run_in_executor(None, self.scan_location, library, location, sink, cancel)
            for library in libraries
            for location in library.locations
        ]
        total = ScanStats()
        for stats in await asyncio.gather(*tasks):
            total.merge(stats)
        logger.info(
            "Scan complete: %d directories, %d resolved, %d unclaimed",
            total.directories,
            total.resolved,
            total.unclaimed,
        )
        return total

    def _select_libraries(self, names: Optional[list[str]]) -> list[LibrarySettings]:
        if not names:
            return list(self.settings.libraries)
        selected: list[LibrarySettings] = []
        for name in names:
            library = self.settings.library(name)
            if library is None:
                raise IndexerError(f"Unknown library: {name}")
            selected.append(library)
        return selected

    async def run_watch(self, sink: "EntitySink", *, initial_scan: bool = True) -> None:
        """Optionally scan everything once, then re-resolve directories as they change."""
        if initial_scan:
            await self.run_scan(sink)
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[Path] = asyncio.Queue()
        handler = WatchHandler(queue, loop=loop, ignore_rules=self.scanner.ignore_rules)
        observer = Observer()
        for root in self.settings.roots:
            if not root.is_dir():
                logger.warning("Not watching missing library root %s", root)
                continue
            observer.schedule(handler, str(root), recursive=True)
        observer.start()
        workers = [
            asyncio.create_task(self._watch_worker(i, queue, sink))
            for i in range(self.settings.watch.worker_concurrency)
        ]
        try:
            while True:
                await asyncio.sleep(3600)
        except asyncio.CancelledError:
            logger.debug("Watcher stopping")
        finally:
            observer.stop()
            observer.join()
            for worker in workers:
                worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

    async def _watch_worker(self, worker_id: int, queue: asyncio.Queue[Path], sink: "EntitySink") -> None:
        loop = asyncio.get_running_loop()
        while True:
            directory = await queue.get()
            try:
                resolved = await loop.run_in_executor(None, self.resolve_path, directory)
                if resolved is not None:
                    sink.write(resolved)
            except IndexerError as exc:
                logger.debug("Ignoring change: %s", exc)
            except Exception:  # pragma: no cover - logged and ignored
                logger.exception("Worker %s failed to resolve %s", worker_id, directory)
            finally:
                queue.task_done()
