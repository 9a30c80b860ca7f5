from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from ..config import LibraryKind
from ..entities import MediaEntity
from ..snapshot import FilesystemSnapshot, list_children


@dataclass(frozen=True)
class ResolveContext:
    snapshot: FilesystemSnapshot
    library_kind: LibraryKind
    is_library_root: bool = False
    children: Optional[tuple[FilesystemSnapshot, ...]] = None
    library_section_id: int = 0
    section_location_id: int = 0

    def child_entries(self) -> tuple[FilesystemSnapshot, ...]:
        """Prefetched children when supplied, otherwise a fresh read-only listing."""
        if self.children is not None:
            return self.children
        if not self.snapshot.is_directory:
            return ()
        return tuple(list_children(self.snapshot.path))


class Resolver(Protocol):
    name: str
    priority: int

    def resolve(self, ctx: ResolveContext) -> Optional[MediaEntity]: ...
