from __future__ import annotations

import weakref
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, ClassVar, Dict, Iterator, List, Optional


@dataclass
class MediaPart:
    file: Path
    size: Optional[int] = None
    modified_at: Optional[datetime] = None

    def to_record(self) -> Dict[str, object]:
        return {
            "file": str(self.file),
            "size": self.size,
            "modified_at": self.modified_at.isoformat() if self.modified_at else None,
        }


@dataclass
class MediaItem:
    section_location_id: int
    file_format: str = ""
    file_size_bytes: Optional[int] = None
    parts: List[MediaPart] = field(default_factory=list)
    # "dvd" or "bluray" for optical disc structures
    disc_type: Optional[str] = None

    @property
    def is_disc(self) -> bool:
        return self.disc_type is not None

    def to_record(self) -> Dict[str, object]:
        return {
            "section_location_id": self.section_location_id,
            "file_format": self.file_format,
            "file_size_bytes": self.file_size_bytes,
            "disc_type": self.disc_type,
            "parts": [part.to_record() for part in self.parts],
        }


@dataclass
class MediaEntity:
    """A resolved node. ``children`` owns the subtree; ``parent`` is a weak
    back-reference kept for lookups only."""

    kind: ClassVar[str] = "entity"

    title: str
    sort_title: str = ""
    library_section_id: int = 0
    index: Optional[int] = None
    children: List["MediaEntity"] = field(default_factory=list)
    _parent_ref: Optional[weakref.ReferenceType] = field(
        default=None, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        if not self.sort_title:
            self.sort_title = self.title

    @property
    def parent(self) -> Optional["MediaEntity"]:
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    def add_child(self, child: "MediaEntity") -> "MediaEntity":
        child._parent_ref = weakref.ref(self)
        self.children.append(child)
        return child

    def insert_child(self, position: int, child: "MediaEntity") -> "MediaEntity":
        child._parent_ref = weakref.ref(self)
        self.children.insert(position, child)
        return child

    def walk(self) -> Iterator["MediaEntity"]:
        yield self
        for child in self.children:
            yield from child.walk()

    def to_record(self) -> Dict[str, object]:
        payload: Dict[str, Any] = {
            "kind": self.kind,
            "title": self.title,
            "sort_title": self.sort_title,
            "library_section_id": self.library_section_id,
            "index": self.index,
        }
        payload.update(self._extra_record())
        payload["children"] = [child.to_record() for child in self.children]
        return payload

    def _extra_record(self) -> Dict[str, object]:
        return {}


@dataclass
class ReleaseGroup(MediaEntity):
    kind: ClassVar[str] = "release_group"


@dataclass
class Release(MediaEntity):
    kind: ClassVar[str] = "release"


@dataclass
class Medium(MediaEntity):
    kind: ClassVar[str] = "medium"

    @property
    def tracks(self) -> List["Track"]:
        return [child for child in self.children if isinstance(child, Track)]


@dataclass
class Track(MediaEntity):
    kind: ClassVar[str] = "track"

    absolute_index: Optional[int] = None
    media_items: List[MediaItem] = field(default_factory=list)

    def _extra_record(self) -> Dict[str, object]:
        return {
            "absolute_index": self.absolute_index,
            "media_items": [item.to_record() for item in self.media_items],
        }


@dataclass
class PhotoAlbum(MediaEntity):
    kind: ClassVar[str] = "photo_album"


@dataclass
class Photo(MediaEntity):
    kind: ClassVar[str] = "photo"

    media_items: List[MediaItem] = field(default_factory=list)

    def _extra_record(self) -> Dict[str, object]:
        return {"media_items": [item.to_record() for item in self.media_items]}


@dataclass
class PictureSet(MediaEntity):
    kind: ClassVar[str] = "picture_set"


@dataclass
class Picture(MediaEntity):
    kind: ClassVar[str] = "picture"

    media_items: List[MediaItem] = field(default_factory=list)

    def _extra_record(self) -> Dict[str, object]:
        return {"media_items": [item.to_record() for item in self.media_items]}


@dataclass
class Movie(MediaEntity):
    kind: ClassVar[str] = "movie"

    media_items: List[MediaItem] = field(default_factory=list)

    def _extra_record(self) -> Dict[str, object]:
        return {"media_items": [item.to_record() for item in self.media_items]}
