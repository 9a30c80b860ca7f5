from __future__ import annotations

from typing import Optional

from ..config import LibraryKind
from ..entities import MediaEntity, MediaItem, MediaPart, Photo, PhotoAlbum, Picture, PictureSet
from ..extensions import is_image
from ..snapshot import FilesystemSnapshot
from .protocols import ResolveContext

# Photos and pictures libraries share the layout rules but keep distinct entity types.
ENTITY_TYPES = {
    LibraryKind.PHOTOS: (PhotoAlbum, Photo),
    LibraryKind.PICTURES: (PictureSet, Picture),
}


class PhotoAlbumResolver:
    """Turns a folder of images into a PhotoAlbum (photos libraries) or a
    PictureSet (pictures libraries).

    Flat, date-based (``2024/01``) and event-based layouts all work: folders
    holding only subfolders defer so the leaves become the albums.
    """

    name = "photo_album"
    priority = 10

    def resolve(self, ctx: ResolveContext) -> Optional[MediaEntity]:
        types = ENTITY_TYPES.get(ctx.library_kind)
        if types is None:
            return None
        if not ctx.snapshot.is_directory:
            return None
        if ctx.is_library_root:
            return None

        images = sorted(
            (c for c in ctx.child_entries() if not c.is_directory and is_image(c.extension)),
            key=lambda c: (c.name.casefold(), c.name),
        )
        if not images:
            return None

        album_type, item_type = types
        album = album_type(title=ctx.snapshot.name, library_section_id=ctx.library_section_id)
        for index, snapshot in enumerate(images, start=1):
            album.add_child(_build_photo(ctx, snapshot, index, item_type))
        return album


def _build_photo(
    ctx: ResolveContext,
    snapshot: FilesystemSnapshot,
    index: int,
    item_type: type[MediaEntity],
) -> MediaEntity:
    part = MediaPart(
        file=snapshot.path,
        size=snapshot.size_bytes,
        modified_at=snapshot.last_modified_utc,
    )
    item = MediaItem(
        section_location_id=ctx.section_location_id,
        file_format=snapshot.extension.lstrip(".").lower(),
        file_size_bytes=snapshot.size_bytes,
        parts=[part],
    )
    return item_type(
        title=snapshot.stem,
        library_section_id=ctx.library_section_id,
        index=index,
        media_items=[item],
    )
