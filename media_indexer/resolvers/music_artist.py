from __future__ import annotations

from typing import Optional

from ..config import LibraryKind
from ..entities import MediaEntity
from .protocols import ResolveContext


class MusicArtistResolver:
    """Artist folders in music libraries.

    Artists are shared across libraries and are created by metadata agents
    once album metadata is fetched, so the scan never materialises them here.
    The resolver runs after the album resolver and always declines, leaving
    artist folders unclaimed while their album subfolders resolve on their own.
    """

    name = "music_artist"
    priority = 20

    def resolve(self, ctx: ResolveContext) -> Optional[MediaEntity]:
        if ctx.library_kind != LibraryKind.MUSIC:
            return None
        if not ctx.snapshot.is_directory:
            return None
        return None
