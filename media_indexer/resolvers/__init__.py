from __future__ import annotations

import logging

from ..config import ScannerSettings
from .movie import MovieResolver, is_extras_folder, stacked_parts
from .music_album import MusicAlbumResolver, disc_number, is_disc_folder, parse_track_name
from .music_artist import MusicArtistResolver
from .photo_album import PhotoAlbumResolver
from .protocols import ResolveContext, Resolver
from .registry import ResolverRegistry

logger = logging.getLogger(__name__)

__all__ = [
    "MovieResolver",
    "MusicAlbumResolver",
    "MusicArtistResolver",
    "PhotoAlbumResolver",
    "ResolveContext",
    "Resolver",
    "ResolverRegistry",
    "build_resolvers",
    "disc_number",
    "is_disc_folder",
    "is_extras_folder",
    "parse_track_name",
    "stacked_parts",
]


def build_resolvers(settings: ScannerSettings) -> ResolverRegistry:
    """Compose the default resolver set; the list order is the tie-break order."""
    disabled = {name.strip() for name in settings.disabled_resolvers if name and name.strip()}
    resolvers: list[Resolver] = [
        MusicAlbumResolver(),
        PhotoAlbumResolver(),
        MovieResolver(),
        MusicArtistResolver(),
    ]
    kept: list[Resolver] = []
    for resolver in resolvers:
        if resolver.name in disabled:
            logger.debug("Resolver %s disabled by configuration", resolver.name)
            continue
        override = settings.resolver_priorities.get(resolver.name)
        if override is not None:
            resolver.priority = override
        kept.append(resolver)
    unknown = set(settings.resolver_priorities) - {r.name for r in resolvers}
    for name in sorted(unknown):
        logger.warning("Priority configured for unknown resolver %s", name)
    return ResolverRegistry(kept)
