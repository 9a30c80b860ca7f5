from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Optional

from ..config import LibraryKind
from ..entities import MediaItem, MediaPart, Movie
from ..extensions import is_video
from ..ignore.core import SAMPLE_RE
from ..snapshot import FilesystemSnapshot, list_children
from .protocols import ResolveContext

logger = logging.getLogger(__name__)

EXTRAS_FOLDER_NAMES = frozenset(
    {
        "extras",
        "extra",
        "bonus",
        "bonus features",
        "bonus-feature",
        "bonus-featurettes",
        "featurette",
        "featurettes",
        "behind the scenes",
        "behind-the-scenes",
        "deleted scene",
        "deleted scenes",
        "deleted-scenes",
        "interview",
        "interviews",
        "scene",
        "scenes",
        "short",
        "shorts",
        "trailer",
        "trailers",
        "teaser",
        "teasers",
        "promo",
        "promos",
        "preview",
        "previews",
        "bloopers",
        "other",
    }
)

DVD_FOLDER = "VIDEO_TS"
BLURAY_FOLDER = "BDMV"
DVD_INDEX_FILE = "VIDEO_TS.IFO"

# movie-cd1.avi, movie part2.mkv, movie.pt.3.mp4
PART_RE = re.compile(r"(?:^|[\W_])(?:cd|disc|part|pt)[ _.-]?(\d{1,2})", re.IGNORECASE)
# Local-extras suffixes: "Movie - trailer.mkv", "Movie_featurette.mp4", ...
EXTRAS_NAME_RE = re.compile(
    r"""
    (?:^|[\W_])
    (
      behind[\s._-]?the[\s._-]?scenes
    | deleted[\s._-]?scenes?
    | featurettes?
    | interviews?
    | bloopers?
    | scenes?
    | shorts?
    | teasers?
    | trailers?
    | promos?
    | previews?
    | bonus(?:[\s._-]feature(?:tte)?s?)?
    | extras?
    )
    $
    """,
    re.IGNORECASE | re.VERBOSE,
)


def is_extras_folder(name: str) -> bool:
    return name.lower() in EXTRAS_FOLDER_NAMES


def is_ignored_video_name(name: str) -> bool:
    """Sidecars, samples and extras-like files are never the main feature."""
    lower = name.lower()
    if lower.endswith((".nfo", ".srt")):
        return True
    if SAMPLE_RE.search(name):
        return True
    return bool(EXTRAS_NAME_RE.search(Path(name).stem))


def stacked_parts(files: list[FilesystemSnapshot]) -> list[FilesystemSnapshot]:
    """Files carrying a part marker, ordered by part number; empty unless two or more."""
    numbered: list[tuple[int, str, FilesystemSnapshot]] = []
    for snapshot in files:
        match = PART_RE.search(snapshot.name)
        if match:
            numbered.append((int(match.group(1)), snapshot.name, snapshot))
    if len(numbered) < 2:
        return []
    numbered.sort(key=lambda item: (item[0], item[1]))
    return [snapshot for _, _, snapshot in numbered]


class MovieResolver:
    """
    Resolves one folder per movie in movie libraries.

    In order of precedence a folder is:

      - an optical disc rip, when it holds a ``VIDEO_TS`` folder with ``.vob``
        files, a ``BDMV`` folder with ``.m2ts`` streams anywhere below it, or a
        loose ``VIDEO_TS.IFO``;
      - a stacked movie, when two or more video files carry ``cd1`` /
        ``part2`` style markers;
      - otherwise the largest remaining video file.

    Extras folders, samples, sidecars and extras-like file names are never
    picked as the feature. Folders inside a disc structure or named like an
    extras folder are left unclaimed.
    """

    name = "movie"
    priority = 10

    def resolve(self, ctx: ResolveContext) -> Optional[Movie]:
        if ctx.library_kind != LibraryKind.MOVIES:
            return None
        if not ctx.snapshot.is_directory:
            return None
        if ctx.is_library_root:
            return None
        if is_extras_folder(ctx.snapshot.name) or _inside_disc_structure(ctx.snapshot.path):
            return None

        children = [
            c for c in ctx.child_entries() if not (c.is_directory and is_extras_folder(c.name))
        ]

        for child in children:
            if child.is_directory:
                if _is_dvd_folder(child):
                    return self._disc_movie(ctx, child, "dvd")
                if _is_bluray_folder(child):
                    return self._disc_movie(ctx, child, "bluray")
            elif child.name.upper() == DVD_INDEX_FILE:
                return self._disc_movie(ctx, ctx.snapshot, "dvd")

        videos = [
            c
            for c in children
            if not c.is_directory and is_video(c.extension) and not is_ignored_video_name(c.name)
        ]
        if not videos:
            return None

        parts = stacked_parts(videos)
        if not parts:
            # Largest file wins; name breaks ties so the pick is stable.
            parts = [min(videos, key=lambda c: (-(c.size_bytes or 0), c.name))]
        return self._file_movie(ctx, parts)

    def _disc_movie(
        self,
        ctx: ResolveContext,
        structure: FilesystemSnapshot,
        disc_type: str,
    ) -> Movie:
        logger.debug("Disc structure (%s) at %s", disc_type, structure.path)
        part = MediaPart(file=structure.path, modified_at=structure.last_modified_utc)
        item = MediaItem(
            section_location_id=ctx.section_location_id,
            file_format=disc_type,
            parts=[part],
            disc_type=disc_type,
        )
        return Movie(
            title=ctx.snapshot.name,
            library_section_id=ctx.library_section_id,
            media_items=[item],
        )

    def _file_movie(self, ctx: ResolveContext, files: list[FilesystemSnapshot]) -> Movie:
        parts = [
            MediaPart(file=f.path, size=f.size_bytes, modified_at=f.last_modified_utc)
            for f in files
        ]
        sizes = [p.size for p in parts if p.size is not None]
        item = MediaItem(
            section_location_id=ctx.section_location_id,
            file_format=files[0].extension.lstrip(".").lower(),
            file_size_bytes=sum(sizes) if sizes else None,
            parts=parts,
        )
        return Movie(
            title=ctx.snapshot.name,
            library_section_id=ctx.library_section_id,
            media_items=[item],
        )


def _inside_disc_structure(path: Path) -> bool:
    # BDMV/STREAM and BDMV/BACKUP/CLIPINF sit at most two levels below.
    return any(part.upper() in (DVD_FOLDER, BLURAY_FOLDER) for part in path.parts[-3:])


def _is_dvd_folder(folder: FilesystemSnapshot) -> bool:
    if folder.name.upper() != DVD_FOLDER:
        return False
    return any(c.extension.lower() == ".vob" for c in list_children(folder.path))


def _is_bluray_folder(folder: FilesystemSnapshot) -> bool:
    if folder.name.upper() != BLURAY_FOLDER:
        return False
    for _, _, filenames in os.walk(folder.path, onerror=_log_walk_error):
        if any(name.lower().endswith(".m2ts") for name in filenames):
            return True
    return False


def _log_walk_error(exc: OSError) -> None:
    logger.debug("Cannot read %s: %s", exc.filename, exc)
