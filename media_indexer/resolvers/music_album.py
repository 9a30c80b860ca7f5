from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from ..config import LibraryKind
from ..entities import MediaEntity, MediaItem, MediaPart, Medium, Release, ReleaseGroup, Track
from ..extensions import is_audio
from ..snapshot import FilesystemSnapshot, list_children
from .protocols import ResolveContext

logger = logging.getLogger(__name__)

DEFAULT_DISC_TITLE = "Disc 1"

# CD1, CD 1, Disc1, Disc 1, Disk_2, disc-03 ...
DISC_FOLDER_RE = re.compile(r"^(?:cd|disc|disk)[\s._-]?(\d{1,2})$", re.IGNORECASE)
# "01 - Title", "01. Title", "01 Title"
STANDARD_TRACK_RE = re.compile(r"^(\d{1,3})[-.\s]+(.+)$")
# Plex multi-disc: "201 - Title" is disc 2, track 01
MULTI_DISC_TRACK_RE = re.compile(r"^(\d)(\d{2})[-.\s]+(.+)$")


@dataclass(frozen=True, slots=True)
class ParsedTrackName:
    title: str
    track_number: Optional[int] = None
    disc_number: Optional[int] = None


def is_disc_folder(name: str) -> bool:
    return bool(DISC_FOLDER_RE.match(name))


def disc_number(name: str) -> int:
    match = DISC_FOLDER_RE.match(name)
    if match:
        return int(match.group(1))
    return 1


def parse_track_name(stem: str, multi_disc: bool = False) -> ParsedTrackName:
    if multi_disc:
        match = MULTI_DISC_TRACK_RE.match(stem)
        if match:
            title = match.group(3).strip() or stem
            return ParsedTrackName(title, int(match.group(2)), int(match.group(1)))
    match = STANDARD_TRACK_RE.match(stem)
    if match:
        title = match.group(2).strip() or stem
        return ParsedTrackName(title, int(match.group(1)))
    return ParsedTrackName(stem)


def group_by_disc(files: Iterable[FilesystemSnapshot]) -> dict[int, list[FilesystemSnapshot]]:
    """Group files by the disc digit of a Plex ``DTT`` prefix; anything else is disc 1."""
    groups: dict[int, list[FilesystemSnapshot]] = {}
    for snapshot in files:
        match = MULTI_DISC_TRACK_RE.match(snapshot.stem)
        disc = int(match.group(1)) if match else 0
        if disc <= 0:
            disc = 1
        groups.setdefault(disc, []).append(snapshot)
    return groups


class MusicAlbumResolver:
    """
    Resolves album folders in music libraries into
    ReleaseGroup -> Release -> Medium -> Track.

    Handles both folder layouts seen in the wild:

      - ``Artist/Album/01 - Title.flac`` with optional ``CD1`` / ``Disc 2``
        subfolders, one Medium per disc folder;
      - Plex-style ``101 - Title.flac`` / ``201 - Title.flac`` numbering in a
        single folder, split into one Medium per leading disc digit.

    Disc folders themselves are never resolved standalone; their parent album
    claims them.
    """

    name = "music_album"
    priority = 10

    def resolve(self, ctx: ResolveContext) -> Optional[ReleaseGroup]:
        if ctx.library_kind != LibraryKind.MUSIC:
            return None
        if not ctx.snapshot.is_directory:
            return None
        if ctx.is_library_root:
            return None
        if is_disc_folder(ctx.snapshot.name):
            return None

        children = ctx.child_entries()
        audio_files = [c for c in children if not c.is_directory and is_audio(c.extension)]
        disc_folders = sorted(
            (c for c in children if c.is_directory and is_disc_folder(c.name)),
            key=lambda c: disc_number(c.name),
        )
        if not audio_files and not disc_folders:
            # Probably an artist folder; its album subfolders are visited on their own.
            return None
        return self._build_album(ctx, audio_files, disc_folders)

    def _build_album(
        self,
        ctx: ResolveContext,
        audio_files: list[FilesystemSnapshot],
        disc_folders: list[FilesystemSnapshot],
    ) -> ReleaseGroup:
        title = ctx.snapshot.name
        group = ReleaseGroup(title=title, library_section_id=ctx.library_section_id)
        release = Release(title=title, library_section_id=ctx.library_section_id)
        group.add_child(release)

        if disc_folders:
            next_absolute = 1
            for folder in disc_folders:
                medium, next_absolute = self._build_medium(
                    ctx,
                    title=folder.name,
                    number=disc_number(folder.name),
                    files=_audio_files_in(folder.path),
                    multi_disc=False,
                    next_absolute=next_absolute,
                )
                release.add_child(medium)
            if audio_files:
                root_medium, after_root = self._build_medium(
                    ctx,
                    title=DEFAULT_DISC_TITLE,
                    number=0,
                    files=audio_files,
                    multi_disc=False,
                    next_absolute=1,
                )
                release.insert_child(0, root_medium)
                _renumber_absolute(release.children[1:], after_root)
        elif audio_files:
            groups = group_by_disc(audio_files)
            multi_disc = len(groups) > 1
            next_absolute = 1
            for number in sorted(groups):
                medium, next_absolute = self._build_medium(
                    ctx,
                    title=f"Disc {number}" if multi_disc else DEFAULT_DISC_TITLE,
                    number=number if multi_disc else 1,
                    files=groups[number],
                    multi_disc=multi_disc,
                    next_absolute=next_absolute,
                )
                release.add_child(medium)
        logger.debug(
            "Album %s: %d media, %d disc folders",
            ctx.snapshot.path,
            len(release.children),
            len(disc_folders),
        )
        return group

    def _build_medium(
        self,
        ctx: ResolveContext,
        *,
        title: str,
        number: int,
        files: list[FilesystemSnapshot],
        multi_disc: bool,
        next_absolute: int,
    ) -> tuple[Medium, int]:
        medium = Medium(title=title, library_section_id=ctx.library_section_id, index=number)
        parsed = [(snapshot, parse_track_name(snapshot.stem, multi_disc)) for snapshot in files]
        parsed.sort(
            key=lambda item: (
                item[1].track_number is None,
                item[1].track_number or 0,
                item[0].name,
            )
        )
        for position, (snapshot, info) in enumerate(parsed, start=1):
            index = info.track_number if info.track_number is not None else position
            medium.add_child(_build_track(ctx, snapshot, info, index, next_absolute))
            next_absolute += 1
        return medium, next_absolute


def _build_track(
    ctx: ResolveContext,
    snapshot: FilesystemSnapshot,
    info: ParsedTrackName,
    index: int,
    absolute_index: int,
) -> Track:
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
    return Track(
        title=info.title,
        library_section_id=ctx.library_section_id,
        index=index,
        absolute_index=absolute_index,
        media_items=[item],
    )


def _renumber_absolute(media: list[MediaEntity], start: int) -> None:
    """Single pass reassigning ``absolute_index`` over already built media."""
    counter = start
    for medium in media:
        for track in medium.children:
            if isinstance(track, Track):
                track.absolute_index = counter
                counter += 1


def _audio_files_in(folder: Path) -> list[FilesystemSnapshot]:
    return [c for c in list_children(folder) if not c.is_directory and is_audio(c.extension)]
