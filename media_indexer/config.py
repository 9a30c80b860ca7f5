from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator


class LibraryKind(str, Enum):
    MOVIES = "movies"
    TV_SHOWS = "tv_shows"
    MUSIC_VIDEOS = "music_videos"
    HOME_VIDEOS = "home_videos"
    MUSIC = "music"
    AUDIOBOOKS = "audiobooks"
    PODCASTS = "podcasts"
    PHOTOS = "photos"
    PICTURES = "pictures"
    BOOKS = "books"
    COMICS = "comics"
    MANGA = "manga"
    MAGAZINES = "magazines"
    GAMES = "games"


class LocationSettings(BaseModel):
    id: int
    path: Path

    @field_validator("path", mode="before")
    @classmethod
    def _expand_path(cls, value: str | Path) -> Path:
        return Path(value).expanduser().resolve()


class LibrarySettings(BaseModel):
    name: str
    kind: LibraryKind
    section_id: int
    locations: List[LocationSettings]

    def location_for(self, path: Path) -> Optional[LocationSettings]:
        """Return the location whose root contains ``path``, deepest root first."""
        candidates = sorted(self.locations, key=lambda loc: len(loc.path.parts), reverse=True)
        for location in candidates:
            if path == location.path or location.path in path.parents:
                return location
        return None


class ScannerSettings(BaseModel):
    exclude_patterns: List[str] = Field(default_factory=list)
    disabled_ignore_rules: List[str] = Field(default_factory=list)
    disabled_resolvers: List[str] = Field(default_factory=list)
    resolver_priorities: Dict[str, int] = Field(default_factory=dict)


class WatchSettings(BaseModel):
    worker_concurrency: int = Field(default=2, ge=1)


class Settings(BaseModel):
    libraries: List[LibrarySettings]
    scanner: ScannerSettings = ScannerSettings()
    watch: WatchSettings = WatchSettings()

    @model_validator(mode="after")
    def _unique_library_names(self) -> "Settings":
        seen: set[str] = set()
        for library in self.libraries:
            if library.name in seen:
                raise ValueError(f"Duplicate library name: {library.name}")
            seen.add(library.name)
        return self

    @classmethod
    def load(cls, path: Path) -> "Settings":
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
        return cls.model_validate(raw)

    def library(self, name: str) -> Optional[LibrarySettings]:
        for library in self.libraries:
            if library.name == name:
                return library
        return None

    def library_for(self, path: Path) -> Optional[tuple[LibrarySettings, LocationSettings]]:
        best: Optional[tuple[LibrarySettings, LocationSettings]] = None
        for library in self.libraries:
            location = library.location_for(path)
            if location is None:
                continue
            if best is None or len(location.path.parts) > len(best[1].path.parts):
                best = (library, location)
        return best

    @property
    def roots(self) -> List[Path]:
        return [location.path for library in self.libraries for location in library.locations]


def find_config(explicit_path: Optional[Path]) -> Path:
    if explicit_path:
        return explicit_path
    cwd = Path.cwd()
    for candidate in (cwd / "config.yaml", cwd / "config.yml"):
        if candidate.exists():
            return candidate
    raise FileNotFoundError("Could not find config.yaml - pass --config explicitly.")
