from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

IGNORED_DIRECTORY_NAMES = frozenset(
    name.lower()
    for name in (
        "extrafanart",
        "extrathumbs",
        ".actors",
        "lost+found",
        "#recycle",
        ".@__thumb",
        "@eaDir",
        "subs",
    )
)

IGNORED_FILE_NAMES = frozenset({"thumbs.db", ".ds_store"})

SAMPLE_RE = re.compile(r"\bsample\b", re.IGNORECASE)
TRICKPLAY_RE = re.compile(r"\.trickplay(\.\w+)?$", re.IGNORECASE)
HIDDEN_FILE_RE = re.compile(r"^\.[^.].*")
SMALL_IMAGE_RE = re.compile(r"(small|poster|albumart)\.(jpg|jpeg|png|webp)$", re.IGNORECASE)


class CoreIgnoreRule:
    """Built-in noise filter: NAS/OS housekeeping folders, hidden files,
    samples, trickplay artefacts and small artwork left by other servers."""

    name = "core"

    def should_ignore_directory(self, path: Path, parent: Optional[Path]) -> bool:
        name = path.name
        if not name:
            return False
        return name.lower() in IGNORED_DIRECTORY_NAMES

    def should_ignore_file(self, path: Path, parent: Optional[Path]) -> bool:
        name = path.name
        if not name:
            return False
        if name.lower() in IGNORED_FILE_NAMES:
            return True
        if HIDDEN_FILE_RE.match(name):
            return True
        if SAMPLE_RE.search(name) or TRICKPLAY_RE.search(name):
            return True
        return bool(SMALL_IMAGE_RE.search(name))
