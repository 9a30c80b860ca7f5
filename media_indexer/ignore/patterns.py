from __future__ import annotations

import fnmatch
from pathlib import Path
from typing import Iterable, Optional


class ExcludePatternIgnoreRule:
    """Glob patterns from ``scanner.exclude_patterns``, tested against both the
    full path and the bare name."""

    name = "exclude_patterns"

    def __init__(self, patterns: Iterable[str]) -> None:
        self.patterns = tuple(p for p in patterns if p)

    def _matches(self, path: Path) -> bool:
        full = str(path)
        for pattern in self.patterns:
            if fnmatch.fnmatch(full, pattern) or fnmatch.fnmatch(path.name, pattern):
                return True
        return False

    def should_ignore_directory(self, path: Path, parent: Optional[Path]) -> bool:
        return self._matches(path)

    def should_ignore_file(self, path: Path, parent: Optional[Path]) -> bool:
        return self._matches(path)
