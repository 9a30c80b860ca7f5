from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional, Protocol


class IgnoreRule(Protocol):
    name: str

    def should_ignore_directory(self, path: Path, parent: Optional[Path]) -> bool: ...

    def should_ignore_file(self, path: Path, parent: Optional[Path]) -> bool: ...


class IgnoreRuleEngine:
    """
    Ordered collection of ignore rules.

    Registration order is precedence and the first matching rule wins. The
    engine holds no state beyond its rule tuple, so one instance can be shared
    by concurrent scans.
    """

    def __init__(self, rules: Iterable[IgnoreRule] = ()) -> None:
        rules = tuple(rules)
        seen: set[str] = set()
        for rule in rules:
            name = getattr(rule, "name", "")
            if not name:
                raise ValueError(f"Ignore rule {rule!r} has no name")
            if name in seen:
                raise ValueError(f"Ignore rule registered twice: {name}")
            seen.add(name)
        self._rules = rules

    @property
    def rules(self) -> tuple[IgnoreRule, ...]:
        return self._rules

    def match_directory(self, path: Path, parent: Optional[Path]) -> Optional[IgnoreRule]:
        for rule in self._rules:
            if rule.should_ignore_directory(path, parent):
                return rule
        return None

    def match_file(self, path: Path, parent: Optional[Path]) -> Optional[IgnoreRule]:
        for rule in self._rules:
            if rule.should_ignore_file(path, parent):
                return rule
        return None

    def should_ignore_directory(self, path: Path, parent: Optional[Path]) -> bool:
        return self.match_directory(path, parent) is not None

    def should_ignore_file(self, path: Path, parent: Optional[Path]) -> bool:
        return self.match_file(path, parent) is not None
