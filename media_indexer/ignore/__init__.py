from __future__ import annotations

import logging

from ..config import ScannerSettings
from .core import CoreIgnoreRule
from .dot_ignore import DotIgnoreRule
from .engine import IgnoreRule, IgnoreRuleEngine
from .patterns import ExcludePatternIgnoreRule

logger = logging.getLogger(__name__)

__all__ = [
    "CoreIgnoreRule",
    "DotIgnoreRule",
    "ExcludePatternIgnoreRule",
    "IgnoreRule",
    "IgnoreRuleEngine",
    "build_ignore_rules",
]


def build_ignore_rules(settings: ScannerSettings) -> IgnoreRuleEngine:
    disabled = {name.strip() for name in settings.disabled_ignore_rules if name and name.strip()}
    rules: list[IgnoreRule] = [DotIgnoreRule(), CoreIgnoreRule()]
    if settings.exclude_patterns:
        rules.append(ExcludePatternIgnoreRule(settings.exclude_patterns))
    kept = [rule for rule in rules if rule.name not in disabled]
    for rule in rules:
        if rule.name in disabled:
            logger.debug("Ignore rule %s disabled by configuration", rule.name)
    return IgnoreRuleEngine(kept)
