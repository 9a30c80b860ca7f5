from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..entities import MediaEntity
from .protocols import ResolveContext, Resolver

logger = logging.getLogger(__name__)


class ResolverRegistry:
    """
    Priority-ordered resolver dispatch.

    Resolvers are sorted ascending by ``priority``. The sort is stable, so
    resolvers sharing a priority keep their registration order and the one
    registered first is always tried first. ``resolve_directory`` returns the
    first non-``None`` result and stops there.
    """

    def __init__(self, resolvers: Iterable[Resolver] = ()) -> None:
        resolvers = list(resolvers)
        seen: set[str] = set()
        for resolver in resolvers:
            name = getattr(resolver, "name", "")
            if not name:
                raise ValueError(f"Resolver {resolver!r} has no name")
            if name in seen:
                raise ValueError(f"Resolver registered twice: {name}")
            priority = getattr(resolver, "priority", None)
            if not isinstance(priority, int) or isinstance(priority, bool):
                raise ValueError(f"Resolver {name} has invalid priority {priority!r}")
            seen.add(name)
        self._resolvers = tuple(sorted(resolvers, key=lambda r: r.priority))

    @property
    def resolvers(self) -> tuple[Resolver, ...]:
        return self._resolvers

    @property
    def names(self) -> list[str]:
        return [resolver.name for resolver in self._resolvers]

    def resolve_directory(self, ctx: ResolveContext) -> Optional[MediaEntity]:
        for resolver in self._resolvers:
            try:
                entity = resolver.resolve(ctx)
            except Exception:
                logger.exception("Resolver %s failed on %s", resolver.name, ctx.snapshot.path)
                continue
            if entity is not None:
                logger.debug("Resolver %s claimed %s", resolver.name, ctx.snapshot.path)
                return entity
        return None
