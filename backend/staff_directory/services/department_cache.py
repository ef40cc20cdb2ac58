from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60 * 60


class DepartmentCache:
    """Time-bounded cache of the distinct department list.

    The cached entry is a single immutable tuple that is replaced or dropped
    as a whole. A load that started before an invalidation does not store its
    result.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entry: tuple[float, tuple[str, ...]] | None = None
        self._generation = 0

    def peek(self) -> list[str] | None:
        entry = self._entry
        if entry is None or self._clock() >= entry[0]:
            return None
        return list(entry[1])

    async def get(self, loader: Callable[[], Awaitable[list[str]]]) -> list[str]:
        cached = self.peek()
        if cached is not None:
            return cached

        generation = self._generation
        departments = tuple(sorted({d for d in await loader() if d}))
        if generation == self._generation:
            self._entry = (self._clock() + self.ttl_seconds, departments)
        else:
            logger.debug("Department list changed during load; result not cached")
        return list(departments)

    def invalidate(self) -> None:
        self._generation += 1
        self._entry = None


department_cache = DepartmentCache()
