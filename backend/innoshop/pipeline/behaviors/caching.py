from __future__ import annotations

from datetime import timedelta
from typing import Any

from ...observability.logging import get_logger
from ..cache import ResponseCache
from ..contracts import Cacheable, CallNext, PipelineBehavior, Request

log = get_logger("pipeline")

_MISS = object()


class CachingBehavior(PipelineBehavior):
    def __init__(self, cache: ResponseCache, *, default_ttl: timedelta = timedelta(minutes=5)):
        self.cache = cache
        self.default_ttl = default_ttl

    async def handle(self, request: Request, call_next: CallNext) -> Any:
        if not isinstance(request, Cacheable):
            return await call_next()

        if request.bypass_cache:
            log.debug("cache_bypassed", request_type=type(request).__name__)
            return await call_next()

        key = request.cache_key
        cached = self.cache.get(key, _MISS)
        if cached is not _MISS:
            log.debug("cache_hit", cache_key=key)
            return cached

        log.debug("cache_miss", cache_key=key)
        response = await call_next()

        ttl = self.default_ttl if request.cache_ttl is None else request.cache_ttl
        self.cache.set(key, response, ttl)
        log.debug("cache_stored", cache_key=key, ttl_seconds=ttl.total_seconds())
        return response
