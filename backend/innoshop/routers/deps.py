from __future__ import annotations

from fastapi import Request

from ..pipeline.mediator import Mediator


def get_mediator(request: Request) -> Mediator:
    return request.app.state.mediator


def no_cache_requested(request: Request) -> bool:
    """True when the caller sent `Cache-Control: no-cache` (or `no-store`)."""
    raw = str(request.headers.get("cache-control") or "").lower()
    directives = {d.strip() for d in raw.split(",")}
    return "no-cache" in directives or "no-store" in directives
