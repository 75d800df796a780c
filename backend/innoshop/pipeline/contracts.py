from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

CallNext = Callable[[], Awaitable[Any]]


class Request(BaseModel):
    """
    Base class for pipeline requests (commands and queries).

    A request carries every input its handler needs and is immutable once
    built, so behaviors can read it but never change it.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    @classmethod
    def request_type(cls) -> str:
        return cls.__name__


@runtime_checkable
class Cacheable(Protocol):
    """Opt-in capability for requests whose responses may be cached."""

    @property
    def cache_key(self) -> str: ...

    @property
    def cache_ttl(self) -> timedelta | None: ...

    @property
    def bypass_cache(self) -> bool: ...


Handler = Callable[[Any], Awaitable[Any]]


class PipelineBehavior(ABC):
    """One cross-cutting step around every request.

    `call_next` runs the rest of the chain; a behavior calls it at most once.
    """

    @abstractmethod
    async def handle(self, request: Request, call_next: CallNext) -> Any:
        raise NotImplementedError
