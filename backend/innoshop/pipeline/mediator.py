from __future__ import annotations

from collections.abc import Sequence
from datetime import timedelta
from functools import partial
from typing import Any

from ..settings import Settings
from .behaviors.caching import CachingBehavior
from .behaviors.exception_handling import ExceptionHandlingBehavior
from .behaviors.logging_behavior import LoggingBehavior
from .behaviors.performance import PerformanceBehavior
from .behaviors.validation import ValidationBehavior
from .cache import ResponseCache
from .contracts import CallNext, Handler, PipelineBehavior, Request
from .validation import Validator, ValidatorRegistry


class Mediator:
    """
    Dispatches a request to its handler through the behavior chain.

    Behaviors run in list order (first = outermost); the handler is the last
    step. Requests without a registered handler fail inside the chain, so they
    surface like any other unexpected error.
    """

    def __init__(
        self,
        behaviors: Sequence[PipelineBehavior] = (),
        *,
        validators: ValidatorRegistry | None = None,
    ):
        self.behaviors = list(behaviors)
        self.validators = validators or ValidatorRegistry()
        self._handlers: dict[type, Handler] = {}

    def register(self, request_type: type[Request], handler: Handler) -> None:
        self._handlers[request_type] = handler

    def add_validator(self, request_type: type[Request], validator: Validator) -> None:
        self.validators.add(request_type, validator)

    async def send(self, request: Request) -> Any:
        handler = self._handlers.get(type(request))

        async def terminal() -> Any:
            if handler is None:
                raise LookupError(f"No handler registered for {type(request).__name__}")
            return await handler(request)

        call: CallNext = terminal
        for behavior in reversed(self.behaviors):
            call = partial(behavior.handle, request, call)
        return await call()


def build_mediator(settings: Settings, *, cache: ResponseCache) -> Mediator:
    """Mediator with the standard chain: logging, performance, caching, validation, exceptions."""
    validators = ValidatorRegistry()
    behaviors: list[PipelineBehavior] = [
        LoggingBehavior(),
        PerformanceBehavior(threshold_ms=settings.performance_threshold_ms),
        CachingBehavior(cache, default_ttl=timedelta(seconds=settings.cache_default_ttl_seconds)),
        ValidationBehavior(validators),
        ExceptionHandlingBehavior(),
    ]
    return Mediator(behaviors, validators=validators)
