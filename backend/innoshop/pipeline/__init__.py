from __future__ import annotations

from .cache import InMemoryResponseCache, ResponseCache
from .contracts import Cacheable, CallNext, PipelineBehavior, Request
from .mediator import Mediator, build_mediator
from .validation import RuleSet, ValidationResult, Validator, ValidatorRegistry

__all__ = [
    "Cacheable",
    "CallNext",
    "InMemoryResponseCache",
    "Mediator",
    "PipelineBehavior",
    "Request",
    "ResponseCache",
    "RuleSet",
    "ValidationResult",
    "Validator",
    "ValidatorRegistry",
    "build_mediator",
]
