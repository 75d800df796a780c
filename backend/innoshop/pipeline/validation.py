from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections import defaultdict
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from pydantic.alias_generators import to_camel

Condition = Callable[[Any], bool]


@dataclass
class ValidationResult:
    """Field name -> ordered error messages. Empty means valid."""

    errors: dict[str, list[str]] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add(self, field_name: str, message: str) -> None:
        self.errors.setdefault(field_name, []).append(message)

    def merge(self, other: "ValidationResult") -> None:
        for name, messages in other.errors.items():
            for m in messages:
                self.add(name, m)


class Validator(ABC):
    @abstractmethod
    async def validate(self, request: Any) -> ValidationResult:
        raise NotImplementedError


@dataclass(frozen=True)
class Rule:
    field: str
    check: Callable[[Any], bool]
    message: str
    when: Condition | None = None

    def applies(self, request: Any) -> bool:
        return self.when is None or bool(self.when(request))


def _value(request: Any, attr: str) -> Any:
    return getattr(request, attr, None)


def is_blank(v: Any) -> bool:
    if v is None:
        return True
    if isinstance(v, str):
        return not v.strip()
    if isinstance(v, (list, tuple, set, dict)):
        return len(v) == 0
    return False


def has_value(attr: str) -> Condition:
    """Condition: the attribute is neither None nor an empty string."""
    return lambda r: _value(r, attr) not in (None, "")


# Rule helpers. Length, pattern and bound rules pass on None so that optional
# fields are only checked when supplied; pair them with not_empty when the
# field is required. Errors are keyed by the camelCase wire name of the field.


def not_empty(attr: str, message: str, *, when: Condition | None = None) -> Rule:
    return Rule(to_camel(attr), lambda r: not is_blank(_value(r, attr)), message, when)


def length(attr: str, lo: int, hi: int, message: str, *, when: Condition | None = None) -> Rule:
    def check(r: Any) -> bool:
        v = _value(r, attr)
        return v is None or lo <= len(v) <= hi

    return Rule(to_camel(attr), check, message, when)


def min_length(attr: str, lo: int, message: str, *, when: Condition | None = None) -> Rule:
    return Rule(to_camel(attr), lambda r: _value(r, attr) is None or len(_value(r, attr)) >= lo, message, when)


def max_length(attr: str, hi: int, message: str, *, when: Condition | None = None) -> Rule:
    return Rule(to_camel(attr), lambda r: _value(r, attr) is None or len(_value(r, attr)) <= hi, message, when)


def matches(attr: str, pattern: str, message: str, *, when: Condition | None = None) -> Rule:
    rx = re.compile(pattern)

    def check(r: Any) -> bool:
        v = _value(r, attr)
        return v is None or rx.search(str(v)) is not None

    return Rule(to_camel(attr), check, message, when)


def _bound(attr: str, op: Callable[[Any], bool], message: str, when: Condition | None) -> Rule:
    def check(r: Any) -> bool:
        v = _value(r, attr)
        return v is None or op(Decimal(str(v)))

    return Rule(to_camel(attr), check, message, when)


def greater_than(attr: str, limit: int | float | Decimal, message: str, *, when: Condition | None = None) -> Rule:
    return _bound(attr, lambda v: v > Decimal(str(limit)), message, when)


def greater_than_or_equal(attr: str, limit: int | float | Decimal, message: str, *, when: Condition | None = None) -> Rule:
    return _bound(attr, lambda v: v >= Decimal(str(limit)), message, when)


def less_than_or_equal(attr: str, limit: int | float | Decimal, message: str, *, when: Condition | None = None) -> Rule:
    return _bound(attr, lambda v: v <= Decimal(str(limit)), message, when)


def must(attr: str, predicate: Callable[[Any], bool], message: str, *, when: Condition | None = None) -> Rule:
    """Rule on the whole request, reported under `attr`."""
    return Rule(to_camel(attr), predicate, message, when)


class RuleSet(Validator):
    """A validator built from a flat list of rules, all of which are evaluated."""

    def __init__(self, rules: Iterable[Rule]):
        self.rules = list(rules)

    async def validate(self, request: Any) -> ValidationResult:
        result = ValidationResult()
        for rule in self.rules:
            if rule.applies(request) and not rule.check(request):
                result.add(rule.field, rule.message)
        return result


class ValidatorRegistry:
    """Validators per request type, kept in registration order."""

    def __init__(self) -> None:
        self._validators: dict[type, list[Validator]] = defaultdict(list)

    def add(self, request_type: type, validator: Validator) -> None:
        self._validators[request_type].append(validator)

    def for_request(self, request: Any) -> list[Validator]:
        return list(self._validators.get(type(request), ()))
