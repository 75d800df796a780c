from __future__ import annotations

import asyncio
from typing import Any

from ...errors import ValidationError
from ...observability.logging import get_logger
from ..contracts import CallNext, PipelineBehavior, Request
from ..validation import ValidationResult, ValidatorRegistry

log = get_logger("pipeline")


class ValidationBehavior(PipelineBehavior):
    def __init__(self, validators: ValidatorRegistry):
        self.validators = validators

    async def handle(self, request: Request, call_next: CallNext) -> Any:
        validators = self.validators.for_request(request)
        if not validators:
            return await call_next()

        name = type(request).__name__
        log.debug("validation_started", request_type=name, validator_count=len(validators))

        # Every validator runs; failures are merged in registration order.
        results = await asyncio.gather(*(v.validate(request) for v in validators))
        merged = ValidationResult()
        for r in results:
            merged.merge(r)

        if not merged.is_valid:
            log.warning(
                "validation_failed",
                request_type=name,
                errors="; ".join(m for msgs in merged.errors.values() for m in msgs),
            )
            raise ValidationError(errors=merged.errors)

        return await call_next()
