from __future__ import annotations

import time
import uuid
from datetime import datetime, timezone
from typing import Any

from ...observability.logging import get_logger
from ..contracts import CallNext, PipelineBehavior, Request

log = get_logger("pipeline")


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class LoggingBehavior(PipelineBehavior):
    async def handle(self, request: Request, call_next: CallNext) -> Any:
        correlation_id = str(uuid.uuid4())
        name = type(request).__name__
        log.info(
            "pipeline_request_started",
            correlation_id=correlation_id,
            request_type=name,
            timestamp=_utc_now(),
        )

        start = time.perf_counter()
        try:
            response = await call_next()
        except BaseException as exc:
            log.error(
                "pipeline_request_failed",
                correlation_id=correlation_id,
                request_type=name,
                elapsed_ms=round((time.perf_counter() - start) * 1000.0, 2),
                error_type=type(exc).__name__,
                error=str(exc),
                timestamp=_utc_now(),
            )
            raise

        log.info(
            "pipeline_request_completed",
            correlation_id=correlation_id,
            request_type=name,
            elapsed_ms=round((time.perf_counter() - start) * 1000.0, 2),
            timestamp=_utc_now(),
        )
        return response
