from __future__ import annotations

import time
from typing import Any

from ...observability.logging import get_logger
from ..contracts import CallNext, PipelineBehavior, Request

log = get_logger("pipeline")


class PerformanceBehavior(PipelineBehavior):
    """Warns about requests slower than `threshold_ms`, whether or not they fail."""

    def __init__(self, *, threshold_ms: int = 1000):
        self.threshold_ms = int(threshold_ms)

    async def handle(self, request: Request, call_next: CallNext) -> Any:
        start = time.perf_counter()
        try:
            return await call_next()
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000.0
            if elapsed_ms > self.threshold_ms:
                log.warning(
                    "pipeline_request_slow",
                    request_type=type(request).__name__,
                    elapsed_ms=round(elapsed_ms, 2),
                    threshold_ms=self.threshold_ms,
                )
