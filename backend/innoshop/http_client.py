from __future__ import annotations

from typing import Any

import httpx

from .security.tokens import TokenService


class ServiceHttpClient:
    """
    Base for calls to a sibling service.

    Each call opens a short-lived `httpx.AsyncClient` against `base_url` with
    the configured timeout and a freshly minted service bearer token. There
    are no retries.
    """

    service_name = "service"

    def __init__(
        self,
        *,
        base_url: str,
        tokens: TokenService,
        caller: str,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = str(base_url or "").rstrip("/") + "/"
        self._tokens = tokens
        self._caller = caller
        self._timeout = float(timeout_seconds)
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._tokens.generate_service_token(self._caller)}",
            "Accept": "application/json",
        }

    def client(self) -> httpx.AsyncClient:
        kwargs: dict[str, Any] = {
            "base_url": self.base_url,
            "timeout": self._timeout,
            "headers": self._headers(),
        }
        if self._transport is not None:
            kwargs["transport"] = self._transport
        return httpx.AsyncClient(**kwargs)
