from __future__ import annotations

import uuid

import httpx

from ..http_client import ServiceHttpClient
from ..observability.logging import get_logger

log = get_logger("product_client")


class ProductServiceClient(ServiceHttpClient):
    """Calls into the product service. Failures are logged, never raised."""

    service_name = "ProductService"

    async def toggle_user_products(self, user_id: uuid.UUID, is_active: bool) -> None:
        payload = {"userId": str(user_id), "isActive": bool(is_active)}
        try:
            async with self.client() as c:
                resp = await c.post("api/products/toggle-user-products", json=payload)
        except httpx.HTTPError as exc:
            log.error(
                "product_toggle_failed",
                user_id=str(user_id),
                is_active=is_active,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return

        if resp.is_success:
            log.info("product_toggle_completed", user_id=str(user_id), is_active=is_active)
        else:
            log.warning(
                "product_toggle_rejected",
                user_id=str(user_id),
                is_active=is_active,
                status_code=resp.status_code,
                body=resp.text[:500],
            )

    async def get_user_products_count(self, user_id: uuid.UUID) -> int:
        try:
            async with self.client() as c:
                resp = await c.get(f"api/products/user/{user_id}/count")
            if not resp.is_success:
                log.warning("product_count_rejected", user_id=str(user_id), status_code=resp.status_code)
                return 0
            body = resp.json()
            if isinstance(body, dict):
                body = body.get("count", 0)
            return int(body or 0)
        except (httpx.HTTPError, ValueError, TypeError) as exc:
            log.error("product_count_failed", user_id=str(user_id), error_type=type(exc).__name__, error=str(exc))
            return 0

    async def check_health(self) -> bool:
        try:
            async with self.client() as c:
                resp = await c.get("health")
            return resp.is_success
        except httpx.HTTPError as exc:
            log.warning("product_health_failed", error_type=type(exc).__name__, error=str(exc))
            return False
