from __future__ import annotations

import uuid

import httpx

from ..errors import ServiceCommunicationError, UserNotFoundError
from ..http_client import ServiceHttpClient
from ..observability.logging import get_logger

log = get_logger("user_client")


class UserServiceClient(ServiceHttpClient):
    """
    Owner checks against the user service.

    Unexpected statuses degrade to a negative answer; transport failures and
    unreadable bodies raise ServiceCommunicationError.
    """

    service_name = "UserService"

    async def _get(self, path: str, operation: str) -> httpx.Response:
        try:
            async with self.client() as c:
                return await c.get(path)
        except httpx.HTTPError as exc:
            log.error(
                "user_service_call_failed",
                operation=operation,
                path=path,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            raise ServiceCommunicationError.during(self.service_name, operation) from exc

    def _json(self, resp: httpx.Response, operation: str):
        try:
            return resp.json()
        except ValueError as exc:
            raise ServiceCommunicationError.during(self.service_name, operation) from exc

    async def validate_user_active(self, user_id: uuid.UUID) -> bool:
        operation = "ValidateUserActive"
        resp = await self._get(f"api/users/{user_id}/active", operation)
        if resp.status_code == 404:
            raise UserNotFoundError.for_id(user_id)
        if not resp.is_success:
            log.warning("user_active_check_rejected", user_id=str(user_id), status_code=resp.status_code)
            return False
        return self._json(resp, operation) is True
