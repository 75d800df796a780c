from __future__ import annotations

import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Body, Depends, Query, Request, Response

from ...pipeline.mediator import Mediator
from ...routers.deps import get_mediator, no_cache_requested
from ...schemas import MessageResponse, PagedResponse
from ...security.dependencies import current_user, require_admin
from ...security.principal import CurrentUser
from .. import requests as rq
from ..schemas import (
    BulkUserStatusBody,
    ChangePasswordBody,
    ToggleUserStatusBody,
    UpdateUserRoleBody,
    UpdateUserBody,
    UserDto,
)
from ..user_service import default_inactive_cutoff

router = APIRouter(tags=["users"])

PUBLIC_PATHS = ("/api/users/password/strength",)
PUBLIC_PATTERNS = (r"/api/users/[^/]+/(exists|active|name)",)


# Static paths are declared before /{user_id} so they are matched first.


@router.get("", response_model=PagedResponse[UserDto])
async def list_users(
    page: int = Query(1),
    page_size: int = Query(10, alias="pageSize"),
    search: str | None = Query(None),
    role: str | None = Query(None),
    is_active: bool | None = Query(None, alias="isActive"),
    sort_by: str | None = Query(None, alias="sortBy"),
    sort_descending: bool = Query(False, alias="sortDescending"),
    _admin: CurrentUser = Depends(require_admin),
    mediator: Mediator = Depends(get_mediator),
):
    return await mediator.send(
        rq.GetUsers(
            page=page,
            page_size=page_size,
            search=search,
            role=role,
            is_active=is_active,
            sort_by=sort_by,
            sort_descending=sort_descending,
        )
    )


@router.get("/me", response_model=UserDto)
async def get_me(user: CurrentUser = Depends(current_user), mediator: Mediator = Depends(get_mediator)):
    return await mediator.send(rq.GetUserById(user_id=user.id))


@router.get("/count")
async def count_users(
    request: Request,
    _admin: CurrentUser = Depends(require_admin),
    mediator: Mediator = Depends(get_mediator),
) -> int:
    return await mediator.send(rq.GetUsersCount(bypass_cache=no_cache_requested(request)))


@router.get("/inactive", response_model=list[UserDto])
async def list_inactive_users(
    older_than: datetime | None = Query(None, alias="olderThan"),
    _admin: CurrentUser = Depends(require_admin),
    mediator: Mediator = Depends(get_mediator),
):
    return await mediator.send(rq.GetInactiveUsers(older_than=_naive_utc(older_than)))


@router.get("/password/strength")
async def password_strength(password: str = Query(""), mediator: Mediator = Depends(get_mediator)) -> bool:
    return await mediator.send(rq.CheckPasswordStrength(password=password))


@router.get("/password/generate")
async def generate_password(
    length: int = Query(12),
    _admin: CurrentUser = Depends(require_admin),
    mediator: Mediator = Depends(get_mediator),
) -> str:
    return await mediator.send(rq.GenerateRandomPassword(length=length))


@router.get("/by-email/{email}", response_model=UserDto)
async def get_user_by_email(
    email: str,
    _admin: CurrentUser = Depends(require_admin),
    mediator: Mediator = Depends(get_mediator),
):
    return await mediator.send(rq.GetUserByEmail(email=email))


@router.post("/bulk", response_model=list[UserDto])
async def get_users_by_ids(
    user_ids: list[uuid.UUID] = Body(...),
    _admin: CurrentUser = Depends(require_admin),
    mediator: Mediator = Depends(get_mediator),
):
    return await mediator.send(rq.GetUsersByIds(user_ids=user_ids))


@router.post("/bulk/status", response_model=MessageResponse)
async def bulk_update_status(
    body: BulkUserStatusBody,
    _admin: CurrentUser = Depends(require_admin),
    mediator: Mediator = Depends(get_mediator),
):
    await mediator.send(rq.BulkUpdateUserStatus(user_ids=body.user_ids, is_active=body.is_active))
    return MessageResponse(message="Bulk status update completed successfully")


@router.post("/cleanup", response_model=MessageResponse)
async def cleanup_inactive_users(
    older_than: datetime | None = Query(None, alias="olderThan"),
    _admin: CurrentUser = Depends(require_admin),
    mediator: Mediator = Depends(get_mediator),
):
    await mediator.send(rq.CleanupInactiveUsers(older_than=_naive_utc(older_than)))
    return MessageResponse(message="Inactive users cleanup completed")


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    body: ChangePasswordBody,
    user: CurrentUser = Depends(current_user),
    mediator: Mediator = Depends(get_mediator),
):
    await mediator.send(
        rq.ChangePassword(
            user_id=user.id,
            current_password=body.current_password,
            new_password=body.new_password,
        )
    )
    return MessageResponse(message="Password changed successfully")


@router.get("/{user_id}", response_model=UserDto)
async def get_user(
    user_id: uuid.UUID,
    _user: CurrentUser = Depends(current_user),
    mediator: Mediator = Depends(get_mediator),
):
    return await mediator.send(rq.GetUserById(user_id=user_id))


@router.put("/{user_id}", response_model=UserDto)
async def update_user(
    user_id: uuid.UUID,
    body: UpdateUserBody,
    user: CurrentUser = Depends(current_user),
    mediator: Mediator = Depends(get_mediator),
):
    return await mediator.send(
        rq.UpdateUser(
            user_id=user_id,
            caller_id=user.id,
            caller_is_admin=user.is_admin,
            first_name=body.first_name,
            last_name=body.last_name,
            email=body.email,
        )
    )


@router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: uuid.UUID,
    user: CurrentUser = Depends(current_user),
    mediator: Mediator = Depends(get_mediator),
):
    await mediator.send(rq.DeleteUser(user_id=user_id, caller_id=user.id, caller_is_admin=user.is_admin))
    return Response(status_code=204)


@router.patch("/{user_id}/status", response_model=MessageResponse)
async def toggle_user_status(
    user_id: uuid.UUID,
    body: ToggleUserStatusBody,
    _admin: CurrentUser = Depends(require_admin),
    mediator: Mediator = Depends(get_mediator),
):
    await mediator.send(rq.ToggleUserStatus(user_id=user_id, is_active=body.is_active))
    state = "activated" if body.is_active else "deactivated"
    return MessageResponse(message=f"User {state} successfully")


@router.patch("/{user_id}/role", response_model=MessageResponse)
async def update_user_role(
    user_id: uuid.UUID,
    body: UpdateUserRoleBody,
    _admin: CurrentUser = Depends(require_admin),
    mediator: Mediator = Depends(get_mediator),
):
    await mediator.send(rq.UpdateUserRole(user_id=user_id, role=body.role))
    return MessageResponse(message="User role updated successfully")


@router.get("/{user_id}/exists")
async def user_exists(user_id: uuid.UUID, mediator: Mediator = Depends(get_mediator)) -> bool:
    return await mediator.send(rq.UserExists(user_id=user_id))


@router.get("/{user_id}/active")
async def user_active(user_id: uuid.UUID, mediator: Mediator = Depends(get_mediator)) -> bool:
    return await mediator.send(rq.IsUserActive(user_id=user_id))


@router.get("/{user_id}/name")
async def user_name(user_id: uuid.UUID, mediator: Mediator = Depends(get_mediator)) -> str:
    return await mediator.send(rq.GetUserName(user_id=user_id))


@router.get("/{user_id}/products/count")
async def user_products_count(
    user_id: uuid.UUID,
    _admin: CurrentUser = Depends(require_admin),
    mediator: Mediator = Depends(get_mediator),
) -> int:
    return await mediator.send(rq.GetUserProductsCount(user_id=user_id))


def _naive_utc(value: datetime | None) -> datetime:
    """Query timestamps are compared against naive UTC columns."""
    if value is None:
        return default_inactive_cutoff()
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value
