from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from ...pipeline.mediator import Mediator
from ...routers.deps import get_mediator
from ...schemas import MessageResponse
from .. import requests as rq
from ..schemas import (
    AuthResponse,
    ForgotPasswordBody,
    LoginBody,
    RefreshTokenBody,
    RegisterUserBody,
    ResetPasswordBody,
    UserDto,
)

router = APIRouter(tags=["auth"])

PUBLIC_PATHS = (
    "/api/auth/register",
    "/api/auth/login",
    "/api/auth/confirm-email",
    "/api/auth/forgot-password",
    "/api/auth/reset-password",
    "/api/auth/refresh-token",
)


@router.post("/register", response_model=UserDto, status_code=201)
async def register(body: RegisterUserBody, mediator: Mediator = Depends(get_mediator)):
    return await mediator.send(
        rq.RegisterUser(
            first_name=body.first_name,
            last_name=body.last_name,
            email=body.email,
            password=body.password,
        )
    )


@router.post("/login", response_model=AuthResponse)
async def login(body: LoginBody, mediator: Mediator = Depends(get_mediator)):
    return await mediator.send(rq.Login(email=body.email, password=body.password))


@router.post("/confirm-email", response_model=MessageResponse)
async def confirm_email(token: str = Query(""), mediator: Mediator = Depends(get_mediator)):
    await mediator.send(rq.ConfirmEmail(token=token))
    return MessageResponse(message="Email confirmed successfully")


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(body: ForgotPasswordBody, mediator: Mediator = Depends(get_mediator)):
    await mediator.send(rq.ForgotPassword(email=body.email))
    return MessageResponse(message="Password reset email sent")


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(body: ResetPasswordBody, mediator: Mediator = Depends(get_mediator)):
    await mediator.send(rq.ResetPassword(token=body.token, new_password=body.new_password))
    return MessageResponse(message="Password reset successfully")


@router.post("/refresh-token", response_model=AuthResponse)
async def refresh_token(body: RefreshTokenBody, mediator: Mediator = Depends(get_mediator)):
    return await mediator.send(rq.RefreshToken(refresh_token=body.refresh_token))
