from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/", tags=["health"])
def root(request: Request):
    settings = request.app.state.settings
    return {
        "message": request.app.title,
        "version": request.app.version,
        "status": "running",
        "port": settings.port,
        "environment": settings.normalized_environment,
    }


@router.get("/health", tags=["health"])
def health(request: Request):
    return {"status": "healthy", "service": request.app.state.service_name}
