from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.responses import ORJSONResponse

from .settings import Settings, get_settings

PROBLEM_JSON = "application/problem+json"

_RFC9110 = "https://www.rfc-editor.org/rfc/rfc9110#section-"

# status -> (default title, RFC 9110 section used as the problem type)
_STATUS_INFO: dict[int, tuple[str, str]] = {
    400: ("Bad Request", "15.5.1"),
    401: ("Unauthorized", "15.5.2"),
    403: ("Forbidden", "15.5.4"),
    404: ("Not Found", "15.5.5"),
    405: ("Method Not Allowed", "15.5.6"),
    409: ("Conflict", "15.5.10"),
    422: ("Unprocessable Content", "15.5.21"),
    500: ("Internal Server Error", "15.6.1"),
    503: ("Service Unavailable", "15.6.4"),
}


def _default_title(status_code: int) -> str:
    if status_code in _STATUS_INFO:
        return _STATUS_INFO[status_code][0]
    if status_code >= 500:
        return "Internal Server Error"
    return "Error"


def problem_type(status_code: int) -> str:
    """Problem `type` URI for a status; `about:blank` when none is registered."""
    info = _STATUS_INFO.get(int(status_code))
    return f"{_RFC9110}{info[1]}" if info else "about:blank"


def _request_id(request: Request) -> str | None:
    rid = getattr(getattr(request, "state", None), "request_id", None)
    if rid:
        return str(rid)
    hdr = request.headers.get("x-request-id")
    return str(hdr) if hdr else None


def _settings_for(request: Request) -> Settings:
    app = request.scope.get("app")
    s = getattr(getattr(app, "state", None), "settings", None)
    return s if isinstance(s, Settings) else get_settings()


def problem_payload(
    *,
    request: Request,
    status_code: int,
    title: str | None = None,
    detail: str | None = None,
    type: str | None = None,
    instance: str | None = None,
    errors: dict[str, list[str]] | list[dict[str, Any]] | None = None,
    extensions: dict[str, Any] | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "type": type or problem_type(status_code),
        "title": title or _default_title(int(status_code)),
        "status": int(status_code),
    }

    if detail:
        payload["detail"] = str(detail)

    inst = instance or str(getattr(request.url, "path", "") or "")
    if inst:
        payload["instance"] = inst

    rid = _request_id(request)
    if rid:
        payload["requestId"] = rid

    if errors:
        payload["errors"] = errors

    if extensions:
        # Extension members live under one key so they never collide with
        # the reserved RFC7807 members.
        payload["extensions"] = extensions

    return payload


def problem_response(
    *,
    request: Request,
    status_code: int,
    title: str | None = None,
    detail: str | None = None,
    type: str | None = None,
    instance: str | None = None,
    errors: dict[str, list[str]] | list[dict[str, Any]] | None = None,
    extensions: dict[str, Any] | None = None,
) -> ORJSONResponse:
    settings = _settings_for(request)

    # Never leak internal details in production for server errors.
    safe_detail = detail
    if int(status_code) >= 500 and settings.is_production:
        safe_detail = None

    return ORJSONResponse(
        status_code=int(status_code),
        content=problem_payload(
            request=request,
            status_code=int(status_code),
            title=title,
            detail=safe_detail,
            type=type,
            instance=instance,
            errors=errors,
            extensions=extensions,
        ),
        media_type=PROBLEM_JSON,
    )
