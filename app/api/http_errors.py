from __future__ import annotations

from collections.abc import Mapping

from fastapi import HTTPException

from app.core.errors import LimitExceeded, NotFound, Unauthorized


def permission_error(exc: PermissionError, *, detail: str | None = None) -> HTTPException:
    status = 401 if isinstance(exc, Unauthorized) else 403
    return HTTPException(status_code=status, detail=detail if detail is not None else str(exc))


def not_found_error(exc: NotFound, *, detail: str | None = None) -> HTTPException:
    return HTTPException(status_code=404, detail=detail if detail is not None else str(exc))


def value_error(
    exc: ValueError,
    *,
    code_statuses: Mapping[str, int] | None = None,
    detail_overrides: Mapping[str, str] | None = None,
) -> HTTPException:
    raw_detail = str(exc)
    detail = (
        detail_overrides[raw_detail]
        if detail_overrides and raw_detail in detail_overrides
        else raw_detail
    )

    if code_statuses and raw_detail in code_statuses:
        return HTTPException(status_code=code_statuses[raw_detail], detail=detail)
    if isinstance(exc, LimitExceeded):
        return HTTPException(status_code=409, detail=detail)
    return HTTPException(status_code=400, detail=detail)


def domain_error(
    exc: Exception,
    *,
    detail_overrides: Mapping[str, str] | None = None,
    code_statuses: Mapping[str, int] | None = None,
) -> HTTPException:
    """Map the service error taxonomy onto an HTTP error."""
    raw = str(exc)
    detail = detail_overrides.get(raw, raw) if detail_overrides else raw

    if isinstance(exc, PermissionError):
        return permission_error(exc, detail=detail)
    if isinstance(exc, NotFound):
        return not_found_error(exc, detail=detail)
    if isinstance(exc, ValueError):
        return value_error(exc, code_statuses=code_statuses, detail_overrides=detail_overrides)
    raise TypeError(f"not a domain error: {exc!r}")


# everything domain_error knows how to map
DOMAIN_ERRORS = (PermissionError, NotFound, ValueError)
