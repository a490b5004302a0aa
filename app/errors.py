"""Structured error helpers for API responses."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse


def build_error_payload(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    payload = {"error": {"code": code, "message": message}}
    if details is not None:
        payload["error"]["details"] = details
    return payload


class AppError(Exception):
    """Application-scoped error for standardized API responses."""

    def __init__(self, status_code: int, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.payload = build_error_payload(code, message, details)


async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.payload)


class ProfileLoadError(AppError):
    """Terminal failure of a company profile load, with a user-facing message."""

    status_code = 500
    code = "profile_error"
    message = "Unable to load company profile right now."

    def __init__(self, details: Optional[Dict[str, Any]] = None):
        super().__init__(type(self).status_code, type(self).code, type(self).message, details)


class MissingCompanyReference(ProfileLoadError):
    status_code = 400
    code = "missing_company_reference"
    message = "Missing company reference."


class DataSourceNotConfigured(ProfileLoadError):
    status_code = 503
    code = "data_source_not_configured"
    message = "Data connection is not configured."


class ProfileUnavailable(ProfileLoadError):
    status_code = 502
    code = "profile_unavailable"
    message = "Unable to load company profile right now."


class ProfileNotFound(ProfileLoadError):
    status_code = 404
    code = "profile_not_found"
    message = "No profile data found for this company yet."
