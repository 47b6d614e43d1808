"""
api/errors.py -- HTTP error taxonomy for the auth gateway.

Every error is a fastapi.HTTPException carrying the structured detail dict
{"code": ..., "message": ...}, so the HTTPException handler in api/main.py
renders all of them through the same ErrorResponse envelope.

Messages are fixed strings. Nothing from a strategy failure is ever
interpolated into them -- the caller learns only which class of error occurred.
"""

from __future__ import annotations

from typing import Optional

from fastapi import HTTPException


class AuthHTTPError(HTTPException):
    status: int = 500
    code: str = "internal_error"

    def __init__(self, message: str, headers: Optional[dict[str, str]] = None) -> None:
        super().__init__(
            status_code=self.status,
            detail={"code": self.code, "message": message},
            headers=headers,
        )
        self.message = message


class MethodNotAllowed(AuthHTTPError):
    status = 405
    code = "method_not_allowed"

    def __init__(self, message: str = "try GET method") -> None:
        super().__init__(message, headers={"Allow": "GET"})


class NotImplementedRoute(AuthHTTPError):
    status = 501
    code = "not_implemented"


class BadRequest(AuthHTTPError):
    status = 400
    code = "bad_request"


class Unauthorized(AuthHTTPError):
    status = 401
    code = "unauthorized"
