"""Authentication/authorization error taxonomy and its HTTP rendering."""

import logging
from typing import Literal

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

AuthErrorKind = Literal[
    "invalid_credentials",
    "unauthenticated",
    "token_expired",
    "token_invalid",
    "user_inactive",
    "forbidden",
]

# kind -> (HTTP status, client-facing message)
AUTH_ERROR_RESPONSES: dict[str, tuple[int, str]] = {
    "invalid_credentials": (status.HTTP_401_UNAUTHORIZED, "Invalid email or password"),
    "unauthenticated": (status.HTTP_401_UNAUTHORIZED, "Authentication required"),
    "token_expired": (status.HTTP_401_UNAUTHORIZED, "Token has expired"),
    "token_invalid": (status.HTTP_401_UNAUTHORIZED, "Invalid token"),
    "user_inactive": (status.HTTP_403_FORBIDDEN, "User account is inactive"),
    "forbidden": (status.HTTP_403_FORBIDDEN, "Forbidden"),
}


class AuthError(Exception):
    """Raised by the issuer, verifier and access gate; `kind` selects status and message."""

    def __init__(self, kind: AuthErrorKind, detail: str | None = None) -> None:
        if kind not in AUTH_ERROR_RESPONSES:
            raise ValueError(f"Unknown auth error kind: {kind!r}")
        self.kind = kind
        self.status_code, self.message = AUTH_ERROR_RESPONSES[kind]
        # Server-side detail for logs only; never sent to the client.
        self.detail = detail
        super().__init__(self.message)

    @classmethod
    def invalid_credentials(cls, detail: str | None = None) -> "AuthError":
        return cls("invalid_credentials", detail)

    @classmethod
    def unauthenticated(cls, detail: str | None = None) -> "AuthError":
        return cls("unauthenticated", detail)

    @classmethod
    def token_expired(cls, detail: str | None = None) -> "AuthError":
        return cls("token_expired", detail)

    @classmethod
    def token_invalid(cls, detail: str | None = None) -> "AuthError":
        return cls("token_invalid", detail)

    @classmethod
    def user_inactive(cls, detail: str | None = None) -> "AuthError":
        return cls("user_inactive", detail)

    @classmethod
    def forbidden(cls, detail: str | None = None) -> "AuthError":
        return cls("forbidden", detail)


async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    headers = None
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "code": exc.kind},
        headers=headers,
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render route-level HTTPExceptions with the same {"error": ...} body as auth errors."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Request body/query validation failures as 422 {"error": "field: reason; ..."}."""
    problems = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ()) if part not in ("body", "query"))
        msg = err.get("msg", "invalid value")
        problems.append(f"{field}: {msg}" if field else msg)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": "; ".join(problems) or "Invalid request"},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Generic 500; the traceback goes to the server log only."""
    logger.exception(
        "Unhandled error",
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
