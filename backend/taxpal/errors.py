from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .logging_setup import get_logger


logger = get_logger("taxpal.errors")


class TaxpalError(Exception):
    status_code = 500

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class ValidationError(TaxpalError):
    status_code = 400


class NotFoundError(TaxpalError):
    status_code = 404


class AuthorizationError(TaxpalError):
    status_code = 401


class UnexpectedError(TaxpalError):
    status_code = 500

    def __init__(self, detail: str = "internal server error") -> None:
        super().__init__(detail)


class PersistenceConnectError(TaxpalError):
    """Database could not be reached at startup; the server keeps running."""


class DependencyLoadError(TaxpalError):
    """One or more runtime collaborators failed to build. Fatal at bootstrap."""

    def __init__(self, failures: dict[str, BaseException]) -> None:
        self.failures = failures
        names = ", ".join(f"{name} ({exc})" for name, exc in failures.items())
        super().__init__(f"failed to load runtime dependencies: {names}")


async def _handle_taxpal_error(_request: Request, exc: TaxpalError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthorizationError) else None
    detail = exc.detail if exc.status_code < 500 else "internal server error"
    return JSONResponse(status_code=exc.status_code, content={"detail": detail}, headers=headers)


async def _handle_unexpected(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("[server] unhandled error: %s", exc)
    return JSONResponse(status_code=500, content={"detail": "internal server error"})


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TaxpalError, _handle_taxpal_error)
    app.add_exception_handler(Exception, _handle_unexpected)
