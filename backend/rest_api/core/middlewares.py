"""
Security middlewares for the FastAPI application.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from shared.config.settings import settings
from shared.infrastructure.correlation import CorrelationIdMiddleware


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Add security headers to all responses.

    The API serves JSON only, so the CSP forbids everything.
    HSTS is sent in production.
    """

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"
        if "server" in response.headers:
            del response.headers["server"]

        if settings.environment == "production":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response


class ContentTypeValidationMiddleware(BaseHTTPMiddleware):
    """
    Reject request bodies that are not JSON (415).
    """

    METHODS_WITH_BODY = {"POST", "PUT", "PATCH"}

    async def dispatch(self, request: Request, call_next):
        if request.method in self.METHODS_WITH_BODY:
            content_type = request.headers.get("content-type", "")
            if content_type and not content_type.startswith("application/json"):
                return JSONResponse(
                    status_code=415,
                    content={"detail": "Unsupported Media Type. Use application/json"},
                )
        return await call_next(request)


def register_middlewares(app: FastAPI) -> None:
    """
    Register middlewares. Starlette runs the last added first, so the
    correlation id is set before anything else logs.
    """
    app.add_middleware(ContentTypeValidationMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(CorrelationIdMiddleware)
