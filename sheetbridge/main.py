import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.routing import Mount

from sheetbridge.auth import router as auth_router
from sheetbridge.config import get_settings
from sheetbridge.exceptions import (
    AuthenticationError,
    IntegrationError,
    InvalidArgumentError,
    ParseError,
    RateLimitError,
    SessionStateError,
)
from sheetbridge.mcp_server import mcp
from sheetbridge.models.common import ErrorResponse
from sheetbridge.routers.sheets import router as sheets_router

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


# --- Localhost-only middleware ---

class LocalhostOnlyMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        client_host = request.client.host if request.client else None
        if client_host not in ("127.0.0.1", "::1", "localhost"):
            return JSONResponse(
                status_code=403,
                content=ErrorResponse(error_code="forbidden", message="Localhost access only").model_dump(),
            )
        return await call_next(request)


# --- FastAPI app ---

api = FastAPI(title="Sheetbridge", version="0.1.0")
api.include_router(auth_router)
api.include_router(sheets_router)


@api.get("/api/status")
def api_status() -> dict:
    settings = get_settings()
    return {
        "authenticated": bool(settings.gsheets_access_token),
        "infer_types": settings.gsheets_enable_infer_types,
    }


# --- Exception handlers ---

def _error(status_code: int, error_code: str, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error_code=error_code, message=str(exc)).model_dump(),
    )


@api.exception_handler(AuthenticationError)
async def auth_error_handler(request: Request, exc: AuthenticationError):
    return _error(401, "auth_error", exc)


@api.exception_handler(IntegrationError)
async def integration_error_handler(request: Request, exc: IntegrationError):
    return _error(500, "integration_error", exc)


@api.exception_handler(RateLimitError)
async def rate_limit_error_handler(request: Request, exc: RateLimitError):
    return _error(429, "rate_limit", exc)


@api.exception_handler(InvalidArgumentError)
async def invalid_argument_handler(request: Request, exc: InvalidArgumentError):
    return _error(400, "invalid_argument", exc)


@api.exception_handler(ParseError)
async def parse_error_handler(request: Request, exc: ParseError):
    return _error(422, "parse_error", exc)


@api.exception_handler(SessionStateError)
async def session_state_error_handler(request: Request, exc: SessionStateError):
    return _error(409, "session_state", exc)


# --- Starlette root app ---

mcp_app = mcp.http_app(path="/", stateless_http=True)

app = Starlette(
    middleware=[Middleware(LocalhostOnlyMiddleware)],
    routes=[
        Mount("/mcp", app=mcp_app),
        Mount("/", app=api),
    ],
)


def run():
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)
    uvicorn.run(
        "sheetbridge.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
