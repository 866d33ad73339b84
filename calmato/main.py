"""FastAPI application entrypoint. No business logic; only wiring, error mapping and middleware."""

from dotenv import load_dotenv

load_dotenv()

import logging
from typing import Any

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from calmato.api.guard import AuthorizationGuard
from calmato.api.v1 import auth, health
from calmato.api.v1 import router as v1_router
from calmato.core.config import settings
from calmato.services.auth import AuthServiceError

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "Calmato API"}


# Handlers reachable without a Bearer token; everything else goes through the guard.
PUBLIC_ENDPOINTS = frozenset({root, health.get_health, auth.register, auth.login})

guard = AuthorizationGuard(PUBLIC_ENDPOINTS)

app = FastAPI(
    title="Calmato API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    dependencies=[Depends(guard)],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
    allow_headers=["Content-Type", "Authorization"],
)

app.add_api_route("/", root, methods=["GET"])
app.include_router(v1_router, prefix=settings.API_PREFIX)


@app.exception_handler(AuthServiceError)
async def handle_auth_service_error(request: Request, exc: AuthServiceError) -> JSONResponse:
    """Map service errors to their HTTP status with a {"detail": ...} body."""
    logger.info(
        "%s %s -> %s (%s)",
        request.method,
        request.url.path,
        exc.status_code,
        type(exc).__name__,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
        headers=exc.headers,
    )


def _error_field(err: dict[str, Any]) -> str:
    # Unparseable JSON reports a character offset as its loc, not a field.
    if err.get("type") == "json_invalid":
        return "body"
    loc = [str(part) for part in err.get("loc", ()) if part != "body"]
    return ".".join(loc) or "body"


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed input is a 400 with one {field, message} entry per problem."""
    errors = [
        {
            "field": _error_field(err),
            "message": str(err.get("msg", "Invalid value")).removeprefix("Value error, "),
        }
        for err in exc.errors()
    ]
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": errors})
