"""Public health probe: answers 503 while the credential store is unreachable."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from calmato.core.config import settings
from calmato.core.database import check_db_connected, get_db
from calmato.schemas.health import HealthResponse

router = APIRouter()


@router.get("/", response_model=HealthResponse)
def get_health(
    request: Request,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
) -> HealthResponse:
    """No token required; login and register cannot work while the database is down."""
    connected = check_db_connected(db)
    if not connected:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return HealthResponse(
        status="ok" if connected else "degraded",
        version=request.app.version,
        environment=settings.APP_ENV,
        database="connected" if connected else "disconnected",
    )
