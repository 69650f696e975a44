"""Health check endpoint with database and setup checks."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import check_db_connected, get_db
from app.schemas.health import HealthResponse
from app.services.users import get_owner

router = APIRouter()


@router.get("/", response_model=HealthResponse)
def get_health(db: Session = Depends(get_db)) -> HealthResponse:
    """
    Return service health status, database connectivity and whether an owner account exists.
    Used by load balancers, monitoring and first-run setup.
    """
    connected = check_db_connected(db)
    return HealthResponse(
        status="ok",
        environment=settings.APP_ENV,
        database="connected" if connected else "disconnected",
        owner_present=(get_owner(db) is not None) if connected else None,
    )
