"""Health monitoring API endpoints."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from schemas.health import HealthAlertResponse, HealthCheckSummaryResponse
from services.health_service import HealthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/health-checks", tags=["health-checks"])


def get_health_service() -> HealthService:
    """Get HealthService instance (dependency for injection in tests)."""
    return HealthService()


@router.post("/run", response_model=HealthCheckSummaryResponse)
def run_health_checks(
    db: Session = Depends(get_db),
    health_service: HealthService = Depends(get_health_service),
):
    """Check every active tenant's upstream connection."""
    summary = health_service.run_health_check(db)
    db.commit()
    return HealthCheckSummaryResponse.model_validate(summary)


@router.get("/alerts", response_model=list[HealthAlertResponse])
def list_health_alerts(include_acknowledged: bool = False, db: Session = Depends(get_db)):
    return HealthService.list_alerts(db, include_acknowledged=include_acknowledged)
