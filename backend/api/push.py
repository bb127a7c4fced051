"""Push-back API endpoints - send local changes to the upstream system."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.helpers import get_tenant_or_404
from database import get_db
from schemas.push import (
    AdjustmentPushRequest,
    AppointmentPushRequest,
    AppointmentTypePushRequest,
    PatientAlertPushRequest,
    PatientDocumentPushRequest,
    PatientPushRequest,
    PaymentPushRequest,
    PushResultResponse,
    WorkingHourPushRequest,
)
from services.push_service import PushResult, PushService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/push/{tenant_id}", tags=["push"])


def get_push_service() -> PushService:
    """Get PushService instance (dependency for injection in tests)."""
    return PushService()


def _respond(db: Session, result: PushResult) -> PushResultResponse:
    # Successful pushes may have stamped an upstream id on a local row.
    if result.success:
        db.commit()
    else:
        db.rollback()
    return PushResultResponse.model_validate(result)


@router.post("/appointments", response_model=PushResultResponse)
def push_appointment(
    tenant_id: str,
    body: AppointmentPushRequest,
    db: Session = Depends(get_db),
    push_service: PushService = Depends(get_push_service),
):
    get_tenant_or_404(db, tenant_id)
    result = push_service.push_appointment(db, tenant_id, body.appointment_id, body.operation)
    return _respond(db, result)


@router.post("/appointment-types", response_model=PushResultResponse)
def push_appointment_type(
    tenant_id: str,
    body: AppointmentTypePushRequest,
    db: Session = Depends(get_db),
    push_service: PushService = Depends(get_push_service),
):
    get_tenant_or_404(db, tenant_id)
    result = push_service.push_appointment_type(db, tenant_id, body.appointment_type_id, body.operation)
    return _respond(db, result)


@router.post("/working-hours", response_model=PushResultResponse)
def push_working_hour(
    tenant_id: str,
    body: WorkingHourPushRequest,
    db: Session = Depends(get_db),
    push_service: PushService = Depends(get_push_service),
):
    get_tenant_or_404(db, tenant_id)
    result = push_service.push_working_hour(db, tenant_id, body.working_hour_id, body.operation)
    return _respond(db, result)


@router.post("/patients", response_model=PushResultResponse)
def push_patient(
    tenant_id: str,
    body: PatientPushRequest,
    db: Session = Depends(get_db),
    push_service: PushService = Depends(get_push_service),
):
    get_tenant_or_404(db, tenant_id)
    return _respond(db, push_service.push_patient(db, tenant_id, body.patient_id))


@router.post("/patient-alerts", response_model=PushResultResponse)
def push_patient_alert(
    tenant_id: str,
    body: PatientAlertPushRequest,
    db: Session = Depends(get_db),
    push_service: PushService = Depends(get_push_service),
):
    get_tenant_or_404(db, tenant_id)
    return _respond(db, push_service.push_patient_alert(db, tenant_id, body.alert_id))


@router.post("/patient-documents", response_model=PushResultResponse)
def push_patient_document(
    tenant_id: str,
    body: PatientDocumentPushRequest,
    db: Session = Depends(get_db),
    push_service: PushService = Depends(get_push_service),
):
    get_tenant_or_404(db, tenant_id)
    return _respond(db, push_service.push_patient_document(db, tenant_id, body.document_id))


@router.post("/payments", response_model=PushResultResponse)
def push_payment(
    tenant_id: str,
    body: PaymentPushRequest,
    db: Session = Depends(get_db),
    push_service: PushService = Depends(get_push_service),
):
    get_tenant_or_404(db, tenant_id)
    return _respond(db, push_service.push_payment(db, tenant_id, **body.model_dump()))


@router.post("/adjustments", response_model=PushResultResponse)
def push_adjustment(
    tenant_id: str,
    body: AdjustmentPushRequest,
    db: Session = Depends(get_db),
    push_service: PushService = Depends(get_push_service),
):
    get_tenant_or_404(db, tenant_id)
    return _respond(db, push_service.push_adjustment(db, tenant_id, **body.model_dump()))
