"""Pydantic schemas for push-back operations."""

from typing import Literal, Optional

from pydantic import BaseModel, Field


class AppointmentPushRequest(BaseModel):
    appointment_id: str
    operation: Literal["create", "update", "cancel"]


class AppointmentTypePushRequest(BaseModel):
    appointment_type_id: str
    operation: Literal["create", "update"]


class WorkingHourPushRequest(BaseModel):
    working_hour_id: str
    operation: Literal["create", "update", "delete"]


class PatientPushRequest(BaseModel):
    patient_id: str


class PatientAlertPushRequest(BaseModel):
    alert_id: str


class PatientDocumentPushRequest(BaseModel):
    document_id: str


class PaymentPushRequest(BaseModel):
    """Request body for posting a payment upstream."""

    patient_external_id: str
    amount: float = Field(gt=0)
    payment_method: Optional[str] = None
    payment_type_id: Optional[str] = None
    date: Optional[str] = None
    note: Optional[str] = None
    claim_external_id: Optional[str] = None


class AdjustmentPushRequest(BaseModel):
    """Request body for posting an adjustment upstream."""

    patient_external_id: str
    amount: float
    adjustment_type_id: Optional[str] = None
    description: Optional[str] = None
    date: Optional[str] = None
    provider_external_id: Optional[str] = None


class PushResultResponse(BaseModel):
    success: bool
    foreign_id: Optional[str] = None
    error: Optional[str] = None

    model_config = {"from_attributes": True}
