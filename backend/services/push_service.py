"""Push service - writes locally originated changes back to the upstream system."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from integrations import pms_mappers as mappers
from integrations.pms_client import PMSClient
from integrations.pms_protocol import PMSAdjustment, PMSPayment
from models import (
    Adjustment,
    Appointment,
    AppointmentType,
    Patient,
    PatientAlert,
    PatientDocument,
    Payment,
    TenantSyncConfig,
    WorkingHour,
)
from models.utils import utc_now
from services.entity_store import EntityStore
from services.tenant_config_service import TenantConfigService

logger = logging.getLogger(__name__)

ClientFactory = Callable[[TenantSyncConfig], PMSClient]

APPOINTMENT_OPERATIONS = ("create", "update", "cancel")
APPOINTMENT_TYPE_OPERATIONS = ("create", "update")
WORKING_HOUR_OPERATIONS = ("create", "update", "delete")


@dataclass
class PushResult:
    success: bool
    foreign_id: Optional[str] = None
    error: Optional[str] = None


class PushService:
    """Pushes local records upstream.

    Every operation returns a PushResult and never raises for upstream or
    transport failures. A successful create stamps the upstream id on the
    local row as its ``external_id``, so the next pull of that record
    updates the same row instead of inserting a duplicate.
    """

    def __init__(
        self,
        client_factory: Optional[ClientFactory] = None,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self._client_factory = client_factory or PMSClient.from_config
        self._now = now or utc_now

    def _run(self, db: Session, tenant_id: str, action: str, push: Callable[[PMSClient], PushResult]) -> PushResult:
        config = TenantConfigService.get_config(db, tenant_id)
        if config is None or not config.is_active:
            return PushResult(success=False, error="No PMS config")

        client = None
        try:
            client = self._client_factory(config)
            result = push(client)
        except Exception as e:
            logger.warning("Push %s failed for %s: %s", action, config.subdomain, e)
            return PushResult(success=False, error=str(e))
        finally:
            if client is not None:
                client.close()

        if result.success:
            logger.info("Push %s succeeded for %s (upstream id %s)", action, config.subdomain, result.foreign_id)
        return result

    def _transaction_id(self, kind: str) -> str:
        return f"API:practice-sync-{kind}-{int(self._now().timestamp() * 1000)}"

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def push_appointment(self, db: Session, tenant_id: str, appointment_id: str, operation: str) -> PushResult:
        """Create, update or cancel an appointment upstream.

        ``update`` and ``cancel`` need an appointment that already has an
        upstream id. ``create`` on an appointment that has one updates it.
        """
        if operation not in APPOINTMENT_OPERATIONS:
            return PushResult(success=False, error=f"Unknown operation: {operation}")
        appointment = _get(db, Appointment, tenant_id, appointment_id)
        if appointment is None:
            return PushResult(success=False, error="Appointment not found")

        if operation == "create" and appointment.external_id:
            operation = "update"
        if operation == "update" and not appointment.external_id:
            return PushResult(success=False, error="No PMS appointment ID to update")
        if operation == "cancel" and not appointment.external_id:
            return PushResult(success=False, error="No PMS appointment ID to cancel")

        def push(client: PMSClient) -> PushResult:
            if operation == "cancel":
                client.update_appointment(appointment.external_id, {"cancelled": True})
                appointment.status = "cancelled"
                db.flush()
                return PushResult(success=True, foreign_id=appointment.external_id)

            if operation == "update":
                body = mappers.appointment_to_wire(
                    date=appointment.date,
                    start_time=appointment.start_time,
                    duration=appointment.duration,
                    notes=appointment.notes,
                )
                client.update_appointment(appointment.external_id, body)
                return PushResult(success=True, foreign_id=appointment.external_id)

            patient_external_id = _related_external_id(appointment.patient, appointment.patient_external_id)
            provider_external_id = _related_external_id(appointment.provider, appointment.provider_external_id)
            body = mappers.appointment_to_wire(
                date=appointment.date,
                start_time=appointment.start_time,
                duration=appointment.duration,
                notes=appointment.notes,
                patient_external_id=patient_external_id,
                provider_external_id=provider_external_id,
                operatory_external_id=appointment.operatory_external_id,
            )
            foreign_id = client.create_appointment(body).resource_id
            appointment.patient_external_id = patient_external_id
            appointment.provider_external_id = provider_external_id
            EntityStore.stamp_external_id(db, appointment, foreign_id)
            return PushResult(success=True, foreign_id=foreign_id)

        return self._run(db, tenant_id, f"appointment {operation}", push)

    def push_appointment_type(
        self, db: Session, tenant_id: str, appointment_type_id: str, operation: str
    ) -> PushResult:
        """Create or update an appointment type.

        ``create`` on a type that already has an upstream id updates it.
        """
        if operation not in APPOINTMENT_TYPE_OPERATIONS:
            return PushResult(success=False, error=f"Unknown operation: {operation}")
        appointment_type = _get(db, AppointmentType, tenant_id, appointment_type_id)
        if appointment_type is None:
            return PushResult(success=False, error="Appointment type not found")
        if operation == "update" and not appointment_type.external_id:
            return PushResult(success=False, error="No PMS appointment type ID to update")

        body = mappers.appointment_type_to_wire(
            appointment_type.name, appointment_type.duration, appointment_type.code
        )

        def push(client: PMSClient) -> PushResult:
            if appointment_type.external_id:
                client.update_appointment_type(appointment_type.external_id, body)
                return PushResult(success=True, foreign_id=appointment_type.external_id)
            foreign_id = client.create_appointment_type(body).resource_id
            EntityStore.stamp_external_id(db, appointment_type, foreign_id)
            return PushResult(success=True, foreign_id=foreign_id)

        return self._run(db, tenant_id, f"appointment type {operation}", push)

    def push_working_hour(self, db: Session, tenant_id: str, working_hour_id: str, operation: str) -> PushResult:
        """Create, update or delete a provider working-hour block.

        Deleting a block that was never pushed succeeds without an upstream
        call.
        """
        if operation not in WORKING_HOUR_OPERATIONS:
            return PushResult(success=False, error=f"Unknown operation: {operation}")
        working_hour = _get(db, WorkingHour, tenant_id, working_hour_id)
        if working_hour is None:
            return PushResult(success=False, error="Working hour not found")
        if operation == "update" and not working_hour.external_id:
            return PushResult(success=False, error="No PMS working hour ID to update")

        body = mappers.working_hour_to_wire(
            working_hour.day_of_week,
            working_hour.start_time,
            working_hour.end_time,
            _related_external_id(working_hour.provider, working_hour.provider_external_id),
        )

        def push(client: PMSClient) -> PushResult:
            if operation == "delete":
                if working_hour.external_id:
                    client.delete_working_hour(working_hour.external_id)
                working_hour.is_active = False
                db.flush()
                return PushResult(success=True, foreign_id=working_hour.external_id)
            if working_hour.external_id:
                client.update_working_hour(working_hour.external_id, body)
                return PushResult(success=True, foreign_id=working_hour.external_id)
            foreign_id = client.create_working_hour(body).resource_id
            EntityStore.stamp_external_id(db, working_hour, foreign_id)
            return PushResult(success=True, foreign_id=foreign_id)

        return self._run(db, tenant_id, f"working hour {operation}", push)

    # ------------------------------------------------------------------
    # Patients
    # ------------------------------------------------------------------

    def push_patient(self, db: Session, tenant_id: str, patient_id: str) -> PushResult:
        """Update the upstream patient, or create it if it has no upstream id."""
        patient = _get(db, Patient, tenant_id, patient_id)
        if patient is None:
            return PushResult(success=False, error="Patient not found")

        body = mappers.patient_to_wire(
            first_name=patient.first_name,
            last_name=patient.last_name,
            email=patient.email,
            date_of_birth=patient.date_of_birth,
            gender=patient.gender,
            phone=patient.phone,
            address=patient.address,
        )

        def push(client: PMSClient) -> PushResult:
            if patient.external_id:
                client.update_patient(patient.external_id, body)
                return PushResult(success=True, foreign_id=patient.external_id)
            foreign_id = client.create_patient(body).resource_id
            EntityStore.stamp_external_id(db, patient, foreign_id)
            return PushResult(success=True, foreign_id=foreign_id)

        return self._run(db, tenant_id, "patient", push)

    def push_patient_alert(self, db: Session, tenant_id: str, alert_id: str) -> PushResult:
        alert = _get(db, PatientAlert, tenant_id, alert_id)
        if alert is None:
            return PushResult(success=False, error="Alert not found")
        if not alert.patient.external_id:
            return PushResult(success=False, error="Patient has no PMS ID")
        if alert.external_id:
            return PushResult(success=False, foreign_id=alert.external_id, error="Alert already pushed")

        def push(client: PMSClient) -> PushResult:
            body = mappers.patient_alert_to_wire(alert.note, alert.alert_type)
            foreign_id = client.create_patient_alert(alert.patient.external_id, body).resource_id
            EntityStore.stamp_external_id(db, alert, foreign_id)
            return PushResult(success=True, foreign_id=foreign_id)

        return self._run(db, tenant_id, "patient alert", push)

    def push_patient_document(self, db: Session, tenant_id: str, document_id: str) -> PushResult:
        document = _get(db, PatientDocument, tenant_id, document_id)
        if document is None:
            return PushResult(success=False, error="Document not found")
        if not document.patient.external_id:
            return PushResult(success=False, error="Patient has no PMS ID")
        if document.external_id:
            return PushResult(success=False, foreign_id=document.external_id, error="Document already pushed")

        def push(client: PMSClient) -> PushResult:
            body = mappers.patient_document_to_wire(document.name, document.document_type, document.url)
            foreign_id = client.create_patient_document(document.patient.external_id, body).resource_id
            EntityStore.stamp_external_id(db, document, foreign_id)
            return PushResult(success=True, foreign_id=foreign_id)

        return self._run(db, tenant_id, "patient document", push)

    # ------------------------------------------------------------------
    # Billing
    # ------------------------------------------------------------------

    def push_payment(
        self,
        db: Session,
        tenant_id: str,
        patient_external_id: str,
        amount: float,
        payment_method: Optional[str] = None,
        payment_type_id: Optional[str] = None,
        date: Optional[str] = None,
        note: Optional[str] = None,
        claim_external_id: Optional[str] = None,
    ) -> PushResult:
        """Post a payment upstream and keep a local copy under its upstream id."""

        def push(client: PMSClient) -> PushResult:
            body = mappers.payment_to_wire(
                patient_external_id=patient_external_id,
                amount=amount,
                transaction_id=self._transaction_id("pay"),
                payment_method=payment_method,
                payment_type_id=payment_type_id,
                date=date,
                note=note,
                claim_external_id=claim_external_id,
            )
            foreign_id = client.create_payment(body).resource_id
            EntityStore.upsert(db, Payment, tenant_id, PMSPayment(
                external_id=foreign_id,
                patient_external_id=patient_external_id,
                amount=amount,
                payment_type_id=payment_type_id,
                payment_method=payment_method or "Cash",
                date=date,
                note=note,
                claim_external_id=claim_external_id,
            ))
            return PushResult(success=True, foreign_id=foreign_id)

        return self._run(db, tenant_id, "payment", push)

    def push_adjustment(
        self,
        db: Session,
        tenant_id: str,
        patient_external_id: str,
        amount: float,
        adjustment_type_id: Optional[str] = None,
        description: Optional[str] = None,
        date: Optional[str] = None,
        provider_external_id: Optional[str] = None,
    ) -> PushResult:
        """Post an adjustment upstream. ``date`` defaults to today (UTC)."""
        adjusted_at = date or self._now().date().isoformat()

        def push(client: PMSClient) -> PushResult:
            body = mappers.adjustment_to_wire(
                patient_external_id=patient_external_id,
                amount=amount,
                transaction_id=self._transaction_id("adj"),
                adjusted_at=adjusted_at,
                adjustment_type_id=adjustment_type_id,
                description=description,
                provider_external_id=provider_external_id,
            )
            foreign_id = client.create_adjustment(body).resource_id
            EntityStore.upsert(db, Adjustment, tenant_id, PMSAdjustment(
                external_id=foreign_id,
                patient_external_id=patient_external_id,
                amount=amount,
                provider_external_id=provider_external_id,
                adjustment_type_id=adjustment_type_id,
                description=description,
                date=adjusted_at,
            ))
            return PushResult(success=True, foreign_id=foreign_id)

        return self._run(db, tenant_id, "adjustment", push)


def _get(db: Session, model: type, tenant_id: str, row_id: str):
    return db.query(model).filter(model.id == row_id, model.tenant_id == tenant_id).first()


def _related_external_id(related, fallback: Optional[str]) -> Optional[str]:
    if related is not None and related.external_id:
        return related.external_id
    return fallback
