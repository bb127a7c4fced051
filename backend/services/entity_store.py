"""Entity store - upserts canonical upstream records into local tables.

Every synced table is keyed by ``(tenant_id, external_id)``. Full sync,
incremental sync, webhooks and push-back all write through this module, so
the same upstream record always lands on the same local row.
"""

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from database import Base
from integrations import pms_mappers as mappers
from integrations.pms_protocol import (
    PMSAppointment,
    PMSInsuranceCoverage,
    PMSPatient,
    PMSWorkingHour,
)
from models import (
    Adjustment,
    Appointment,
    AppointmentType,
    Charge,
    Claim,
    FeeSchedule,
    GuarantorBalance,
    InsuranceBalance,
    InsuranceCoverage,
    InsurancePlan,
    Operatory,
    Patient,
    PatientMatchCandidate,
    Payment,
    Procedure,
    Provider,
    Recall,
    TreatmentPlan,
    WorkingHour,
)
from models.utils import utc_now

logger = logging.getLogger(__name__)

T = TypeVar("T")

PATIENT_MATCH_FIELDS = ["first_name", "last_name", "date_of_birth"]


class EntityStore:
    """Upsert helpers for synced entity tables."""

    @staticmethod
    def find_by_external_id(db: Session, model: type[T], tenant_id: str, external_id: str) -> Optional[T]:
        return (
            db.query(model)
            .filter_by(tenant_id=tenant_id, external_id=external_id)
            .first()
        )

    @staticmethod
    def known_external_ids(db: Session, model: type, tenant_id: str) -> list[str]:
        """Upstream ids already stored for a tenant, in insertion order."""
        rows = (
            db.query(model.external_id)
            .filter(model.tenant_id == tenant_id, model.external_id.isnot(None))
            .order_by(model.created_at)
            .all()
        )
        return [row[0] for row in rows]

    @staticmethod
    def upsert(db: Session, model: type[T], tenant_id: str, record: Any, **extra) -> tuple[T, bool]:
        """Insert or update the row for ``record.external_id``.

        ``record`` is a canonical dataclass whose fields match the model's
        columns; ``extra`` carries resolved local foreign keys.

        Returns:
            Tuple of (row, created).
        """
        values = dataclasses.asdict(record)
        values.update(extra)
        external_id = values.pop("external_id")

        row = EntityStore.find_by_external_id(db, model, tenant_id, external_id)
        created = row is None
        if created:
            row = model(tenant_id=tenant_id, external_id=external_id)
            db.add(row)

        _apply(row, values)
        db.flush()
        return row, created

    @staticmethod
    def upsert_patient(db: Session, tenant_id: str, record: PMSPatient) -> tuple[Patient, bool]:
        """Upsert a patient, linking an unsynced local patient when possible.

        A pulled patient with no ``external_id`` match is compared against
        local patients that have never been linked, by first name, last
        name (case-insensitive) and date of birth. One match is linked
        outright. Several matches link the oldest and queue a
        PatientMatchCandidate for review. No match creates a new row.
        """
        existing = EntityStore.find_by_external_id(db, Patient, tenant_id, record.external_id)
        if existing is not None:
            return EntityStore.upsert(db, Patient, tenant_id, record)

        matches = _fuzzy_patient_matches(db, tenant_id, record)
        if not matches:
            return EntityStore.upsert(db, Patient, tenant_id, record)

        patient = matches[0]
        patient.external_id = record.external_id
        if len(matches) == 1:
            patient.match_status = "matched"
        else:
            patient.match_status = "ambiguous"
            db.add(PatientMatchCandidate(
                tenant_id=tenant_id,
                patient_id=patient.id,
                external_id=record.external_id,
                candidate_count=len(matches),
                match_fields=list(PATIENT_MATCH_FIELDS),
            ))
            logger.warning(
                "Patient %s matched %d local patients; linked %s pending review",
                record.external_id, len(matches), patient.id,
            )

        values = dataclasses.asdict(record)
        values.pop("external_id")
        _apply(patient, values)
        db.flush()
        return patient, False

    @staticmethod
    def upsert_appointment(db: Session, tenant_id: str, record: PMSAppointment) -> tuple[Appointment, bool]:
        """Upsert an appointment and resolve its local patient/provider rows.

        Unresolved references leave the local foreign key empty; the
        upstream ids are always kept.
        """
        return EntityStore.upsert(
            db, Appointment, tenant_id, record,
            patient_id=_local_id(db, Patient, tenant_id, record.patient_external_id),
            provider_id=_local_id(db, Provider, tenant_id, record.provider_external_id),
        )

    @staticmethod
    def upsert_working_hour(db: Session, tenant_id: str, record: PMSWorkingHour) -> tuple[WorkingHour, bool]:
        return EntityStore.upsert(
            db, WorkingHour, tenant_id, record,
            provider_id=_local_id(db, Provider, tenant_id, record.provider_external_id),
        )

    @staticmethod
    def upsert_insurance_coverage(
        db: Session, tenant_id: str, record: PMSInsuranceCoverage
    ) -> tuple[InsuranceCoverage, bool]:
        return EntityStore.upsert(
            db, InsuranceCoverage, tenant_id, record,
            insurance_plan_id=_local_id(
                db, InsurancePlan, tenant_id, record.insurance_plan_external_id
            ),
        )

    @staticmethod
    def stamp_external_id(db: Session, row: Any, external_id: str) -> None:
        """Give a locally created row the id the upstream assigned to it.

        A webhook or pull can deliver the new upstream record before the
        push returns, leaving a pulled twin under ``external_id``. The twin
        is retired: rows that reference it are re-pointed at ``row`` and it
        is deleted, so the local-origin row keeps its id.
        """
        model = type(row)
        twin = EntityStore.find_by_external_id(db, model, row.tenant_id, external_id)
        if twin is not None and twin.id != row.id:
            logger.info(
                "%s %s already pulled; merging into local row %s",
                model.__name__, external_id, row.id,
            )
            twin_id, row_id = twin.id, row.id
            db.flush()
            db.expire_all()
            _repoint_references(db, model, twin_id, row_id)
            db.delete(twin)
            db.flush()

        row.external_id = external_id
        row.last_synced_at = utc_now()
        db.flush()


def _apply(row: Any, values: dict[str, Any]) -> None:
    for key, value in values.items():
        setattr(row, key, value)
    row.last_synced_at = utc_now()


def _repoint_references(db: Session, model: type, old_id: str, new_id: str) -> None:
    target = model.__table__
    for table in Base.metadata.sorted_tables:
        for fk in table.foreign_keys:
            if fk.column.table is target and fk.column.name == "id":
                db.execute(
                    update(table).where(fk.parent == old_id).values({fk.parent.name: new_id})
                )


def _local_id(db: Session, model: type, tenant_id: str, external_id: Optional[str]) -> Optional[str]:
    if not external_id:
        return None
    row = EntityStore.find_by_external_id(db, model, tenant_id, external_id)
    return row.id if row is not None else None


def _fuzzy_patient_matches(db: Session, tenant_id: str, record: PMSPatient) -> list[Patient]:
    if not (record.first_name and record.last_name and record.date_of_birth):
        return []
    return (
        db.query(Patient)
        .filter(
            Patient.tenant_id == tenant_id,
            Patient.external_id.is_(None),
            func.lower(Patient.first_name) == record.first_name.lower(),
            func.lower(Patient.last_name) == record.last_name.lower(),
            Patient.date_of_birth == record.date_of_birth,
        )
        .order_by(Patient.created_at)
        .all()
    )


# ---------------------------------------------------------------------------
# Resource registry
# ---------------------------------------------------------------------------


def _plain(model: type) -> Callable[[Session, str, Any], tuple]:
    def upsert(db: Session, tenant_id: str, record: Any) -> tuple:
        return EntityStore.upsert(db, model, tenant_id, record)
    return upsert


@dataclass(frozen=True)
class SyncedResource:
    """How one upstream resource type is listed, mapped and stored."""

    label: str
    list_method: str
    mapper: Callable[[dict[str, Any]], Any]
    upsert: Callable[[Session, str, Any], tuple]

    def apply(self, db: Session, tenant_id: str, raw: dict[str, Any]) -> Any:
        """Map one wire record and upsert it inside its own savepoint.

        Raises whatever the mapper or the database raises; the savepoint
        is rolled back first so earlier records in the transaction survive.
        """
        record = self.mapper(raw)
        with db.begin_nested():
            row, _ = self.upsert(db, tenant_id, record)
        return row


RESOURCES: dict[str, SyncedResource] = {
    "providers": SyncedResource("Provider", "get_providers", mappers.map_provider, _plain(Provider)),
    "operatories": SyncedResource("Operatory", "get_operatories", mappers.map_operatory, _plain(Operatory)),
    "patients": SyncedResource("Patient", "get_patients", mappers.map_patient, EntityStore.upsert_patient),
    "appointments": SyncedResource(
        "Appointment", "get_appointments", mappers.map_appointment, EntityStore.upsert_appointment
    ),
    "appointment_types": SyncedResource(
        "AppointmentType", "get_appointment_types", mappers.map_appointment_type, _plain(AppointmentType)
    ),
    "fee_schedules": SyncedResource(
        "FeeSchedule", "get_fee_schedules", mappers.map_fee_schedule, _plain(FeeSchedule)
    ),
    "recalls": SyncedResource("Recall", "get_patient_recalls", mappers.map_recall, _plain(Recall)),
    "insurance_plans": SyncedResource(
        "InsurancePlan", "get_insurance_plans", mappers.map_insurance_plan, _plain(InsurancePlan)
    ),
    "insurance_coverages": SyncedResource(
        "InsuranceCoverage", "get_insurance_coverages", mappers.map_insurance_coverage,
        EntityStore.upsert_insurance_coverage,
    ),
    "procedures": SyncedResource("Procedure", "get_procedures", mappers.map_procedure, _plain(Procedure)),
    "charges": SyncedResource("Charge", "get_charges", mappers.map_charge, _plain(Charge)),
    "payments": SyncedResource("Payment", "get_payments", mappers.map_payment, _plain(Payment)),
    "adjustments": SyncedResource("Adjustment", "get_adjustments", mappers.map_adjustment, _plain(Adjustment)),
    "guarantor_balances": SyncedResource(
        "GuarantorBalance", "get_guarantor_balances", mappers.map_guarantor_balance, _plain(GuarantorBalance)
    ),
    "insurance_balances": SyncedResource(
        "InsuranceBalance", "get_insurance_balances", mappers.map_insurance_balance, _plain(InsuranceBalance)
    ),
    "treatment_plans": SyncedResource(
        "TreatmentPlan", "get_treatment_plans", mappers.map_treatment_plan, _plain(TreatmentPlan)
    ),
    "claims": SyncedResource("Claim", "get_claims", mappers.map_claim, _plain(Claim)),
    "working_hours": SyncedResource(
        "WorkingHour", "get_working_hours", mappers.map_working_hour, EntityStore.upsert_working_hour
    ),
}
