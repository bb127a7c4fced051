"""Canonical record shapes for data pulled from the practice-management system.

Every pull mapper in ``integrations.pms_mappers`` returns one of these
dataclasses. Field names match the columns of the corresponding synced
entity model, so the entity store can apply a record with a plain
attribute copy. ``external_id`` is always the upstream record id.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class PatientAddress:
    street: str
    city: str = ""
    state: str = ""
    zip: str = ""


@dataclass
class PMSPatient:
    """Normalized patient demographics."""

    external_id: str
    first_name: str
    last_name: str
    date_of_birth: str = ""  # YYYY-MM-DD, empty when unknown
    gender: str | None = None
    email: str | None = None
    phone: str | None = None
    address: PatientAddress | None = None
    is_active: bool = True


@dataclass
class PMSAppointment:
    """Normalized appointment.

    ``start_time``/``end_time`` are ``HH:MM`` in UTC on ``date``.
    """

    external_id: str
    patient_external_id: str | None
    provider_external_id: str | None
    date: str
    start_time: str
    end_time: str | None = None
    duration: int = 30  # minutes
    status: str = "scheduled"
    notes: str | None = None
    operatory_external_id: str | None = None


@dataclass
class PMSProvider:
    external_id: str
    first_name: str
    last_name: str
    npi: str | None = None
    provider_type: str = "assistant"  # dentist | hygienist | specialist | assistant
    specialty: str | None = None
    is_active: bool = True


@dataclass
class PMSOperatory:
    external_id: str
    name: str
    short_name: str | None = None
    is_active: bool = True


@dataclass
class PMSAppointmentType:
    external_id: str
    name: str
    duration: int = 30
    color: str | None = None
    code: str | None = None
    is_active: bool = True


@dataclass
class PMSInsurancePlan:
    external_id: str
    name: str
    payer_name: str | None = None
    payer_id: str | None = None
    group_number: str | None = None
    employer_name: str | None = None
    pms_foreign_id: str | None = None


@dataclass
class PMSInsuranceCoverage:
    external_id: str
    patient_external_id: str | None
    insurance_plan_external_id: str | None = None
    member_id: str | None = None
    group_number: str | None = None
    subscriber_name: str | None = None
    subscriber_dob: str | None = None
    relationship: str | None = None
    rank: str | None = None  # "primary" | "secondary" | upstream rank label
    effective_date: str | None = None
    termination_date: str | None = None


@dataclass
class PMSRecall:
    external_id: str
    patient_external_id: str | None
    recall_type_id: str | None = None
    due_date: str | None = None
    status: str | None = None
    completed_date: str | None = None


@dataclass
class PMSFeeSchedule:
    external_id: str
    name: str
    description: str | None = None
    is_default: bool = False


@dataclass
class PMSProcedure:
    external_id: str
    code: str | None
    description: str | None = None
    fee: float = 0.0
    tooth: str | None = None
    surface: str | None = None
    provider_external_id: str | None = None
    patient_external_id: str | None = None
    appointment_external_id: str | None = None
    status: str | None = None
    completed_at: str | None = None
    pms_foreign_id: str | None = None


@dataclass
class PMSCharge:
    external_id: str
    patient_external_id: str | None
    amount: float = 0.0
    provider_external_id: str | None = None
    procedure_code: str | None = None
    description: str | None = None
    date: str | None = None
    status: str = "active"  # "active" | "deleted"
    claim_external_id: str | None = None
    pms_foreign_id: str | None = None


@dataclass
class PMSPayment:
    external_id: str
    patient_external_id: str | None
    amount: float = 0.0
    payment_type_id: str | None = None
    payment_method: str | None = None
    date: str | None = None
    note: str | None = None
    claim_external_id: str | None = None
    pms_foreign_id: str | None = None


@dataclass
class PMSAdjustment:
    external_id: str
    patient_external_id: str | None
    amount: float = 0.0
    provider_external_id: str | None = None
    adjustment_type_id: str | None = None
    description: str | None = None
    date: str | None = None
    pms_foreign_id: str | None = None


@dataclass
class PMSGuarantorBalance:
    external_id: str
    patient_external_id: str | None
    balance: float = 0.0
    last_payment_date: str | None = None
    last_payment_amount: float | None = None
    pms_foreign_id: str | None = None


@dataclass
class PMSInsuranceBalance:
    external_id: str
    patient_external_id: str | None
    balance: float = 0.0
    insurance_plan_id: str | None = None
    pms_foreign_id: str | None = None


@dataclass
class PMSTreatmentPlan:
    external_id: str
    patient_external_id: str | None
    provider_external_id: str | None = None
    name: str | None = None
    status: str | None = None
    total_fee: float = 0.0
    procedures: list[dict[str, Any]] = field(default_factory=list)
    pms_foreign_id: str | None = None


@dataclass
class PMSClaim:
    external_id: str
    patient_external_id: str | None
    total_amount: float = 0.0
    paid_amount: float = 0.0
    insurance_plan_id: str | None = None
    status: str | None = None
    submitted_date: str | None = None
    pms_foreign_id: str | None = None


@dataclass
class PMSWorkingHour:
    external_id: str
    provider_external_id: str | None
    day_of_week: int  # 0 = Sunday
    start_time: str
    end_time: str
    location_id: str | None = None
    is_active: bool = True
    pms_foreign_id: str | None = None
