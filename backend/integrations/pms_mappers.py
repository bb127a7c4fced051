"""Translation between upstream wire records and canonical records.

Pull mappers (``map_*``) take one upstream record dict and return a
canonical dataclass from ``integrations.pms_protocol``. Push mappers
(``*_to_wire``) take canonical values and return the body the client wraps
in its mutation envelope, with ``None`` fields left out.

Upstream API versions renamed several fields. Each concept lists its source
fields newest first in a module-level tuple, and ``pick`` resolves the tuple
in one place.

All functions are pure: no I/O, no clock reads unless a value is passed in.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from integrations.pms_protocol import (
    PatientAddress,
    PMSAdjustment,
    PMSAppointment,
    PMSAppointmentType,
    PMSCharge,
    PMSClaim,
    PMSFeeSchedule,
    PMSGuarantorBalance,
    PMSInsuranceBalance,
    PMSInsuranceCoverage,
    PMSInsurancePlan,
    PMSOperatory,
    PMSPatient,
    PMSPayment,
    PMSProcedure,
    PMSProvider,
    PMSRecall,
    PMSTreatmentPlan,
    PMSWorkingHour,
)

DEFAULT_APPOINTMENT_MINUTES = 30

DAY_NAMES = ["sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"]

# Field-name fallbacks, newest upstream name first.
PATIENT_PHONE_FIELDS = ("bio.cell_phone_number", "bio.phone_number", "bio.home_phone_number")
PATIENT_DOB_FIELDS = ("bio.date_of_birth", "date_of_birth")
PATIENT_GENDER_FIELDS = ("bio.gender", "gender")
COVERAGE_PLAN_FIELDS = ("plan_id", "insurance_plan_id")
COVERAGE_MEMBER_FIELDS = ("subscriber_num", "member_id")
COVERAGE_RELATION_FIELDS = ("subscription_relation", "relationship")
COVERAGE_END_FIELDS = ("expiration_date", "termination_date")
COVERAGE_GROUP_FIELDS = ("group_number", "group_num")
PAYMENT_AMOUNT_FIELDS = ("payment_amount", "amount")
PAYMENT_DATE_FIELDS = ("paid_at", "date")
PAYMENT_METHOD_FIELDS = ("payment_method", "type_name")
ADJUSTMENT_AMOUNT_FIELDS = ("adjustment_amount", "amount")
ADJUSTMENT_NOTE_FIELDS = ("description", "notes")
WORKING_HOUR_DAY_FIELDS = ("day_of_week", "day")

_STATUS_TO_UPSTREAM = {
    "scheduled": "Created",
    "confirmed": "Confirmed",
    "checked_in": "Checked In",
    "in_progress": "In Treatment",
    "completed": "Completed",
    "cancelled": "Cancelled",
    "no_show": "No Show",
}

_PROVIDER_TYPES = {
    "doctor": "dentist",
    "dentist": "dentist",
    "hygienist": "hygienist",
    "specialist": "specialist",
}

_AMOUNT_CLEAN_RE = re.compile(r"[^0-9.\-]")


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def _lookup(record: dict[str, Any], path: str) -> Any:
    value: Any = record
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def pick(record: dict[str, Any], fields: tuple[str, ...] | str, default: Any = None) -> Any:
    """Return the first non-None value among ``fields`` (dotted paths allowed)."""
    if isinstance(fields, str):
        fields = (fields,)
    for path in fields:
        value = _lookup(record, path)
        if value is not None:
            return value
    return default


def _id(value: Any) -> Optional[str]:
    """Upstream ids arrive as ints or strings; keep them as strings."""
    if value is None or value == "":
        return None
    return str(value)


def _required_id(record: dict[str, Any]) -> str:
    value = _id(record.get("id"))
    if value is None:
        raise ValueError("record has no id")
    return value


def _to_int(value: Any) -> Any:
    """Numeric ids go upstream as ints; anything non-numeric is passed through."""
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return value


def _compact(payload: dict[str, Any]) -> dict[str, Any]:
    """Drop ``None`` values (recursively for nested dicts)."""
    result = {}
    for key, value in payload.items():
        if isinstance(value, dict):
            value = _compact(value)
            if not value:
                continue
        if value is None:
            continue
        result[key] = value
    return result


def parse_amount(value: Any) -> float:
    """Parse an upstream money value to a float.

    Accepts price objects (``{"amount": "12.50", "currency": "USD"}``),
    formatted strings (``"$1,234.50"``) and plain numbers. Anything that
    cannot be parsed becomes 0.0.
    """
    if isinstance(value, dict):
        value = value.get("amount")
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        cleaned = _AMOUNT_CLEAN_RE.sub("", value)
        try:
            return float(cleaned)
        except ValueError:
            return 0.0
    return 0.0


def _optional_amount(value: Any) -> Optional[float]:
    if value is None:
        return None
    return parse_amount(value)


def format_amount(amount: float) -> str:
    """Format a float for the wire (``12.5`` -> ``"12.50"``)."""
    return f"{amount:.2f}"


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _hhmm(value: datetime) -> str:
    return value.strftime("%H:%M")


# ---------------------------------------------------------------------------
# Appointment status
# ---------------------------------------------------------------------------


def derive_appointment_status(record: dict[str, Any]) -> str:
    """Derive the local status from upstream flags.

    Priority: cancelled > patient_missed > checked_out > checkin_at >
    confirmed > scheduled.
    """
    if record.get("cancelled"):
        return "cancelled"
    if record.get("patient_missed"):
        return "no_show"
    if record.get("checked_out"):
        return "completed"
    if record.get("checkin_at"):
        return "checked_in"
    if record.get("confirmed"):
        return "confirmed"
    return "scheduled"


def status_to_upstream(status: str) -> str:
    """Map a local appointment status to the upstream status label."""
    return _STATUS_TO_UPSTREAM.get(status, "Created")


# ---------------------------------------------------------------------------
# Pull mappers
# ---------------------------------------------------------------------------


def map_patient(record: dict[str, Any]) -> PMSPatient:
    address = None
    line1 = pick(record, "bio.address_line_1")
    if line1:
        line2 = pick(record, "bio.address_line_2")
        address = PatientAddress(
            street=", ".join(part for part in (line1, line2) if part),
            city=pick(record, "bio.city", ""),
            state=pick(record, "bio.state", ""),
            zip=pick(record, "bio.zip_code", ""),
        )

    return PMSPatient(
        external_id=_required_id(record),
        first_name=record.get("first_name") or "",
        last_name=record.get("last_name") or "",
        date_of_birth=pick(record, PATIENT_DOB_FIELDS, ""),
        gender=pick(record, PATIENT_GENDER_FIELDS),
        email=record.get("email"),
        phone=pick(record, PATIENT_PHONE_FIELDS),
        address=address,
        is_active=not record.get("inactive", False),
    )


def map_appointment(record: dict[str, Any]) -> PMSAppointment:
    """Map an appointment.

    Duration comes from ``end_time - start_time`` when an end time is
    present, then from an explicit ``duration`` field, then defaults to 30
    minutes. A missing end time is computed from the duration.
    """
    raw_start = record.get("start_time")
    if not raw_start:
        raise ValueError("appointment has no start_time")
    start = _parse_timestamp(raw_start)

    raw_end = record.get("end_time")
    if raw_end:
        end = _parse_timestamp(raw_end)
        duration = round((end - start).total_seconds() / 60)
    else:
        duration = int(record.get("duration") or DEFAULT_APPOINTMENT_MINUTES)
        end = start + timedelta(minutes=duration)

    return PMSAppointment(
        external_id=_required_id(record),
        patient_external_id=_id(record.get("patient_id")),
        provider_external_id=_id(record.get("provider_id")),
        operatory_external_id=_id(record.get("operatory_id")),
        date=start.date().isoformat(),
        start_time=_hhmm(start),
        end_time=_hhmm(end),
        duration=duration,
        status=derive_appointment_status(record),
        notes=record.get("note"),
    )


def map_provider(record: dict[str, Any]) -> PMSProvider:
    raw_type = (record.get("provider_type") or "").lower()
    return PMSProvider(
        external_id=_required_id(record),
        first_name=record.get("first_name") or "",
        last_name=record.get("last_name") or "",
        npi=record.get("npi"),
        provider_type=_PROVIDER_TYPES.get(raw_type, "assistant"),
        specialty=record.get("specialty"),
        is_active=not record.get("inactive", False),
    )


def map_operatory(record: dict[str, Any]) -> PMSOperatory:
    return PMSOperatory(
        external_id=_required_id(record),
        name=record.get("name") or "",
        short_name=record.get("short_name"),
        is_active=not record.get("inactive", False),
    )


def map_appointment_type(record: dict[str, Any]) -> PMSAppointmentType:
    return PMSAppointmentType(
        external_id=_required_id(record),
        name=record.get("name") or "",
        duration=int(record.get("duration") or DEFAULT_APPOINTMENT_MINUTES),
        color=record.get("color"),
        code=record.get("code"),
        is_active=record.get("is_active") is not False,
    )


def map_insurance_plan(record: dict[str, Any]) -> PMSInsurancePlan:
    return PMSInsurancePlan(
        external_id=_required_id(record),
        name=record.get("name") or "",
        payer_name=record.get("payer_name") or record.get("name"),
        payer_id=_id(record.get("payer_id")),
        group_number=pick(record, ("group_num", "group_number")),
        employer_name=record.get("employer_name"),
        pms_foreign_id=_id(record.get("foreign_id")),
    )


def map_insurance_coverage(record: dict[str, Any]) -> PMSInsuranceCoverage:
    """Map a coverage.

    ``rank`` prefers the legacy string; otherwise numeric ``priority`` 0 is
    primary and anything else secondary.
    """
    rank = record.get("rank")
    if rank is None and record.get("priority") is not None:
        rank = "primary" if record.get("priority") == 0 else "secondary"

    return PMSInsuranceCoverage(
        external_id=_required_id(record),
        patient_external_id=_id(record.get("patient_id")),
        insurance_plan_external_id=_id(pick(record, COVERAGE_PLAN_FIELDS)),
        member_id=_id(pick(record, COVERAGE_MEMBER_FIELDS)),
        group_number=pick(record, COVERAGE_GROUP_FIELDS),
        subscriber_name=record.get("subscriber_name"),
        subscriber_dob=record.get("subscriber_dob"),
        relationship=pick(record, COVERAGE_RELATION_FIELDS),
        rank=rank,
        effective_date=record.get("effective_date"),
        termination_date=pick(record, COVERAGE_END_FIELDS),
    )


def map_recall(record: dict[str, Any]) -> PMSRecall:
    return PMSRecall(
        external_id=_required_id(record),
        patient_external_id=_id(record.get("patient_id")),
        recall_type_id=_id(record.get("recall_type_id")),
        due_date=record.get("due_date"),
        status=record.get("status"),
        completed_date=record.get("completed_date"),
    )


def map_fee_schedule(record: dict[str, Any]) -> PMSFeeSchedule:
    return PMSFeeSchedule(
        external_id=_required_id(record),
        name=record.get("name") or "",
        description=record.get("description"),
        is_default=record.get("is_default") is True,
    )


def map_procedure(record: dict[str, Any]) -> PMSProcedure:
    return PMSProcedure(
        external_id=_required_id(record),
        code=record.get("code"),
        description=record.get("description"),
        fee=parse_amount(record.get("fee")),
        tooth=_id(record.get("tooth")),
        surface=record.get("surface"),
        provider_external_id=_id(record.get("provider_id")),
        patient_external_id=_id(record.get("patient_id")),
        appointment_external_id=_id(record.get("appointment_id")),
        status=record.get("status"),
        completed_at=record.get("completed_at"),
        pms_foreign_id=_id(record.get("foreign_id")),
    )


def map_charge(record: dict[str, Any]) -> PMSCharge:
    """Map a charge. Upstream deletion becomes ``status="deleted"``."""
    claim_ids = record.get("claim_ids") or []
    return PMSCharge(
        external_id=_required_id(record),
        patient_external_id=_id(record.get("patient_id")),
        provider_external_id=_id(record.get("provider_id")),
        amount=parse_amount(pick(record, ("fee", "amount"))),
        procedure_code=_id(pick(record, ("procedure_code", "procedure_id"))),
        description=record.get("description"),
        date=record.get("charged_at"),
        status="deleted" if record.get("deleted_at") else "active",
        claim_external_id=_id(claim_ids[0]) if claim_ids else None,
        pms_foreign_id=_id(record.get("foreign_id")),
    )


def map_payment(record: dict[str, Any]) -> PMSPayment:
    return PMSPayment(
        external_id=_required_id(record),
        patient_external_id=_id(record.get("patient_id")),
        amount=parse_amount(pick(record, PAYMENT_AMOUNT_FIELDS)),
        payment_type_id=_id(record.get("payment_type_id")),
        payment_method=pick(record, PAYMENT_METHOD_FIELDS),
        date=pick(record, PAYMENT_DATE_FIELDS),
        note=record.get("description"),
        claim_external_id=_id(record.get("claim_id")),
        pms_foreign_id=_id(record.get("foreign_id")),
    )


def map_adjustment(record: dict[str, Any]) -> PMSAdjustment:
    provider_id = record.get("provider_id")
    if provider_id is None and record.get("provider_splits"):
        provider_id = next(iter(record["provider_splits"]))

    return PMSAdjustment(
        external_id=_required_id(record),
        patient_external_id=_id(record.get("patient_id")),
        provider_external_id=_id(provider_id),
        amount=parse_amount(pick(record, ADJUSTMENT_AMOUNT_FIELDS)),
        adjustment_type_id=_id(record.get("adjustment_type_id")),
        description=pick(record, ADJUSTMENT_NOTE_FIELDS),
        date=record.get("adjusted_at"),
        pms_foreign_id=_id(record.get("foreign_id")),
    )


def map_guarantor_balance(record: dict[str, Any]) -> PMSGuarantorBalance:
    return PMSGuarantorBalance(
        external_id=_required_id(record),
        patient_external_id=_id(record.get("patient_id")),
        balance=parse_amount(record.get("balance")),
        last_payment_date=record.get("last_payment_date"),
        last_payment_amount=_optional_amount(record.get("last_payment_amount")),
        pms_foreign_id=_id(record.get("foreign_id")),
    )


def map_insurance_balance(record: dict[str, Any]) -> PMSInsuranceBalance:
    return PMSInsuranceBalance(
        external_id=_required_id(record),
        patient_external_id=_id(record.get("patient_id")),
        balance=parse_amount(record.get("balance")),
        insurance_plan_id=_id(record.get("insurance_plan_id")),
        pms_foreign_id=_id(record.get("foreign_id")),
    )


def map_treatment_plan(record: dict[str, Any]) -> PMSTreatmentPlan:
    return PMSTreatmentPlan(
        external_id=_required_id(record),
        patient_external_id=_id(record.get("patient_id")),
        provider_external_id=_id(record.get("provider_id")),
        name=record.get("name"),
        status=record.get("status"),
        total_fee=parse_amount(record.get("total_fee")),
        procedures=list(record.get("procedures") or []),
        pms_foreign_id=_id(record.get("foreign_id")),
    )


def map_claim(record: dict[str, Any]) -> PMSClaim:
    """Map a claim.

    ``total_amount`` is the payment estimate and ``paid_amount`` the
    write-off total; the API exposes no separate paid figure.
    """
    return PMSClaim(
        external_id=_required_id(record),
        patient_external_id=_id(record.get("patient_id")),
        total_amount=parse_amount(record.get("payment_estimate_total")),
        paid_amount=parse_amount(record.get("write_off_total")),
        insurance_plan_id=_id(record.get("subscription_id")),
        status=record.get("status"),
        submitted_date=record.get("sent_at"),
        pms_foreign_id=_id(record.get("foreign_id")),
    )


def map_working_hour(record: dict[str, Any]) -> PMSWorkingHour:
    day = pick(record, WORKING_HOUR_DAY_FIELDS)
    if isinstance(day, str) and not day.isdigit():
        day = DAY_NAMES.index(day.lower()) if day.lower() in DAY_NAMES else None
    if day is None:
        raise ValueError("working hour has no day")

    return PMSWorkingHour(
        external_id=_required_id(record),
        provider_external_id=_id(record.get("provider_id")),
        day_of_week=int(day),
        start_time=record.get("start_time") or "",
        end_time=record.get("end_time") or "",
        location_id=_id(record.get("location_id")),
        is_active=record.get("is_active") is not False,
        pms_foreign_id=_id(record.get("foreign_id")),
    )


# ---------------------------------------------------------------------------
# Push mappers
# ---------------------------------------------------------------------------


def appointment_to_wire(
    date: str,
    start_time: str,
    duration: int,
    notes: Optional[str] = None,
    patient_external_id: Optional[str] = None,
    provider_external_id: Optional[str] = None,
    operatory_external_id: Optional[str] = None,
) -> dict[str, Any]:
    """Build an appointment body.

    Not carried: status (set through ``cancelled`` on update), end time
    (derived upstream from duration).
    """
    return _compact({
        "patient_id": _to_int(patient_external_id),
        "provider_id": _to_int(provider_external_id),
        "operatory_id": _to_int(operatory_external_id),
        "start_time": f"{date}T{start_time}:00Z" if date and start_time else None,
        "duration": duration,
        "note": notes,
    })


def patient_to_wire(
    first_name: str,
    last_name: str,
    email: Optional[str] = None,
    date_of_birth: Optional[str] = None,
    gender: Optional[str] = None,
    phone: Optional[str] = None,
    address: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    """Build a patient body.

    Not carried: ``is_active``. The full street goes in ``address_line_1``.
    """
    address = address or {}
    return _compact({
        "first_name": first_name,
        "last_name": last_name,
        "email": email,
        "bio": {
            "date_of_birth": date_of_birth or None,
            "gender": gender,
            "cell_phone_number": phone or None,
            "address_line_1": address.get("street") or None,
            "city": address.get("city") or None,
            "state": address.get("state") or None,
            "zip_code": address.get("zip") or None,
        },
    })


def payment_to_wire(
    patient_external_id: str,
    amount: float,
    transaction_id: str,
    payment_method: Optional[str] = None,
    payment_type_id: Optional[str] = None,
    date: Optional[str] = None,
    note: Optional[str] = None,
    claim_external_id: Optional[str] = None,
) -> dict[str, Any]:
    """Build a payment transaction body. ``type_name`` defaults to Cash."""
    return _compact({
        "patient_id": _to_int(patient_external_id),
        "amount": amount,
        "transaction_id": transaction_id,
        "type_name": payment_method or "Cash",
        "payment_type_id": _to_int(payment_type_id),
        "paid_at": date,
        "description": note,
        "claim_id": _to_int(claim_external_id),
    })


def adjustment_to_wire(
    patient_external_id: str,
    amount: float,
    transaction_id: str,
    adjusted_at: str,
    adjustment_type_id: Optional[str] = None,
    description: Optional[str] = None,
    provider_external_id: Optional[str] = None,
) -> dict[str, Any]:
    """Build an adjustment body.

    The provider is carried as a one-entry ``provider_splits`` map holding
    the whole amount.
    """
    return _compact({
        "patient_id": _to_int(patient_external_id),
        "amount": amount,
        "transaction_id": transaction_id,
        "adjustment_type_id": _to_int(adjustment_type_id),
        "notes": description,
        "adjusted_at": adjusted_at,
        "provider_splits": (
            {provider_external_id: format_amount(amount)} if provider_external_id else None
        ),
    })


def appointment_type_to_wire(name: str, duration: int, code: Optional[str] = None) -> dict[str, Any]:
    """Build an appointment type body. Not carried: color, active flag."""
    return _compact({"name": name, "duration": duration, "code": code or None})


def working_hour_to_wire(
    day_of_week: int,
    start_time: str,
    end_time: str,
    provider_external_id: Optional[str] = None,
) -> dict[str, Any]:
    """Build a working hour body. Upstream takes day names, not numbers."""
    day = DAY_NAMES[day_of_week] if 0 <= day_of_week < len(DAY_NAMES) else "monday"
    return _compact({
        "day": day,
        "start_time": start_time,
        "end_time": end_time,
        "provider_id": _to_int(provider_external_id),
    })


def patient_alert_to_wire(note: str, alert_type: Optional[str] = None) -> dict[str, Any]:
    return {"note": note, "alert_type": alert_type or "general"}


def patient_document_to_wire(
    name: str, document_type: Optional[str] = None, url: Optional[str] = None
) -> dict[str, Any]:
    return _compact({"name": name, "document_type": document_type or "other", "url": url or None})
