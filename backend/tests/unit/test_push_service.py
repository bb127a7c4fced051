"""Tests for pushing local changes upstream."""

from datetime import datetime, timezone

import pytest

from integrations.exceptions import PMSAPIError
from models import (
    Adjustment,
    Appointment,
    AppointmentType,
    Patient,
    PatientAlert,
    PatientDocument,
    Payment,
    WorkingHour,
)
from services.entity_store import RESOURCES
from services.push_service import PushService
from tests.fixtures.mocks import MockPMSClient

NOW = datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc)
NOW_MS = int(NOW.timestamp() * 1000)


@pytest.fixture
def pms():
    return MockPMSClient(created_ids=["555"])


@pytest.fixture
def service(pms):
    return PushService(client_factory=lambda config: pms, now=lambda: NOW)


class TestPushAppointment:
    def test_create_stamps_upstream_id(self, db, tenant_config, appointment, service, pms):
        result = service.push_appointment(db, tenant_config.id, appointment.id, "create")

        assert result.success
        assert result.foreign_id == "555"
        assert appointment.external_id == "555"
        name, _, body = pms.mutations[0]
        assert name == "create_appointment"
        assert body["patient_id"] == 201
        assert body["provider_id"] == 101
        assert body["start_time"] == "2026-10-20T15:00:00Z"
        assert pms.closed

    def test_pull_after_push_updates_same_row(self, db, tenant_config, appointment, service):
        service.push_appointment(db, tenant_config.id, appointment.id, "create")

        RESOURCES["appointments"].apply(db, tenant_config.id, {
            "id": 555, "patient_id": 201, "provider_id": 101,
            "start_time": "2026-10-20T15:30:00Z", "duration": 60, "confirmed": True,
        })

        rows = db.query(Appointment).all()
        assert len(rows) == 1
        assert rows[0].id == appointment.id
        assert rows[0].start_time == "15:30"
        assert rows[0].status == "confirmed"

    def test_create_merges_twin_pulled_before_push_returns(self, db, tenant_config, appointment, service):
        RESOURCES["appointments"].apply(db, tenant_config.id, {
            "id": 555, "patient_id": 201, "provider_id": 101,
            "start_time": "2026-10-20T15:00:00Z", "duration": 60,
        })
        db.commit()

        result = service.push_appointment(db, tenant_config.id, appointment.id, "create")

        assert result.success
        assert result.foreign_id == "555"
        rows = db.query(Appointment).all()
        assert len(rows) == 1
        assert rows[0].id == appointment.id
        assert rows[0].external_id == "555"

    def test_create_on_linked_appointment_updates(self, db, tenant_config, appointment, service, pms):
        appointment.external_id = "401"
        db.flush()

        result = service.push_appointment(db, tenant_config.id, appointment.id, "create")

        assert result.foreign_id == "401"
        assert pms.mutation_names() == ["update_appointment"]
        assert appointment.external_id == "401"

    def test_update_requires_upstream_id(self, db, tenant_config, appointment, service, pms):
        result = service.push_appointment(db, tenant_config.id, appointment.id, "update")

        assert not result.success
        assert result.error == "No PMS appointment ID to update"
        assert pms.mutations == []

    def test_cancel_requires_upstream_id(self, db, tenant_config, appointment, service):
        result = service.push_appointment(db, tenant_config.id, appointment.id, "cancel")

        assert result.error == "No PMS appointment ID to cancel"

    def test_cancel_sets_flag_and_local_status(self, db, tenant_config, appointment, service, pms):
        appointment.external_id = "401"
        db.flush()

        result = service.push_appointment(db, tenant_config.id, appointment.id, "cancel")

        assert result.success
        assert pms.mutations == [("update_appointment", "401", {"cancelled": True})]
        assert appointment.status == "cancelled"

    def test_update_sends_schedule_fields(self, db, tenant_config, appointment, service, pms):
        appointment.external_id = "401"
        appointment.notes = None
        db.flush()

        service.push_appointment(db, tenant_config.id, appointment.id, "update")

        assert pms.mutations == [(
            "update_appointment", "401",
            {"start_time": "2026-10-20T15:00:00Z", "duration": 60},
        )]

    def test_unknown_appointment(self, db, tenant_config, service):
        assert service.push_appointment(db, tenant_config.id, "missing", "create").error == "Appointment not found"

    def test_unknown_operation(self, db, tenant_config, appointment, service):
        result = service.push_appointment(db, tenant_config.id, appointment.id, "reschedule")

        assert result.error == "Unknown operation: reschedule"

    def test_upstream_error_returned(self, db, tenant_config, appointment):
        pms = MockPMSClient(fail_on={"create_appointment": PMSAPIError("Request failed", status_code=422)})
        service = PushService(client_factory=lambda config: pms)

        result = service.push_appointment(db, tenant_config.id, appointment.id, "create")

        assert not result.success
        assert result.error == "Request failed (HTTP 422)"
        assert appointment.external_id is None
        assert pms.closed

    def test_inactive_tenant_has_no_config(self, db, tenant_config, appointment, service):
        tenant_config.is_active = False
        db.flush()

        result = service.push_appointment(db, tenant_config.id, appointment.id, "create")

        assert result.error == "No PMS config"


class TestPushSchedulingReferenceData:
    def test_appointment_type_create_then_update(self, db, tenant_config, service, pms):
        appt_type = AppointmentType(tenant_id=tenant_config.id, name="Cleaning", duration=60, code="D1110")
        db.add(appt_type)
        db.flush()

        created = service.push_appointment_type(db, tenant_config.id, appt_type.id, "create")
        again = service.push_appointment_type(db, tenant_config.id, appt_type.id, "create")

        assert created.foreign_id == "555"
        assert again.foreign_id == "555"
        assert pms.mutation_names() == ["create_appointment_type", "update_appointment_type"]

    def test_appointment_type_update_requires_upstream_id(self, db, tenant_config, service):
        appt_type = AppointmentType(tenant_id=tenant_config.id, name="Exam", duration=30)
        db.add(appt_type)
        db.flush()

        result = service.push_appointment_type(db, tenant_config.id, appt_type.id, "update")

        assert result.error == "No PMS appointment type ID to update"

    def test_working_hour_lifecycle(self, db, tenant_config, provider, service, pms):
        hour = WorkingHour(
            tenant_id=tenant_config.id, provider_id=provider.id,
            day_of_week=2, start_time="08:00", end_time="17:00",
        )
        db.add(hour)
        db.flush()

        service.push_working_hour(db, tenant_config.id, hour.id, "create")
        service.push_working_hour(db, tenant_config.id, hour.id, "update")
        deleted = service.push_working_hour(db, tenant_config.id, hour.id, "delete")

        assert pms.mutation_names() == ["create_working_hour", "update_working_hour", "delete_working_hour"]
        assert pms.mutations[0][2] == {"day": "tuesday", "start_time": "08:00", "end_time": "17:00", "provider_id": 101}
        assert deleted.success
        assert hour.is_active is False

    def test_working_hour_update_requires_upstream_id(self, db, tenant_config, service):
        hour = WorkingHour(tenant_id=tenant_config.id, day_of_week=1, start_time="09:00", end_time="12:00")
        db.add(hour)
        db.flush()

        result = service.push_working_hour(db, tenant_config.id, hour.id, "update")

        assert result.error == "No PMS working hour ID to update"

    def test_never_pushed_working_hour_delete_succeeds(self, db, tenant_config, service, pms):
        hour = WorkingHour(tenant_id=tenant_config.id, day_of_week=1, start_time="09:00", end_time="12:00")
        db.add(hour)
        db.flush()

        result = service.push_working_hour(db, tenant_config.id, hour.id, "delete")

        assert result.success
        assert pms.mutations == []
        assert hour.is_active is False


class TestPushPatients:
    def test_local_patient_created_upstream(self, db, tenant_config, service, pms):
        local = Patient(tenant_id=tenant_config.id, first_name="Mary", last_name="Somerville", date_of_birth="1980-02-26")
        db.add(local)
        db.flush()

        result = service.push_patient(db, tenant_config.id, local.id)

        assert result.foreign_id == "555"
        assert local.external_id == "555"
        assert pms.mutations[0][2]["bio"] == {"date_of_birth": "1980-02-26"}

    def test_twin_references_move_to_local_patient(self, db, tenant_config, service):
        local = Patient(tenant_id=tenant_config.id, first_name="Mary", last_name="Somerville", date_of_birth="1980-02-26")
        twin = Patient(
            tenant_id=tenant_config.id, external_id="555",
            first_name="M.", last_name="Somerville", date_of_birth="1980-02-26",
        )
        db.add_all([local, twin])
        db.flush()
        booked = Appointment(
            tenant_id=tenant_config.id, external_id="777", patient_id=twin.id, patient_external_id="555",
            date="2026-10-21", start_time="09:00", duration=30, status="scheduled",
        )
        db.add(booked)
        db.commit()

        result = service.push_patient(db, tenant_config.id, local.id)

        assert result.success
        patients = db.query(Patient).all()
        assert [p.id for p in patients] == [local.id]
        assert patients[0].external_id == "555"
        assert db.query(Appointment).one().patient_id == local.id

    def test_linked_patient_updated(self, db, patient, tenant_config, service, pms):
        result = service.push_patient(db, tenant_config.id, patient.id)

        assert result.foreign_id == "201"
        assert pms.mutation_names() == ["update_patient"]

    def test_alert_requires_linked_patient(self, db, tenant_config, service):
        local = Patient(tenant_id=tenant_config.id, first_name="No", last_name="Link")
        db.add(local)
        db.flush()
        alert = PatientAlert(tenant_id=tenant_config.id, patient_id=local.id, note="Latex allergy")
        db.add(alert)
        db.flush()

        result = service.push_patient_alert(db, tenant_config.id, alert.id)

        assert result.error == "Patient has no PMS ID"

    def test_alert_and_document_pushed(self, db, tenant_config, patient, service, pms):
        pms.created_ids = ["a-1", "d-1"]
        alert = PatientAlert(tenant_id=tenant_config.id, patient_id=patient.id, note="Latex allergy")
        document = PatientDocument(tenant_id=tenant_config.id, patient_id=patient.id, name="xray.png", url="https://files/x")
        db.add_all([alert, document])
        db.flush()

        alert_result = service.push_patient_alert(db, tenant_config.id, alert.id)
        document_result = service.push_patient_document(db, tenant_config.id, document.id)

        assert (alert_result.foreign_id, document_result.foreign_id) == ("a-1", "d-1")
        assert pms.mutations[0] == ("create_patient_alert", "201", {"note": "Latex allergy", "alert_type": "general"})
        assert pms.mutations[1][1] == "201"
        assert document.external_id == "d-1"

    def test_pushed_alert_not_created_twice(self, db, tenant_config, patient, service, pms):
        alert = PatientAlert(tenant_id=tenant_config.id, patient_id=patient.id, external_id="a-1", note="Latex allergy")
        document = PatientDocument(tenant_id=tenant_config.id, patient_id=patient.id, external_id="d-1", name="xray.png")
        db.add_all([alert, document])
        db.flush()

        alert_result = service.push_patient_alert(db, tenant_config.id, alert.id)
        document_result = service.push_patient_document(db, tenant_config.id, document.id)

        assert alert_result.error == "Alert already pushed"
        assert document_result.error == "Document already pushed"
        assert pms.mutations == []


class TestPushBilling:
    def test_payment_posted_and_mirrored(self, db, tenant_config, service, pms):
        result = service.push_payment(db, tenant_config.id, "201", 40.0, note="copay")

        assert result.foreign_id == "555"
        body = pms.mutations[0][2]
        assert body["transaction_id"] == f"API:practice-sync-pay-{NOW_MS}"
        assert body["type_name"] == "Cash"
        payment = db.query(Payment).one()
        assert payment.external_id == "555"
        assert payment.amount == 40.0

    def test_pulled_payment_lands_on_mirrored_row(self, db, tenant_config, service):
        service.push_payment(db, tenant_config.id, "201", 40.0)

        RESOURCES["payments"].apply(db, tenant_config.id, {"id": "555", "patient_id": 201, "payment_amount": "40.00"})

        assert db.query(Payment).count() == 1

    def test_adjustment_defaults_date_to_today(self, db, tenant_config, service, pms):
        result = service.push_adjustment(db, tenant_config.id, "201", -15.0, provider_external_id="101")

        assert result.success
        body = pms.mutations[0][2]
        assert body["adjusted_at"] == "2026-10-16"
        assert body["transaction_id"] == f"API:practice-sync-adj-{NOW_MS}"
        assert body["provider_splits"] == {"101": "-15.00"}
        assert db.query(Adjustment).one().date == "2026-10-16"

    def test_payment_without_config(self, db, service):
        result = service.push_payment(db, "missing", "201", 10.0)

        assert result.error == "No PMS config"
