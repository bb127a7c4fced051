"""Integration tests for push-back API endpoints."""

from models import Appointment, Payment


class TestPushAppointmentEndpoint:
    def test_create(self, client, db, tenant_config, appointment, mock_pms_client):
        response = client.post(
            f"/api/push/{tenant_config.id}/appointments",
            json={"appointment_id": appointment.id, "operation": "create"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["foreign_id"] == "9001"
        db.refresh(appointment)
        assert appointment.external_id == "9001"
        assert mock_pms_client.mutation_names() == ["create_appointment"]

    def test_business_failure_is_200(self, client, tenant_config, appointment):
        response = client.post(
            f"/api/push/{tenant_config.id}/appointments",
            json={"appointment_id": appointment.id, "operation": "cancel"},
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": False, "foreign_id": None, "error": "No PMS appointment ID to cancel",
        }

    def test_upstream_failure_rolled_back(self, client_with_failing_pms, db, tenant_config, appointment):
        response = client_with_failing_pms.post(
            f"/api/push/{tenant_config.id}/appointments",
            json={"appointment_id": appointment.id, "operation": "create"},
        )

        assert response.json()["success"] is False
        assert db.query(Appointment).one().external_id is None

    def test_invalid_operation(self, client, tenant_config, appointment):
        response = client.post(
            f"/api/push/{tenant_config.id}/appointments",
            json={"appointment_id": appointment.id, "operation": "reschedule"},
        )

        assert response.status_code == 422

    def test_unknown_tenant(self, client):
        response = client.post(
            "/api/push/missing/appointments",
            json={"appointment_id": "x", "operation": "create"},
        )

        assert response.status_code == 404


class TestPushPatientEndpoints:
    def test_patient(self, client, tenant_config, patient, mock_pms_client):
        response = client.post(f"/api/push/{tenant_config.id}/patients", json={"patient_id": patient.id})

        assert response.json() == {"success": True, "foreign_id": "201", "error": None}
        assert mock_pms_client.mutation_names() == ["update_patient"]

    def test_unknown_alert(self, client, tenant_config):
        response = client.post(f"/api/push/{tenant_config.id}/patient-alerts", json={"alert_id": "missing"})

        assert response.json()["error"] == "Alert not found"


class TestPushBillingEndpoints:
    def test_payment(self, client, db, tenant_config):
        response = client.post(
            f"/api/push/{tenant_config.id}/payments",
            json={"patient_external_id": "201", "amount": 25.5, "payment_method": "Visa"},
        )

        assert response.json()["success"] is True
        payment = db.query(Payment).one()
        assert payment.payment_method == "Visa"
        assert payment.amount == 25.5

    def test_payment_amount_must_be_positive(self, client, tenant_config):
        response = client.post(
            f"/api/push/{tenant_config.id}/payments",
            json={"patient_external_id": "201", "amount": 0},
        )

        assert response.status_code == 422

    def test_adjustment(self, client, tenant_config, mock_pms_client):
        response = client.post(
            f"/api/push/{tenant_config.id}/adjustments",
            json={"patient_external_id": "201", "amount": -10, "date": "2026-10-01"},
        )

        assert response.json()["success"] is True
        body = mock_pms_client.mutations[0][2]
        assert body["adjusted_at"] == "2026-10-01"
        assert body["transaction_id"].startswith("API:practice-sync-adj-")
