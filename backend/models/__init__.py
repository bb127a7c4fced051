"""SQLAlchemy ORM models."""

from .tenant_sync_config import TenantSyncConfig
from .sync_job import SyncJob
from .webhook_event import WebhookEvent
from .health import HealthAlert, HealthCheck
from .patient import Patient, PatientMatchCandidate
from .provider import Provider
from .operatory import Operatory
from .appointment_type import AppointmentType
from .appointment import Appointment
from .working_hour import WorkingHour
from .recall import Recall
from .fee_schedule import FeeSchedule
from .insurance import InsuranceCoverage, InsurancePlan
from .procedure import Procedure
from .charge import Charge
from .payment import Payment
from .adjustment import Adjustment
from .balance import GuarantorBalance, InsuranceBalance
from .treatment_plan import TreatmentPlan
from .claim import Claim
from .patient_alert import PatientAlert
from .patient_document import PatientDocument
from .utils import generate_uuid

__all__ = ["Adjustment", "Appointment", "AppointmentType", "Charge", "Claim", "FeeSchedule", "GuarantorBalance", "HealthAlert", "HealthCheck", "InsuranceBalance", "InsuranceCoverage", "InsurancePlan", "Operatory", "Patient", "PatientAlert", "PatientDocument", "PatientMatchCandidate", "Payment", "Procedure", "Provider", "Recall", "SyncJob", "TenantSyncConfig", "TreatmentPlan", "WebhookEvent", "WorkingHour", "generate_uuid"]
