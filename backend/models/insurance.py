"""Insurance models - plans and per-patient coverages."""

from sqlalchemy import Column, ForeignKey, String

from database import Base
from models.utils import SyncedEntityMixin


class InsurancePlan(SyncedEntityMixin, Base):
    __tablename__ = "insurance_plans"

    name = Column(String, nullable=False)
    payer_name = Column(String, nullable=True)
    payer_id = Column(String, nullable=True)
    group_number = Column(String, nullable=True)
    employer_name = Column(String, nullable=True)
    pms_foreign_id = Column(String, nullable=True)


class InsuranceCoverage(SyncedEntityMixin, Base):
    """A patient's enrollment in an insurance plan.

    ``insurance_plan_id`` is resolved from ``insurance_plan_external_id``
    against plans already synced in the same run.
    """

    __tablename__ = "insurance_coverages"

    patient_external_id = Column(String, nullable=True, index=True)
    insurance_plan_external_id = Column(String, nullable=True)
    insurance_plan_id = Column(String(36), ForeignKey("insurance_plans.id"), nullable=True)
    member_id = Column(String, nullable=True)
    group_number = Column(String, nullable=True)
    subscriber_name = Column(String, nullable=True)
    subscriber_dob = Column(String, nullable=True)
    relationship = Column(String, nullable=True)
    rank = Column(String, nullable=True)
    effective_date = Column(String, nullable=True)
    termination_date = Column(String, nullable=True)
