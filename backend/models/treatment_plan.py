"""TreatmentPlan model."""

from sqlalchemy import Column, Float, JSON, String

from database import Base
from models.utils import SyncedEntityMixin


class TreatmentPlan(SyncedEntityMixin, Base):
    __tablename__ = "treatment_plans"

    patient_external_id = Column(String, nullable=True, index=True)
    provider_external_id = Column(String, nullable=True)
    name = Column(String, nullable=True)
    status = Column(String, nullable=True)
    total_fee = Column(Float, nullable=False, default=0.0)
    procedures = Column(JSON, nullable=False, default=list)
    pms_foreign_id = Column(String, nullable=True)
