"""Claim model - insurance claims as tracked by the upstream system."""

from sqlalchemy import Column, Float, String

from database import Base
from models.utils import SyncedEntityMixin


class Claim(SyncedEntityMixin, Base):
    __tablename__ = "claims"

    patient_external_id = Column(String, nullable=True, index=True)
    total_amount = Column(Float, nullable=False, default=0.0)
    paid_amount = Column(Float, nullable=False, default=0.0)
    insurance_plan_id = Column(String, nullable=True)
    status = Column(String, nullable=True)
    submitted_date = Column(String, nullable=True)
    pms_foreign_id = Column(String, nullable=True)
