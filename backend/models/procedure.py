"""Procedure model - performed or planned clinical procedures."""

from sqlalchemy import Column, Float, String, Text

from database import Base
from models.utils import SyncedEntityMixin


class Procedure(SyncedEntityMixin, Base):
    __tablename__ = "procedures"

    code = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    fee = Column(Float, nullable=False, default=0.0)
    tooth = Column(String, nullable=True)
    surface = Column(String, nullable=True)
    provider_external_id = Column(String, nullable=True)
    patient_external_id = Column(String, nullable=True, index=True)
    appointment_external_id = Column(String, nullable=True)
    status = Column(String, nullable=True)
    completed_at = Column(String, nullable=True)
    pms_foreign_id = Column(String, nullable=True)
