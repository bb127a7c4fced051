"""Adjustment model - ledger write-offs and credits."""

from sqlalchemy import Column, Float, String, Text

from database import Base
from models.utils import SyncedEntityMixin


class Adjustment(SyncedEntityMixin, Base):
    __tablename__ = "adjustments"

    patient_external_id = Column(String, nullable=True, index=True)
    amount = Column(Float, nullable=False, default=0.0)
    provider_external_id = Column(String, nullable=True)
    adjustment_type_id = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    date = Column(String, nullable=True)
    pms_foreign_id = Column(String, nullable=True)
