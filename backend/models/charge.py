"""Charge model - production posted to a patient ledger."""

from sqlalchemy import Column, Float, String, Text

from database import Base
from models.utils import SyncedEntityMixin


class Charge(SyncedEntityMixin, Base):
    """A ledger charge. Upstream deletion sets ``status="deleted"``."""

    __tablename__ = "charges"

    patient_external_id = Column(String, nullable=True, index=True)
    amount = Column(Float, nullable=False, default=0.0)
    provider_external_id = Column(String, nullable=True)
    procedure_code = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    date = Column(String, nullable=True)
    status = Column(String, nullable=False, default="active")
    claim_external_id = Column(String, nullable=True)
    pms_foreign_id = Column(String, nullable=True)
