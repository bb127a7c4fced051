"""Payment model - patient and insurance payments."""

from sqlalchemy import Column, Float, String, Text

from database import Base
from models.utils import SyncedEntityMixin


class Payment(SyncedEntityMixin, Base):
    __tablename__ = "payments"

    patient_external_id = Column(String, nullable=True, index=True)
    amount = Column(Float, nullable=False, default=0.0)
    payment_type_id = Column(String, nullable=True)
    payment_method = Column(String, nullable=True)
    date = Column(String, nullable=True)
    note = Column(Text, nullable=True)
    claim_external_id = Column(String, nullable=True)
    pms_foreign_id = Column(String, nullable=True)
