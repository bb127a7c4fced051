"""PatientAlert model - chart alerts written locally and pushed upstream."""

from sqlalchemy import Column, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from database import Base
from models.utils import SyncedEntityMixin


class PatientAlert(SyncedEntityMixin, Base):
    __tablename__ = "patient_alerts"

    patient_id = Column(String(36), ForeignKey("patients.id"), nullable=False, index=True)
    note = Column(Text, nullable=False)
    alert_type = Column(String, nullable=True)

    # Relationships
    patient = relationship("Patient")
