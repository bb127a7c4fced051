"""PatientDocument model - document references pushed to the patient chart."""

from sqlalchemy import Column, ForeignKey, String
from sqlalchemy.orm import relationship

from database import Base
from models.utils import SyncedEntityMixin


class PatientDocument(SyncedEntityMixin, Base):
    __tablename__ = "patient_documents"

    patient_id = Column(String(36), ForeignKey("patients.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    document_type = Column(String, nullable=True)
    url = Column(String, nullable=True)

    # Relationships
    patient = relationship("Patient")
