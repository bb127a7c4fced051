"""Appointment model."""

from sqlalchemy import Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from database import Base
from models.utils import SyncedEntityMixin


class Appointment(SyncedEntityMixin, Base):
    """A scheduled visit.

    Upstream references are kept as ``*_external_id``; ``patient_id`` and
    ``provider_id`` point at local rows when those have been synced.
    Locally booked appointments set the local ids and have no
    ``external_id`` until pushed.
    """

    __tablename__ = "appointments"

    patient_id = Column(String(36), ForeignKey("patients.id"), nullable=True, index=True)
    provider_id = Column(String(36), ForeignKey("providers.id"), nullable=True, index=True)
    patient_external_id = Column(String, nullable=True)
    provider_external_id = Column(String, nullable=True)
    operatory_external_id = Column(String, nullable=True)
    date = Column(String, nullable=False)  # YYYY-MM-DD
    start_time = Column(String, nullable=False)  # HH:MM UTC
    end_time = Column(String, nullable=True)
    duration = Column(Integer, nullable=False, default=30)
    status = Column(String, nullable=False, default="scheduled")
    notes = Column(Text, nullable=True)

    # Relationships
    patient = relationship("Patient", back_populates="appointments")
    provider = relationship("Provider", back_populates="appointments")
