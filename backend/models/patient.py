"""Patient models - synced demographics and the fuzzy-match review queue."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, String
from sqlalchemy.orm import relationship

from database import Base
from models.utils import SyncedEntityMixin, generate_uuid, utc_now


class Patient(SyncedEntityMixin, Base):
    """A patient mirrored from (or pushed to) the upstream system."""

    __tablename__ = "patients"

    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    date_of_birth = Column(String, nullable=False, default="")  # YYYY-MM-DD
    gender = Column(String, nullable=True)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    address = Column(JSON, nullable=True)  # {street, city, state, zip}
    is_active = Column(Boolean, nullable=False, default=True)
    match_status = Column(String, nullable=True)  # "matched" | "ambiguous"

    # Relationships
    appointments = relationship("Appointment", back_populates="patient")


class PatientMatchCandidate(Base):
    """An upstream patient that matched several local patients by name and DOB.

    The first local match is linked; this row queues the link for review.
    """

    __tablename__ = "patient_match_candidates"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String(36), ForeignKey("tenant_sync_configs.id"), nullable=False, index=True)
    patient_id = Column(String(36), ForeignKey("patients.id"), nullable=False)
    external_id = Column(String, nullable=False)
    candidate_count = Column(Integer, nullable=False)
    match_fields = Column(JSON, nullable=False, default=list)
    status = Column(String, nullable=False, default="pending")
    created_at = Column(DateTime, default=utc_now)
