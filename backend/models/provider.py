"""Provider model - dentists, hygienists and staff from the upstream system."""

from sqlalchemy import Boolean, Column, String
from sqlalchemy.orm import relationship

from database import Base
from models.utils import SyncedEntityMixin


class Provider(SyncedEntityMixin, Base):
    __tablename__ = "providers"

    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    npi = Column(String, nullable=True)
    provider_type = Column(String, nullable=False, default="assistant")
    specialty = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    # Relationships
    appointments = relationship("Appointment", back_populates="provider")
    working_hours = relationship("WorkingHour", back_populates="provider")
