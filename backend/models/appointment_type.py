"""AppointmentType model."""

from sqlalchemy import Boolean, Column, Integer, String

from database import Base
from models.utils import SyncedEntityMixin


class AppointmentType(SyncedEntityMixin, Base):
    __tablename__ = "appointment_types"

    name = Column(String, nullable=False)
    duration = Column(Integer, nullable=False, default=30)  # minutes
    color = Column(String, nullable=True)
    code = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
