"""WorkingHour model - provider availability blocks."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from database import Base
from models.utils import SyncedEntityMixin


class WorkingHour(SyncedEntityMixin, Base):
    __tablename__ = "working_hours"

    provider_id = Column(String(36), ForeignKey("providers.id"), nullable=True)
    provider_external_id = Column(String, nullable=True)
    day_of_week = Column(Integer, nullable=False)  # 0 = Sunday
    start_time = Column(String, nullable=False)
    end_time = Column(String, nullable=False)
    location_id = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    pms_foreign_id = Column(String, nullable=True)

    # Relationships
    provider = relationship("Provider", back_populates="working_hours")
