"""FeeSchedule model."""

from sqlalchemy import Boolean, Column, String, Text

from database import Base
from models.utils import SyncedEntityMixin


class FeeSchedule(SyncedEntityMixin, Base):
    __tablename__ = "fee_schedules"

    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    is_default = Column(Boolean, nullable=False, default=False)
