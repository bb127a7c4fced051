"""Operatory model - treatment rooms/chairs."""

from sqlalchemy import Boolean, Column, String

from database import Base
from models.utils import SyncedEntityMixin


class Operatory(SyncedEntityMixin, Base):
    __tablename__ = "operatories"

    name = Column(String, nullable=False)
    short_name = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
