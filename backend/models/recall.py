"""Recall model - patient recall (hygiene/recare) due dates."""

from sqlalchemy import Column, String

from database import Base
from models.utils import SyncedEntityMixin


class Recall(SyncedEntityMixin, Base):
    __tablename__ = "recalls"

    patient_external_id = Column(String, nullable=True, index=True)
    recall_type_id = Column(String, nullable=True)
    due_date = Column(String, nullable=True)
    status = Column(String, nullable=True)
    completed_date = Column(String, nullable=True)
