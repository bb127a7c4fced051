"""Balance models - guarantor and insurance account balances."""

from sqlalchemy import Column, Float, String

from database import Base
from models.utils import SyncedEntityMixin


class GuarantorBalance(SyncedEntityMixin, Base):
    __tablename__ = "guarantor_balances"

    patient_external_id = Column(String, nullable=True, index=True)
    balance = Column(Float, nullable=False, default=0.0)
    last_payment_date = Column(String, nullable=True)
    last_payment_amount = Column(Float, nullable=True)
    pms_foreign_id = Column(String, nullable=True)


class InsuranceBalance(SyncedEntityMixin, Base):
    __tablename__ = "insurance_balances"

    patient_external_id = Column(String, nullable=True, index=True)
    balance = Column(Float, nullable=False, default=0.0)
    insurance_plan_id = Column(String, nullable=True)
    pms_foreign_id = Column(String, nullable=True)
