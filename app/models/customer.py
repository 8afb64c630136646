from __future__ import annotations

import uuid

from sqlalchemy import CheckConstraint, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models._mixins import TimestampMixin


class Customer(Base, TimestampMixin):
    __tablename__ = "customers"
    __table_args__ = (CheckConstraint("visits >= 1", name="ck_customers_visits_positive"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Digits only; the identity key of a customer.
    phone_number: Mapped[str] = mapped_column(String(32), nullable=False, unique=True, index=True)

    visits: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
