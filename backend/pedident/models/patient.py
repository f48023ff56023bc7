from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pedident.models.base import Base, UuidPrimaryKeyMixin, utcnow

if TYPE_CHECKING:
    from pedident.models.dental_chart import DentalChart


class Patient(Base, UuidPrimaryKeyMixin):
    __tablename__ = "patients"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    ic_number: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    location: Mapped[str] = mapped_column(String(120), nullable=False, default="Faculty")
    dentist: Mapped[str] = mapped_column(String(200), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    dental_charts: Mapped[list["DentalChart"]] = relationship(
        back_populates="patient", order_by="DentalChart.created_at"
    )
