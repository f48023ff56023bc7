from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import JSON, Boolean, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pedident.models.base import Base, TimestampMixin, UuidPrimaryKeyMixin

if TYPE_CHECKING:
    from pedident.models.patient import Patient


class DentalChart(Base, UuidPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "dental_charts"

    patient_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("patients.id"), nullable=False, index=True
    )
    # {"16": {"state": "carious", "surfaces": {"occlusal": "carious"}}, ...}
    tooth_states: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    patient: Mapped["Patient"] = relationship(back_populates="dental_charts")
