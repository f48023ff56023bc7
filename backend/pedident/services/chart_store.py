from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pedident.models.base import utcnow
from pedident.models.dental_chart import DentalChart
from pedident.models.patient import Patient
from pedident.services.tooth_record import dump_tooth_states, parse_tooth_states

logger = logging.getLogger("pedident.store")


class PatientConflictError(ValueError):
    """A patient with the same IC number already exists."""


class PatientNotFoundError(LookupError):
    pass


class ChartNotFoundError(LookupError):
    pass


def _normalize_tooth_states(tooth_states: Mapping[str, Any] | None) -> dict[str, dict]:
    # Round-trip through the record type so only catalog values reach storage.
    return dump_tooth_states(parse_tooth_states(tooth_states))


def create_patient(
    db: Session,
    *,
    name: str,
    ic_number: str,
    dentist: str,
    location: str | None = None,
    default_location: str = "Faculty",
) -> Patient:
    if get_patient_by_ic_number(db, ic_number) is not None:
        raise PatientConflictError("Patient with this IC number already exists")
    patient = Patient(
        name=name,
        ic_number=ic_number,
        dentist=dentist,
        location=location or default_location,
    )
    db.add(patient)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise PatientConflictError("Patient with this IC number already exists") from exc
    db.refresh(patient)
    logger.info("Patient %s created.", patient.id)
    return patient


def get_patient(db: Session, patient_id: str) -> Patient | None:
    return db.get(Patient, patient_id)


def get_patient_by_ic_number(db: Session, ic_number: str) -> Patient | None:
    return db.scalar(select(Patient).where(Patient.ic_number == ic_number))


def create_chart(
    db: Session,
    *,
    patient_id: str,
    tooth_states: Mapping[str, Any] | None = None,
    is_completed: bool = False,
) -> DentalChart:
    if get_patient(db, patient_id) is None:
        raise PatientNotFoundError("Patient not found")
    chart = DentalChart(
        patient_id=patient_id,
        tooth_states=_normalize_tooth_states(tooth_states),
        is_completed=is_completed,
    )
    db.add(chart)
    db.commit()
    db.refresh(chart)
    logger.info("Dental chart %s created for patient %s.", chart.id, patient_id)
    return chart


def get_chart(db: Session, chart_id: str) -> DentalChart | None:
    return db.get(DentalChart, chart_id)


def get_chart_by_patient(db: Session, patient_id: str) -> DentalChart | None:
    return db.scalar(
        select(DentalChart)
        .where(DentalChart.patient_id == patient_id)
        .order_by(DentalChart.created_at.asc())
        .limit(1)
    )


def update_chart(
    db: Session,
    chart_id: str,
    *,
    tooth_states: Mapping[str, Any] | None = None,
    is_completed: bool | None = None,
) -> DentalChart:
    chart = get_chart(db, chart_id)
    if chart is None:
        raise ChartNotFoundError("Dental chart not found")
    if tooth_states is not None:
        chart.tooth_states = _normalize_tooth_states(tooth_states)
    if is_completed is not None:
        chart.is_completed = is_completed
    chart.updated_at = utcnow()
    db.add(chart)
    db.commit()
    db.refresh(chart)
    return chart


def save_chart_for_patient(
    db: Session,
    patient_id: str,
    tooth_states: Mapping[str, Any],
    *,
    is_completed: bool,
) -> DentalChart:
    chart = get_chart_by_patient(db, patient_id)
    if chart is None:
        return create_chart(
            db, patient_id=patient_id, tooth_states=tooth_states, is_completed=is_completed
        )
    return update_chart(db, chart.id, tooth_states=tooth_states, is_completed=is_completed)
