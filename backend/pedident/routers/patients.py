from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from pedident.core.settings import settings
from pedident.db.session import get_db
from pedident.models.patient import Patient
from pedident.schemas.patient import PatientCreate, PatientOut
from pedident.services import chart_store

router = APIRouter(prefix="/patients", tags=["patients"])


def get_patient_or_404(db: Session, patient_id: str) -> Patient:
    patient = chart_store.get_patient(db, patient_id)
    if not patient:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Patient not found")
    return patient


@router.post("", response_model=PatientOut, status_code=status.HTTP_201_CREATED)
def create_patient(payload: PatientCreate, db: Session = Depends(get_db)):
    try:
        return chart_store.create_patient(
            db,
            name=payload.name,
            ic_number=payload.ic_number,
            dentist=payload.dentist,
            location=payload.location,
            default_location=settings.default_location,
        )
    except chart_store.PatientConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc


@router.get("/ic/{ic_number}", response_model=PatientOut)
def get_patient_by_ic_number(ic_number: str, db: Session = Depends(get_db)):
    patient = chart_store.get_patient_by_ic_number(db, ic_number)
    if not patient:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Patient not found")
    return patient


@router.get("/{patient_id}", response_model=PatientOut)
def get_patient(patient_id: str, db: Session = Depends(get_db)):
    return get_patient_or_404(db, patient_id)

