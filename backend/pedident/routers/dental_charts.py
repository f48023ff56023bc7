from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from pedident.core.settings import settings
from pedident.db.session import get_db
from pedident.models.dental_chart import DentalChart
from pedident.schemas.dental_chart import (
    DentalAnalysisOut,
    DentalChartCreate,
    DentalChartOut,
    DentalChartUpdate,
)
from pedident.services import chart_store
from pedident.services.chart_report_pdf import ReportPatient, build_chart_report_pdf, report_filename
from pedident.services.dental_analysis import analyze_dental_chart

router = APIRouter(prefix="/dental-charts", tags=["dental-charts"])


def get_chart_or_404(db: Session, chart_id: str) -> DentalChart:
    chart = chart_store.get_chart(db, chart_id)
    if not chart:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Dental chart not found")
    return chart


@router.post("", response_model=DentalChartOut, status_code=status.HTTP_201_CREATED)
def create_chart(payload: DentalChartCreate, db: Session = Depends(get_db)):
    try:
        return chart_store.create_chart(
            db,
            patient_id=payload.patient_id,
            tooth_states=payload.tooth_states_json(),
            is_completed=payload.is_completed,
        )
    except chart_store.PatientNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.get("/patient/{patient_id}", response_model=DentalChartOut)
def get_chart_by_patient(patient_id: str, db: Session = Depends(get_db)):
    chart = chart_store.get_chart_by_patient(db, patient_id)
    if not chart:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Dental chart not found")
    return chart


@router.get("/{chart_id}", response_model=DentalChartOut)
def get_chart(chart_id: str, db: Session = Depends(get_db)):
    return get_chart_or_404(db, chart_id)


@router.put("/{chart_id}", response_model=DentalChartOut)
def update_chart(chart_id: str, payload: DentalChartUpdate, db: Session = Depends(get_db)):
    try:
        return chart_store.update_chart(
            db,
            chart_id,
            tooth_states=payload.tooth_states_json(),
            is_completed=payload.is_completed,
        )
    except chart_store.ChartNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.get("/{chart_id}/analysis", response_model=DentalAnalysisOut)
def get_chart_analysis(chart_id: str, db: Session = Depends(get_db)):
    chart = get_chart_or_404(db, chart_id)
    return analyze_dental_chart(chart.tooth_states).as_dict()


@router.get("/{chart_id}/report.pdf")
def get_chart_report_pdf(chart_id: str, db: Session = Depends(get_db)):
    chart = get_chart_or_404(db, chart_id)
    patient = chart.patient
    report_patient = ReportPatient(
        name=patient.name,
        ic_number=patient.ic_number,
        location=patient.location,
        dentist=patient.dentist,
    )
    pdf_bytes = build_chart_report_pdf(
        report_patient, chart.tooth_states, title=settings.report_title
    )
    headers = {"Content-Disposition": f'attachment; filename="{report_filename(report_patient)}"'}
    return Response(content=pdf_bytes, media_type="application/pdf", headers=headers)
