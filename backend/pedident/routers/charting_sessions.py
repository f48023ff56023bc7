import enum
import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from pedident.db.session import get_db
from pedident.deps import get_charting_registry
from pedident.schemas.charting_session import (
    ChartingCommandIn,
    ChartingKeyIn,
    ChartingSessionCreate,
    ChartingSessionOut,
)
from pedident.services import chart_store
from pedident.services.charting_keymap import apply_command, dispatch_key
from pedident.services.charting_registry import (
    ChartingSessionEntry,
    ChartingSessionNotFoundError,
    ChartingSessionRegistry,
)
from pedident.services.tooth_record import ToothRecord

router = APIRouter(prefix="/charting-sessions", tags=["charting"])
logger = logging.getLogger("pedident.charting")


def _result_value(result: Any) -> Any:
    if isinstance(result, enum.Enum):
        return result.value
    if isinstance(result, ToothRecord):
        return result.as_json()
    return result


def _session_out(entry: ChartingSessionEntry, result: Any = None) -> ChartingSessionOut:
    return ChartingSessionOut(
        id=entry.id,
        patient_id=entry.patient_id,
        chart_id=entry.chart_id,
        result=_result_value(result),
        **entry.session.state(),
    )


def _get_entry_or_404(registry: ChartingSessionRegistry, session_id: str) -> ChartingSessionEntry:
    try:
        return registry.get(session_id)
    except ChartingSessionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


def _save_if_finished(db: Session, entry: ChartingSessionEntry) -> None:
    if not entry.has_unsaved_finish:
        return
    if entry.patient_id is not None:
        chart = chart_store.save_chart_for_patient(
            db, entry.patient_id, entry.session.snapshot(), is_completed=True
        )
        entry.chart_id = chart.id
        logger.info("Charting session %s saved to chart %s.", entry.id, chart.id)
    entry.mark_saved()


@router.post("", response_model=ChartingSessionOut, status_code=status.HTTP_201_CREATED)
def open_session(
    payload: ChartingSessionCreate,
    db: Session = Depends(get_db),
    registry: ChartingSessionRegistry = Depends(get_charting_registry),
):
    tooth_states = None
    chart_id = None
    if payload.patient_id is not None:
        if chart_store.get_patient(db, payload.patient_id) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Patient not found")
        chart = chart_store.get_chart_by_patient(db, payload.patient_id)
        if chart is not None:
            tooth_states = chart.tooth_states
            chart_id = chart.id
    entry = registry.open(patient_id=payload.patient_id, chart_id=chart_id, tooth_states=tooth_states)
    return _session_out(entry)


@router.get("/{session_id}", response_model=ChartingSessionOut)
def get_session(
    session_id: str, registry: ChartingSessionRegistry = Depends(get_charting_registry)
):
    return _session_out(_get_entry_or_404(registry, session_id))


@router.post("/{session_id}/commands", response_model=ChartingSessionOut)
def run_command(
    session_id: str,
    payload: ChartingCommandIn,
    db: Session = Depends(get_db),
    registry: ChartingSessionRegistry = Depends(get_charting_registry),
):
    entry = _get_entry_or_404(registry, session_id)
    args = payload.model_dump(exclude={"command"}, exclude_none=True)
    try:
        result = apply_command(entry.session, payload.command, **args)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    _save_if_finished(db, entry)
    return _session_out(entry, result)


@router.post("/{session_id}/keys", response_model=ChartingSessionOut)
def press_key(
    session_id: str,
    payload: ChartingKeyIn,
    db: Session = Depends(get_db),
    registry: ChartingSessionRegistry = Depends(get_charting_registry),
):
    entry = _get_entry_or_404(registry, session_id)
    binding = dispatch_key(entry.session, payload.key, registry.key_bindings)
    _save_if_finished(db, entry)
    return _session_out(entry, binding.command if binding else None)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def close_session(
    session_id: str, registry: ChartingSessionRegistry = Depends(get_charting_registry)
):
    try:
        registry.close(session_id)
    except ChartingSessionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
