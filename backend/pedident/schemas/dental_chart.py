from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from pedident.services.dental_notation import ToothState, ToothSurface, require_tooth


class ToothRecordIn(BaseModel):
    state: ToothState
    surfaces: Optional[dict[ToothSurface, ToothState]] = None


def _validate_tooth_keys(value: dict[str, ToothRecordIn] | None) -> dict[str, ToothRecordIn] | None:
    if value is None:
        return None
    return {require_tooth(tooth): record for tooth, record in value.items()}


def _dump_records(records: dict[str, ToothRecordIn]) -> dict[str, dict]:
    return {
        tooth: record.model_dump(mode="json", exclude_none=True) for tooth, record in records.items()
    }


class DentalChartCreate(BaseModel):
    patient_id: str
    tooth_states: dict[str, ToothRecordIn] = {}
    is_completed: bool = False

    @field_validator("tooth_states")
    @classmethod
    def _check_teeth(cls, value):
        return _validate_tooth_keys(value)

    def tooth_states_json(self) -> dict[str, dict]:
        return _dump_records(self.tooth_states)


class DentalChartUpdate(BaseModel):
    tooth_states: Optional[dict[str, ToothRecordIn]] = None
    is_completed: Optional[bool] = None

    @field_validator("tooth_states")
    @classmethod
    def _check_teeth(cls, value):
        return _validate_tooth_keys(value)

    def tooth_states_json(self) -> dict[str, dict] | None:
        if self.tooth_states is None:
            return None
        return _dump_records(self.tooth_states)


class DentalChartOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    patient_id: str
    tooth_states: dict[str, dict]
    is_completed: bool
    created_at: datetime
    updated_at: datetime


class IndexCountsOut(BaseModel):
    decayed: int
    missing: int
    filled: int
    total: int


class ChartSummaryOut(BaseModel):
    total_teeth_charted: int
    sound_teeth: int
    affected_teeth: int
    completion_percentage: float


class DentalAnalysisOut(BaseModel):
    dmft: IndexCountsOut
    dmfs: IndexCountsOut
    summary: ChartSummaryOut
    patterns: list[str]
    recommendations: list[str]
