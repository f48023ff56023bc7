from typing import Any, Optional

from pydantic import BaseModel, Field

from pedident.services.charting_keymap import ChartingCommand
from pedident.services.dental_notation import ToothState, ToothSurface


class ChartingSessionCreate(BaseModel):
    patient_id: Optional[str] = None


class ChartingCommandIn(BaseModel):
    command: ChartingCommand
    state: Optional[ToothState] = None
    surface: Optional[ToothSurface] = None
    tooth: Optional[str] = None
    surfaces: Optional[dict[ToothSurface, ToothState]] = None


class ChartingKeyIn(BaseModel):
    key: str = Field(min_length=1, max_length=1)


class ChartingSessionOut(BaseModel):
    id: str
    patient_id: Optional[str] = None
    chart_id: Optional[str] = None
    current_tooth: str
    dentition: str
    mode: str
    progress: int
    total_teeth: int
    selected_surfaces: list[str]
    completed: bool
    tooth_states: dict[str, dict[str, Any]]
    result: Optional[Any] = None
