from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Mapping
from typing import Any

from pedident.services.dental_notation import (
    DECIDUOUS_SEQUENCE,
    PERMANENT_SEQUENCE,
    TOTAL_TEETH,
    ChartingMode,
    Dentition,
    ToothState,
    ToothSurface,
    dentition_of,
    parse_surface,
    parse_tooth_state,
    require_tooth,
    sequence_for,
)
from pedident.services.tooth_record import ToothRecord, dump_tooth_states, parse_tooth_states

logger = logging.getLogger("pedident.charting")


class Transition(str, enum.Enum):
    advanced = "advanced"
    switched_to_permanent = "switched_to_permanent"
    completed = "completed"


class ChartSession:
    """Walks the FDI sequences for one patient and accumulates tooth records.

    One session has exactly one writer; commands are applied one at a time in the
    order the operator issues them.
    """

    def __init__(
        self,
        tooth_states: Mapping[str, Any] | None = None,
        *,
        on_finish: Callable[[ChartSession], None] | None = None,
    ) -> None:
        self.current_tooth: str = DECIDUOUS_SEQUENCE[0]
        self.dentition: Dentition = Dentition.deciduous
        self.mode: ChartingMode = ChartingMode.whole_tooth
        self.selected_surfaces: list[ToothSurface] = []
        self.tooth_states: dict[str, ToothRecord] = parse_tooth_states(tooth_states)
        self.completed = False
        self._on_finish = on_finish

    @property
    def progress(self) -> int:
        index = sequence_for(self.dentition).index(self.current_tooth) + 1
        if self.dentition == Dentition.permanent:
            return index + len(DECIDUOUS_SEQUENCE)
        return index

    @property
    def total_teeth(self) -> int:
        return TOTAL_TEETH

    def set_tooth_state(
        self,
        tooth: str,
        state: ToothState | str,
        surfaces: Mapping[ToothSurface | str, ToothState | str] | None = None,
    ) -> ToothRecord:
        tooth = require_tooth(tooth)
        parsed_surfaces = None
        if surfaces is not None:
            parsed_surfaces = {
                parse_surface(surface): parse_tooth_state(value)
                for surface, value in surfaces.items()
            }
        record = ToothRecord(state=parse_tooth_state(state), surfaces=parsed_surfaces)
        self.tooth_states[tooth] = record
        return record

    def record_whole_tooth(self, state: ToothState | str) -> Transition:
        self.set_tooth_state(self.current_tooth, state)
        return self.advance()

    def record_surface_selection(self, surface: ToothSurface | str, tooth: str | None = None) -> bool:
        surface = parse_surface(surface)
        if self.mode != ChartingMode.per_surface:
            return False
        if tooth is not None and require_tooth(tooth) != self.current_tooth:
            return False
        if surface in self.selected_surfaces:
            self.selected_surfaces.remove(surface)
        else:
            self.selected_surfaces.append(surface)
        return True

    def confirm_surfaces(self) -> Transition | None:
        if self.mode != ChartingMode.per_surface or not self.selected_surfaces:
            return None
        # Selected surfaces are recorded as carious on an otherwise sound tooth.
        surfaces = {surface: ToothState.carious for surface in self.selected_surfaces}
        self.set_tooth_state(self.current_tooth, ToothState.sound, surfaces)
        self.selected_surfaces = []
        return self.advance()

    def advance(self) -> Transition:
        sequence = sequence_for(self.dentition)
        index = sequence.index(self.current_tooth)
        if index < len(sequence) - 1:
            self.current_tooth = sequence[index + 1]
            return Transition.advanced
        if self.dentition == Dentition.deciduous:
            self.skip_to_permanent()
            return Transition.switched_to_permanent
        self.finish()
        return Transition.completed

    def retreat(self) -> bool:
        sequence = sequence_for(self.dentition)
        index = sequence.index(self.current_tooth)
        if index == 0:
            return False
        self.current_tooth = sequence[index - 1]
        return True

    def jump_to(self, tooth: str) -> bool:
        tooth = require_tooth(tooth)
        changed = tooth != self.current_tooth
        self.current_tooth = tooth
        self.dentition = dentition_of(tooth)
        return changed

    def skip_to_permanent(self) -> None:
        self.current_tooth = PERMANENT_SEQUENCE[0]
        self.dentition = Dentition.permanent

    def toggle_granularity(self) -> ChartingMode:
        if self.mode == ChartingMode.whole_tooth:
            self.mode = ChartingMode.per_surface
        else:
            self.mode = ChartingMode.whole_tooth
        self.selected_surfaces = []
        return self.mode

    def finish(self) -> dict[str, dict[str, Any]]:
        self.completed = True
        logger.info(
            "Charting completed (%s teeth recorded, progress %s/%s).",
            len(self.tooth_states),
            self.progress,
            TOTAL_TEETH,
        )
        if self._on_finish is not None:
            self._on_finish(self)
        return self.snapshot()

    def snapshot(self) -> dict[str, dict[str, Any]]:
        return dump_tooth_states(self.tooth_states)

    def state(self) -> dict[str, Any]:
        return {
            "current_tooth": self.current_tooth,
            "dentition": self.dentition.value,
            "mode": self.mode.value,
            "progress": self.progress,
            "total_teeth": TOTAL_TEETH,
            "selected_surfaces": [surface.value for surface in self.selected_surfaces],
            "completed": self.completed,
            "tooth_states": self.snapshot(),
        }
