from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pedident.services.dental_notation import (
    ToothState,
    ToothSurface,
    parse_surface,
    parse_tooth_state,
    require_tooth,
)


@dataclass(frozen=True)
class ToothRecord:
    """State recorded for one tooth.

    ``surfaces`` is only set when the tooth was charted surface by surface. The
    top-level state and the surface states are kept independently; a tooth may be
    ``sound`` overall with ``carious`` surfaces.
    """

    state: ToothState
    surfaces: Mapping[ToothSurface, ToothState] | None = None

    def as_json(self) -> dict[str, Any]:
        data: dict[str, Any] = {"state": self.state.value}
        if self.surfaces is not None:
            data["surfaces"] = {
                surface.value: state.value for surface, state in self.surfaces.items()
            }
        return data

    @classmethod
    def from_json(cls, value: ToothRecord | Mapping[str, Any] | str) -> ToothRecord:
        if isinstance(value, ToothRecord):
            return value
        if isinstance(value, str):
            return cls(state=parse_tooth_state(value))
        if not isinstance(value, Mapping) or "state" not in value:
            raise ValueError(f"Tooth record must carry a state: {value!r}")
        surfaces = value.get("surfaces")
        parsed_surfaces = None
        if surfaces is not None:
            parsed_surfaces = {
                parse_surface(surface): parse_tooth_state(state)
                for surface, state in surfaces.items()
            }
        return cls(state=parse_tooth_state(value["state"]), surfaces=parsed_surfaces)


def parse_tooth_states(raw: Mapping[str, Any] | None) -> dict[str, ToothRecord]:
    if not raw:
        return {}
    return {require_tooth(tooth): ToothRecord.from_json(record) for tooth, record in raw.items()}


def dump_tooth_states(records: Mapping[str, ToothRecord]) -> dict[str, dict[str, Any]]:
    return {tooth: record.as_json() for tooth, record in records.items()}
