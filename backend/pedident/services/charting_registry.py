from __future__ import annotations

import logging
import uuid
from collections import OrderedDict
from collections.abc import Mapping
from dataclasses import InitVar, dataclass, field
from typing import Any

from pedident.services.charting_keymap import DEFAULT_KEY_BINDINGS, KeyBinding
from pedident.services.charting_session import ChartSession

logger = logging.getLogger("pedident.charting")


class ChartingSessionNotFoundError(LookupError):
    pass


@dataclass
class ChartingSessionEntry:
    id: str
    patient_id: str | None = None
    chart_id: str | None = None
    tooth_states: InitVar[Mapping[str, Any] | None] = None
    session: ChartSession = field(init=False)
    unsaved_finishes: int = field(default=0, init=False)

    def __post_init__(self, tooth_states: Mapping[str, Any] | None) -> None:
        self.session = ChartSession(tooth_states, on_finish=self._on_finish)

    def _on_finish(self, _session: ChartSession) -> None:
        self.unsaved_finishes += 1

    @property
    def has_unsaved_finish(self) -> bool:
        return self.unsaved_finishes > 0

    def mark_saved(self) -> None:
        self.unsaved_finishes = 0


@dataclass
class ChartingSessionRegistry:
    """Live charting sessions owned by one application instance.

    Oldest sessions are evicted once ``limit`` is reached.
    """

    limit: int = 100
    key_bindings: Mapping[str, KeyBinding] = field(default_factory=lambda: dict(DEFAULT_KEY_BINDINGS))
    _entries: OrderedDict[str, ChartingSessionEntry] = field(default_factory=OrderedDict)

    def open(
        self,
        *,
        patient_id: str | None = None,
        chart_id: str | None = None,
        tooth_states: Mapping[str, Any] | None = None,
    ) -> ChartingSessionEntry:
        entry_id = uuid.uuid4().hex
        entry = ChartingSessionEntry(
            id=entry_id,
            patient_id=patient_id,
            chart_id=chart_id,
            tooth_states=tooth_states,
        )
        while len(self._entries) >= self.limit:
            evicted_id, _evicted = self._entries.popitem(last=False)
            logger.warning("Charting session %s evicted (limit %s).", evicted_id, self.limit)
        self._entries[entry_id] = entry
        logger.info("Charting session %s opened (patient %s).", entry_id, patient_id)
        return entry

    def get(self, entry_id: str) -> ChartingSessionEntry:
        entry = self._entries.get(entry_id)
        if entry is None:
            raise ChartingSessionNotFoundError("Charting session not found")
        return entry

    def close(self, entry_id: str) -> ChartingSessionEntry:
        entry = self._entries.pop(entry_id, None)
        if entry is None:
            raise ChartingSessionNotFoundError("Charting session not found")
        logger.info("Charting session %s closed.", entry_id)
        return entry

    def __len__(self) -> int:
        return len(self._entries)

