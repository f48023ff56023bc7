import pytest

from pedident.services.charting_session import ChartSession, Transition
from pedident.services.dental_notation import (
    DECIDUOUS_SEQUENCE,
    PERMANENT_SEQUENCE,
    CatalogError,
    ChartingMode,
    Dentition,
    ToothState,
    ToothSurface,
)
from pedident.services.tooth_record import ToothRecord


def test_new_session_starts_at_first_deciduous_tooth():
    session = ChartSession()
    assert session.current_tooth == "55"
    assert session.dentition == Dentition.deciduous
    assert session.mode == ChartingMode.whole_tooth
    assert session.progress == 1
    assert session.total_teeth == 52
    assert session.tooth_states == {}
    assert session.completed is False


@pytest.mark.parametrize("start", DECIDUOUS_SEQUENCE)
def test_advance_from_any_deciduous_tooth_reaches_first_permanent(start):
    session = ChartSession()
    session.jump_to(start)
    transitions = []
    while session.dentition == Dentition.deciduous:
        transitions.append(session.advance())
    assert session.current_tooth == PERMANENT_SEQUENCE[0]
    assert transitions[-1] == Transition.switched_to_permanent
    assert all(step == Transition.advanced for step in transitions[:-1])


def test_advance_at_last_permanent_signals_completion_without_moving():
    finished = []
    session = ChartSession(on_finish=finished.append)
    session.jump_to("48")
    assert session.advance() == Transition.completed
    assert session.current_tooth == "48"
    assert session.dentition == Dentition.permanent
    assert session.completed is True
    assert finished == [session]


def test_progress_runs_one_to_fifty_two_strictly_increasing():
    session = ChartSession()
    seen = [session.progress]
    while True:
        if session.advance() == Transition.completed:
            break
        seen.append(session.progress)
    assert seen == list(range(1, 53))


@pytest.mark.parametrize("first", [DECIDUOUS_SEQUENCE[0], PERMANENT_SEQUENCE[0]])
def test_retreat_at_first_position_is_noop(first):
    session = ChartSession()
    session.jump_to(first)
    dentition = session.dentition
    assert session.retreat() is False
    assert session.current_tooth == first
    assert session.dentition == dentition


def test_retreat_moves_back_within_sequence():
    session = ChartSession()
    session.jump_to("11")
    assert session.retreat() is True
    assert session.current_tooth == "12"


def test_jump_to_switches_sequence_and_rejects_unknown_positions():
    session = ChartSession()
    session.jump_to("36")
    assert session.dentition == Dentition.permanent
    assert session.progress == 20 + PERMANENT_SEQUENCE.index("36") + 1
    session.jump_to("71")
    assert session.dentition == Dentition.deciduous
    with pytest.raises(CatalogError):
        session.jump_to("99")
    assert session.current_tooth == "71"


def test_skip_to_permanent_from_anywhere():
    session = ChartSession()
    session.jump_to("27")
    session.skip_to_permanent()
    assert session.current_tooth == "18"
    assert session.dentition == Dentition.permanent
    assert session.progress == 21


def test_record_whole_tooth_writes_and_advances():
    session = ChartSession()
    assert session.record_whole_tooth("carious") == Transition.advanced
    assert session.tooth_states == {"55": ToothRecord(state=ToothState.carious)}
    assert session.current_tooth == "54"


def test_record_whole_tooth_clears_previous_surface_detail():
    session = ChartSession({"55": {"state": "sound", "surfaces": {"mesial": "carious"}}})
    session.record_whole_tooth(ToothState.missing)
    assert session.tooth_states["55"].surfaces is None
    assert session.snapshot() == {"55": {"state": "missing"}}


def test_record_whole_tooth_rejects_unknown_state():
    session = ChartSession()
    with pytest.raises(CatalogError):
        session.record_whole_tooth("chipped")
    assert session.tooth_states == {}
    assert session.current_tooth == "55"


def test_surface_selection_requires_per_surface_mode():
    session = ChartSession()
    assert session.record_surface_selection("mesial") is False
    assert session.selected_surfaces == []


def test_surface_selection_toggles_and_is_scoped_to_current_tooth():
    session = ChartSession()
    session.toggle_granularity()
    assert session.record_surface_selection("mesial") is True
    assert session.record_surface_selection(ToothSurface.occlusal) is True
    assert session.record_surface_selection("mesial") is True
    assert session.selected_surfaces == [ToothSurface.occlusal]
    assert session.record_surface_selection("distal", tooth="54") is False
    assert session.selected_surfaces == [ToothSurface.occlusal]


@pytest.mark.parametrize("pending", [[], ["mesial"], ["mesial", "distal", "buccal"]])
def test_toggle_granularity_always_clears_pending_surfaces(pending):
    session = ChartSession()
    session.toggle_granularity()
    for surface in pending:
        session.record_surface_selection(surface)
    assert session.toggle_granularity() == ChartingMode.whole_tooth
    assert session.selected_surfaces == []
    assert session.toggle_granularity() == ChartingMode.per_surface
    assert session.selected_surfaces == []


def test_confirm_surfaces_records_carious_surfaces_on_sound_tooth():
    session = ChartSession()
    session.toggle_granularity()
    session.record_surface_selection("occlusal")
    session.record_surface_selection("buccal")
    assert session.confirm_surfaces() == Transition.advanced
    assert session.snapshot() == {
        "55": {"state": "sound", "surfaces": {"occlusal": "carious", "buccal": "carious"}}
    }
    assert session.selected_surfaces == []
    assert session.current_tooth == "54"
    assert session.mode == ChartingMode.per_surface


def test_confirm_surfaces_with_nothing_pending_changes_nothing():
    session = ChartSession({"55": {"state": "carious"}})
    session.toggle_granularity()
    assert session.confirm_surfaces() is None
    assert session.snapshot() == {"55": {"state": "carious"}}
    assert session.current_tooth == "55"


def test_confirm_surfaces_outside_per_surface_mode_is_noop():
    session = ChartSession()
    session.toggle_granularity()
    session.record_surface_selection("lingual")
    session.mode = ChartingMode.whole_tooth
    assert session.confirm_surfaces() is None
    assert session.tooth_states == {}


def test_finish_returns_snapshot_without_mutating_records():
    session = ChartSession()
    session.record_whole_tooth("sound")
    snapshot = session.finish()
    assert snapshot == {"55": {"state": "sound"}}
    assert session.current_tooth == "54"
    assert session.completed is True


def test_set_tooth_state_does_not_move_focus():
    session = ChartSession()
    record = session.set_tooth_state("16", "prosthesis", {"occlusal": "prosthesis"})
    assert record.surfaces == {ToothSurface.occlusal: ToothState.prosthesis}
    assert session.current_tooth == "55"


def test_state_view_is_json_friendly():
    session = ChartSession()
    session.toggle_granularity()
    session.record_surface_selection("distal")
    assert session.state() == {
        "current_tooth": "55",
        "dentition": "deciduous",
        "mode": "per-surface",
        "progress": 1,
        "total_teeth": 52,
        "selected_surfaces": ["distal"],
        "completed": False,
        "tooth_states": {},
    }


def test_set_tooth_state_keeps_an_empty_surface_map():
    session = ChartSession()
    record = session.set_tooth_state("11", "carious", {})
    assert record.surfaces == {}
    assert session.snapshot() == {"11": {"state": "carious", "surfaces": {}}}
