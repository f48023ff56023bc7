from __future__ import annotations

import enum


class CatalogError(ValueError):
    """Raised when a tooth, surface, state or command is outside its closed catalog."""


class ToothState(str, enum.Enum):
    sound = "sound"
    missing = "missing"
    carious = "carious"
    prosthesis = "prosthesis"


class ToothSurface(str, enum.Enum):
    mesial = "mesial"
    distal = "distal"
    occlusal = "occlusal"
    lingual = "lingual"
    buccal = "buccal"


class Dentition(str, enum.Enum):
    deciduous = "deciduous"
    permanent = "permanent"


class ChartingMode(str, enum.Enum):
    whole_tooth = "whole-tooth"
    per_surface = "per-surface"


# FDI order, clockwise from the upper right.
DECIDUOUS_SEQUENCE: tuple[str, ...] = (
    "55", "54", "53", "52", "51",
    "61", "62", "63", "64", "65",
    "75", "74", "73", "72", "71",
    "81", "82", "83", "84", "85",
)

PERMANENT_SEQUENCE: tuple[str, ...] = (
    "18", "17", "16", "15", "14", "13", "12", "11",
    "21", "22", "23", "24", "25", "26", "27", "28",
    "38", "37", "36", "35", "34", "33", "32", "31",
    "41", "42", "43", "44", "45", "46", "47", "48",
)

# Rows as the teeth are drawn on a chart, patient's right on the left.
DISPLAY_ROWS: dict[Dentition, dict[str, tuple[str, ...]]] = {
    Dentition.deciduous: {
        "upper": ("55", "54", "53", "52", "51", "61", "62", "63", "64", "65"),
        "lower": ("85", "84", "83", "82", "81", "71", "72", "73", "74", "75"),
    },
    Dentition.permanent: {
        "upper": (
            "18", "17", "16", "15", "14", "13", "12", "11",
            "21", "22", "23", "24", "25", "26", "27", "28",
        ),
        "lower": (
            "48", "47", "46", "45", "44", "43", "42", "41",
            "31", "32", "33", "34", "35", "36", "37", "38",
        ),
    },
}

SEQUENCES: dict[Dentition, tuple[str, ...]] = {
    Dentition.deciduous: DECIDUOUS_SEQUENCE,
    Dentition.permanent: PERMANENT_SEQUENCE,
}

TOTAL_TEETH = len(DECIDUOUS_SEQUENCE) + len(PERMANENT_SEQUENCE)
PERMANENT_TOOTH_COUNT = len(PERMANENT_SEQUENCE)
SURFACES_PER_TOOTH = len(ToothSurface)

_UPPER_QUADRANTS = {1, 2, 5, 6}


def sequence_for(dentition: Dentition | str) -> tuple[str, ...]:
    try:
        return SEQUENCES[Dentition(dentition)]
    except ValueError as exc:
        raise CatalogError(f"Unknown dentition: {dentition!r}") from exc


def dentition_of(position: str) -> Dentition:
    if position in DECIDUOUS_SEQUENCE:
        return Dentition.deciduous
    if position in PERMANENT_SEQUENCE:
        return Dentition.permanent
    raise CatalogError(f"Unknown tooth position: {position!r}")


def require_tooth(position: object) -> str:
    """Return the position unchanged if it is an exact catalogue string."""
    if not isinstance(position, str):
        raise CatalogError(f"Unknown tooth position: {position!r}")
    dentition_of(position)
    return position


def index_in_sequence(position: str) -> int:
    return sequence_for(dentition_of(position)).index(position)


def parse_tooth_state(value: ToothState | str) -> ToothState:
    try:
        return ToothState(value)
    except ValueError as exc:
        raise CatalogError(f"Unknown tooth state: {value!r}") from exc


def parse_surface(value: ToothSurface | str) -> ToothSurface:
    try:
        return ToothSurface(value)
    except ValueError as exc:
        raise CatalogError(f"Unknown tooth surface: {value!r}") from exc


def is_anterior(position: str) -> bool:
    """Incisors and canines: positions 1-3 of every quadrant."""
    value = int(require_tooth(position))
    return value % 10 in (1, 2, 3)


def is_upper(position: str) -> bool:
    value = int(require_tooth(position))
    return value // 10 in _UPPER_QUADRANTS
