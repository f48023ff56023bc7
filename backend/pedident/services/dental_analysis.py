from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from pedident.services.dental_notation import (
    PERMANENT_TOOTH_COUNT,
    SURFACES_PER_TOOTH,
    ToothState,
    is_anterior,
    is_upper,
)
from pedident.services.tooth_record import ToothRecord, parse_tooth_states

# Charting fewer teeth than this suggests an incomplete examination.
FULL_EXAM_TOOTH_COUNT = 28


@dataclass(frozen=True)
class IndexCounts:
    decayed: int = 0
    missing: int = 0
    filled: int = 0

    @property
    def total(self) -> int:
        return self.decayed + self.missing + self.filled

    def as_dict(self) -> dict[str, int]:
        return {
            "decayed": self.decayed,
            "missing": self.missing,
            "filled": self.filled,
            "total": self.total,
        }


@dataclass(frozen=True)
class ChartSummary:
    total_teeth_charted: int
    sound_teeth: int
    affected_teeth: int
    completion_percentage: float

    def as_dict(self) -> dict[str, Any]:
        return {
            "total_teeth_charted": self.total_teeth_charted,
            "sound_teeth": self.sound_teeth,
            "affected_teeth": self.affected_teeth,
            "completion_percentage": self.completion_percentage,
        }


@dataclass(frozen=True)
class RegionTally:
    anterior_decay: int = 0
    posterior_decay: int = 0
    anterior_missing: int = 0
    posterior_missing: int = 0
    upper_decay: int = 0
    lower_decay: int = 0


@dataclass(frozen=True)
class AnalysisResult:
    dmft: IndexCounts
    dmfs: IndexCounts
    summary: ChartSummary
    patterns: tuple[str, ...] = ()
    recommendations: tuple[str, ...] = ()
    state_counts: Mapping[str, int] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {
            "dmft": self.dmft.as_dict(),
            "dmfs": self.dmfs.as_dict(),
            "summary": self.summary.as_dict(),
            "patterns": list(self.patterns),
            "recommendations": list(self.recommendations),
        }


@dataclass(frozen=True)
class _Facts:
    dmft: IndexCounts
    regions: RegionTally
    total_charted: int


_Rule = tuple[Callable[[_Facts], bool], Callable[[_Facts], tuple[str, ...]]]


def _fixed(*messages: str) -> Callable[[_Facts], tuple[str, ...]]:
    return lambda _facts: messages


_PATTERN_RULES: tuple[_Rule, ...] = (
    (
        lambda f: f.regions.posterior_decay > f.regions.anterior_decay
        and f.regions.posterior_decay > 2,
        _fixed("High caries activity in posterior teeth (molars/premolars)"),
    ),
    (
        lambda f: f.regions.anterior_decay > 2,
        _fixed(
            "Concerning anterior tooth decay - may indicate poor oral hygiene or dietary habits"
        ),
    ),
    (
        lambda f: f.regions.anterior_missing > 0,
        _fixed("Early tooth loss in anterior region - aesthetic and functional concerns"),
    ),
    (
        lambda f: f.regions.upper_decay > f.regions.lower_decay and f.regions.upper_decay > 3,
        _fixed("Higher decay prevalence in upper arch"),
    ),
    (
        lambda f: f.regions.lower_decay > f.regions.upper_decay and f.regions.lower_decay > 3,
        _fixed("Higher decay prevalence in lower arch"),
    ),
    (
        lambda f: f.dmft.total / max(f.total_charted, 1) > 0.6,
        _fixed("High overall caries experience - comprehensive treatment needed"),
    ),
)

_RECOMMENDATION_RULES: tuple[_Rule, ...] = (
    (
        lambda f: f.dmft.decayed > 0,
        lambda f: (
            f"Immediate restorative treatment needed for {f.dmft.decayed} decayed teeth",
        ),
    ),
    (
        lambda f: f.dmft.missing > 2,
        _fixed("Consider prosthodontic consultation for missing teeth replacement"),
    ),
    (
        lambda f: f.regions.posterior_decay > 2,
        _fixed("Apply sealants to unaffected posterior teeth"),
    ),
    (
        lambda f: f.dmft.total > 4,
        _fixed(
            "Implement intensive fluoride therapy protocol",
            "Comprehensive oral hygiene education and dietary counseling",
        ),
    ),
    (
        lambda f: f.regions.anterior_decay > 0,
        _fixed("Aesthetic restorative options for anterior teeth"),
    ),
    (
        lambda _f: True,
        _fixed(
            "Regular recall appointments every 3-6 months",
            "Professional prophylaxis and periodontal assessment",
        ),
    ),
    (
        lambda f: f.total_charted < FULL_EXAM_TOOTH_COUNT,
        _fixed("Complete comprehensive oral examination for uncharted teeth"),
    ),
)


def _evaluate(rules: tuple[_Rule, ...], facts: _Facts) -> tuple[str, ...]:
    messages: list[str] = []
    for condition, produce in rules:
        if condition(facts):
            messages.extend(produce(facts))
    return tuple(messages)


def _surface_counts(record: ToothRecord) -> IndexCounts:
    if record.surfaces is not None:
        values = list(record.surfaces.values())
        return IndexCounts(
            decayed=values.count(ToothState.carious),
            filled=values.count(ToothState.prosthesis),
        )
    # Without surface detail every surface takes the tooth's state; sound adds nothing.
    if record.state == ToothState.missing:
        return IndexCounts(missing=SURFACES_PER_TOOTH)
    if record.state == ToothState.carious:
        return IndexCounts(decayed=SURFACES_PER_TOOTH)
    if record.state == ToothState.prosthesis:
        return IndexCounts(filled=SURFACES_PER_TOOTH)
    return IndexCounts()


def analyze_dental_chart(tooth_states: Mapping[str, Any]) -> AnalysisResult:
    """Derive DMFT/DMFS indices, patterns and recommendations from a chart.

    Accepts tooth records or their JSON form keyed by FDI position. The input is
    never modified.
    """
    state_counts = {state.value: 0 for state in ToothState}
    dmfs_decayed = dmfs_missing = dmfs_filled = 0
    anterior_decay = posterior_decay = anterior_missing = posterior_missing = 0
    upper_decay = lower_decay = 0

    records = parse_tooth_states(tooth_states)
    for tooth, record in records.items():
        state_counts[record.state.value] += 1
        anterior = is_anterior(tooth)
        if record.state == ToothState.carious:
            if anterior:
                anterior_decay += 1
            else:
                posterior_decay += 1
            if is_upper(tooth):
                upper_decay += 1
            else:
                lower_decay += 1
        elif record.state == ToothState.missing:
            if anterior:
                anterior_missing += 1
            else:
                posterior_missing += 1

        surfaces = _surface_counts(record)
        dmfs_decayed += surfaces.decayed
        dmfs_missing += surfaces.missing
        dmfs_filled += surfaces.filled

    total_charted = len(records)
    dmft = IndexCounts(
        decayed=state_counts[ToothState.carious.value],
        missing=state_counts[ToothState.missing.value],
        filled=state_counts[ToothState.prosthesis.value],
    )
    facts = _Facts(
        dmft=dmft,
        regions=RegionTally(
            anterior_decay=anterior_decay,
            posterior_decay=posterior_decay,
            anterior_missing=anterior_missing,
            posterior_missing=posterior_missing,
            upper_decay=upper_decay,
            lower_decay=lower_decay,
        ),
        total_charted=total_charted,
    )
    return AnalysisResult(
        dmft=dmft,
        dmfs=IndexCounts(decayed=dmfs_decayed, missing=dmfs_missing, filled=dmfs_filled),
        summary=ChartSummary(
            total_teeth_charted=total_charted,
            sound_teeth=state_counts[ToothState.sound.value],
            affected_teeth=dmft.total,
            completion_percentage=total_charted / PERMANENT_TOOTH_COUNT * 100,
        ),
        patterns=_evaluate(_PATTERN_RULES, facts),
        recommendations=_evaluate(_RECOMMENDATION_RULES, facts),
        state_counts=state_counts,
    )


def caries_risk_level(result: AnalysisResult) -> str:
    charted = result.summary.total_teeth_charted or 1
    carious_pct = result.dmft.decayed / charted * 100
    if carious_pct >= 20:
        return "High"
    if carious_pct >= 10:
        return "Medium"
    return "Low"
