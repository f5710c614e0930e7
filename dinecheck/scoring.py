"""Resolution scoring table for dinecheck."""

from dataclasses import dataclass, field, replace
from typing import get_args

from dinecheck.models import Impact, Resolution, ResolutionKind

RESOLUTION_KINDS: tuple[str, ...] = get_args(ResolutionKind)
IMPACT_LEVELS: tuple[str, ...] = get_args(Impact)


@dataclass(frozen=True)
class ResolutionScore:
    """How much a resolution kind is trusted and how it lands with guests."""

    confidence: int
    satisfaction: int
    impact: Impact
    auto_resolvable: bool

    def __post_init__(self):
        for name in ("confidence", "satisfaction"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 100:
                raise ValueError(f"{name} must be an integer between 0 and 100, got {value!r}")
        if self.impact not in IMPACT_LEVELS:
            raise ValueError(f"impact must be one of {', '.join(IMPACT_LEVELS)}, got {self.impact!r}")


DEFAULT_SCORES: dict[str, ResolutionScore] = {
    "reassign_table": ResolutionScore(confidence=90, satisfaction=95, impact="low", auto_resolvable=True),
    "split_party": ResolutionScore(confidence=70, satisfaction=75, impact="moderate", auto_resolvable=False),
    "reschedule": ResolutionScore(confidence=80, satisfaction=70, impact="moderate", auto_resolvable=True),
    "distribute_bookings": ResolutionScore(
        confidence=60, satisfaction=80, impact="low", auto_resolvable=False
    ),
}


@dataclass(frozen=True)
class ScoringTable:
    """Resolution kind -> score, starting from the defaults."""

    scores: dict[str, ResolutionScore] = field(default_factory=lambda: dict(DEFAULT_SCORES))

    def __getitem__(self, kind: str) -> ResolutionScore:
        return self.scores[kind]

    def with_overrides(self, overrides: dict[str, dict]) -> "ScoringTable":
        """
        Return a new table with some fields of some kinds replaced.

        `overrides` maps a resolution kind to any subset of confidence,
        satisfaction, impact and auto_resolvable.
        """
        scores = dict(self.scores)
        for kind, fields in overrides.items():
            if kind not in RESOLUTION_KINDS:
                raise ValueError(f"Unknown resolution kind: {kind!r}")
            unknown = set(fields) - {"confidence", "satisfaction", "impact", "auto_resolvable"}
            if unknown:
                raise ValueError(f"Unknown score fields for {kind}: {', '.join(sorted(unknown))}")
            scores[kind] = replace(scores[kind], **fields)
        return ScoringTable(scores=scores)

    def build(self, id: str, kind: ResolutionKind, description: str, params) -> Resolution:
        """Create a Resolution scored from this table."""
        score = self.scores[kind]
        return Resolution(
            id=id,
            kind=kind,
            description=description,
            impact=score.impact,
            confidence=score.confidence,
            estimated_satisfaction=score.satisfaction,
            params=params,
        )

    def is_auto_resolvable(self, resolutions: list[Resolution]) -> bool:
        return any(self.scores[r.kind].auto_resolvable for r in resolutions)


def rank_resolutions(resolutions: list[Resolution]) -> list[Resolution]:
    """Order resolutions best first: confidence, then satisfaction, then id."""
    return sorted(resolutions, key=lambda r: (-r.confidence, -r.estimated_satisfaction, r.id))
