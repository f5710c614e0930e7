import pytest

from dinecheck.models import RescheduleParams
from dinecheck.scoring import DEFAULT_SCORES, ResolutionScore, ScoringTable, rank_resolutions


def test_defaults_cover_every_resolution_kind():
    assert set(DEFAULT_SCORES) == {"reassign_table", "split_party", "reschedule", "distribute_bookings"}
    assert DEFAULT_SCORES["reassign_table"] == ResolutionScore(90, 95, "low", True)
    assert DEFAULT_SCORES["distribute_bookings"].auto_resolvable is False


def test_overrides_leave_defaults_untouched():
    table = ScoringTable().with_overrides({"reschedule": {"confidence": 40, "impact": "high"}})

    assert table["reschedule"] == ResolutionScore(40, 70, "high", True)
    assert ScoringTable()["reschedule"].confidence == 80
    assert DEFAULT_SCORES["reschedule"].confidence == 80


@pytest.mark.parametrize(
    "overrides",
    [
        {"teleport": {"confidence": 10}},
        {"reschedule": {"confidence": 101}},
        {"reschedule": {"satisfaction": -1}},
        {"reschedule": {"impact": "huge"}},
        {"reschedule": {"colour": "red"}},
    ],
)
def test_invalid_overrides_are_rejected(overrides):
    with pytest.raises(ValueError):
        ScoringTable().with_overrides(overrides)


def test_build_applies_scores():
    resolution = ScoringTable().build(
        id="reschedule-2",
        kind="reschedule",
        description="Reschedule",
        params=RescheduleParams(booking_id=2),
    )
    assert resolution.confidence == 80
    assert resolution.estimated_satisfaction == 70
    assert resolution.impact == "moderate"


def test_rank_resolutions_best_first():
    table = ScoringTable()
    params = RescheduleParams(booking_id=1)
    resolutions = [
        table.build("c", "distribute_bookings", "", params),
        table.build("a", "reassign_table", "", params),
        table.build("b", "reschedule", "", params),
        table.build("d", "split_party", "", params),
    ]
    assert [r.id for r in rank_resolutions(resolutions)] == ["a", "b", "d", "c"]
