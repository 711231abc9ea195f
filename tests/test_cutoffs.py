import pytest

from cet_predictor.cutoffs import (
    DeclaredCategoryPolicy,
    OpenCategoryPolicy,
    best_matching_round,
    effective_rounds,
    eligible_rounds,
    get_policy,
    is_eligible,
    select_cutoffs,
    select_round_cutoff,
)
from cet_predictor.models import CourseOffering, Institution, PredictionInput, Round, RoundCutoff


def full_round(number: int = 1) -> Round:
    return Round(number=number, cutoff={
        "general": 97.0,
        "obc": 95.0,
        "tfws": 98.5,
        "ladies": {"general": 96.0, "obc": 94.0},
    })


def institution(**overrides) -> Institution:
    data = {"name": "Test Institute", "type": "Government", "courses": []}
    data.update(overrides)
    return Institution(**data)


def query(category: str = "OPEN") -> PredictionInput:
    return PredictionInput(percentile=95.0, category=category, courses=["Computer Engineering"])


def test_tfws_wins_over_ladies_and_general() -> None:
    choice = select_round_cutoff(full_round(), include_ladies=True, include_tfws=True)
    assert choice.seat_type == "TFWS"
    assert choice.cutoff == 98.5


def test_ladies_selected_when_tfws_not_requested() -> None:
    choice = select_round_cutoff(full_round(), include_ladies=True, include_tfws=False)
    assert choice.seat_type == "Ladies"
    assert choice.cutoff == 96.0


def test_tfws_flag_falls_through_when_round_has_no_tfws() -> None:
    rnd = Round(number=2, cutoff={"general": 97.0, "ladies": {"general": 96.0}})
    choice = select_round_cutoff(rnd, include_ladies=True, include_tfws=True)
    assert choice.seat_type == "Ladies"
    assert choice.round == 2


def test_general_is_default_home_university_seat() -> None:
    choice = select_round_cutoff(full_round())
    assert choice.seat_type == "HU"
    assert choice.cutoff == 97.0


def test_ladies_flag_without_ladies_general_uses_general() -> None:
    rnd = Round(number=1, cutoff={"general": 97.0, "ladies": {"obc": 94.0}})
    choice = select_round_cutoff(rnd, include_ladies=True)
    assert choice.seat_type == "HU"


def test_round_without_selected_value_contributes_nothing() -> None:
    assert select_round_cutoff(Round(number=1, cutoff={"obc": 90.0})) is None
    assert select_round_cutoff(Round(number=1)) is None


def test_open_policy_ignores_declared_category() -> None:
    assert OpenCategoryPolicy().category_key(query("SC")) == "general"


def test_declared_policy_uses_candidate_column() -> None:
    policy = DeclaredCategoryPolicy()
    assert policy.category_key(query("OBC")) == "obc"
    assert policy.category_key(query("Ladies_OBC")) == "obc"
    assert policy.category_key(query("TFWS")) == "general"

    choice = select_round_cutoff(full_round(), category_key="obc")
    assert choice.seat_type == "OBC"
    assert choice.cutoff == 95.0


def test_declared_policy_falls_back_to_general_column() -> None:
    rnd = Round(number=1, cutoff={"general": 97.0})
    choice = select_round_cutoff(rnd, category_key="sc")
    assert choice.seat_type == "HU"
    assert choice.cutoff == 97.0


def test_get_policy_rejects_unknown_name() -> None:
    assert isinstance(get_policy("open"), OpenCategoryPolicy)
    with pytest.raises(ValueError):
        get_policy("strict")


def test_rounds_are_ordered_and_deduplicated() -> None:
    offering = CourseOffering(name="Computer Engineering", rounds=[
        {"number": 3, "cutoff": {"general": 96.0}},
        {"number": 1, "cutoff": {"general": 98.0}},
        {"number": 3, "cutoff": {"general": 10.0}},
    ])
    rounds = effective_rounds(institution(), offering)
    assert [r.number for r in rounds] == [1, 3]
    assert rounds[1].cutoff.general == 96.0


def test_pseudo_round_from_offering_flat_cutoff() -> None:
    offering = CourseOffering(name="Civil Engineering", cutoff={"general": 92.5})
    series = select_cutoffs(institution(cutoff={"general": 80.0}), offering)
    assert series == [RoundCutoff(round=1, cutoff=92.5, seat_type="HU")]


def test_pseudo_round_falls_back_to_institution_cutoff() -> None:
    offering = CourseOffering(name="Civil Engineering")
    series = select_cutoffs(institution(cutoff={"general": 80.0}), offering)
    assert series == [RoundCutoff(round=1, cutoff=80.0, seat_type="HU")]


def test_offering_without_any_cutoff_has_no_data() -> None:
    assert select_cutoffs(institution(), CourseOffering(name="Civil Engineering")) == []


@pytest.mark.parametrize(
    "cutoff, expected",
    [
        (94.99, False),
        (95.0, True),
        (96.5, True),
        (98.0, True),
        (98.01, False),
    ],
)
def test_eligibility_window_is_closed(cutoff: float, expected: bool) -> None:
    assert is_eligible(95.0, cutoff) is expected


def test_best_matching_round_is_highest_eligible_cutoff() -> None:
    series = [
        RoundCutoff(round=1, cutoff=99.5, seat_type="HU"),
        RoundCutoff(round=2, cutoff=97.2, seat_type="HU"),
        RoundCutoff(round=3, cutoff=96.0, seat_type="HU"),
        RoundCutoff(round=4, cutoff=94.0, seat_type="HU"),
    ]
    assert [item.round for item in eligible_rounds(series, 95.0)] == [2, 3]
    assert best_matching_round(series, 95.0).round == 2


def test_best_matching_round_tie_prefers_lowest_round() -> None:
    series = [
        RoundCutoff(round=3, cutoff=97.0, seat_type="HU"),
        RoundCutoff(round=2, cutoff=97.0, seat_type="HU"),
    ]
    assert best_matching_round(series, 95.0).round == 2


def test_no_eligible_round() -> None:
    series = [RoundCutoff(round=1, cutoff=99.9, seat_type="HU")]
    assert best_matching_round(series, 90.0) is None
