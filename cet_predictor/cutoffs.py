"""
Cutoff Selector and Eligibility Window Filter

For every round of a course offering one cutoff is chosen by strict seat
priority (TFWS, then Ladies, then the policy's category column). The
eligibility window then keeps rounds whose cutoff the candidate can
realistically reach.
"""

from typing import List, Optional

from .config import (
    CATEGORY_KEYS,
    ELIGIBILITY_WINDOW,
    SEAT_TYPE_LADIES,
    SEAT_TYPE_OPEN,
    SEAT_TYPE_TFWS,
)
from .models import CourseOffering, Institution, PredictionInput, Round, RoundCutoff


class OpenCategoryPolicy:
    """Every candidate is scored against the general (open) column."""

    name = "open"

    def category_key(self, query: PredictionInput) -> str:
        return "general"


class DeclaredCategoryPolicy:
    """Scores against the candidate's own column, e.g. obc for OBC or Ladies_OBC."""

    name = "declared"

    def category_key(self, query: PredictionInput) -> str:
        key = query.category
        if key.startswith("ladies_"):
            key = key[len("ladies_"):]
        return key if key in CATEGORY_KEYS else "general"


POLICIES = {
    OpenCategoryPolicy.name: OpenCategoryPolicy,
    DeclaredCategoryPolicy.name: DeclaredCategoryPolicy,
}


def get_policy(name: str):
    try:
        return POLICIES[name]()
    except KeyError:
        raise ValueError(f"Unknown category policy: {name}") from None


def _seat_label(key: str) -> str:
    return SEAT_TYPE_OPEN if key == "general" else key.upper()


def effective_rounds(institution: Institution, offering: CourseOffering) -> List[Round]:
    """
    Rounds of an offering ordered by round number.

    Offerings with no round records fall back to a single pseudo round 1
    built from the offering's flat cutoff, then the institution's.
    """
    if offering.rounds:
        seen = set()
        rounds = []
        for rnd in sorted(offering.rounds, key=lambda r: r.number):
            if rnd.number in seen:
                continue
            seen.add(rnd.number)
            rounds.append(rnd)
        return rounds

    legacy = offering.cutoff if offering.cutoff is not None else institution.cutoff
    if legacy is None:
        return []
    return [Round(number=1, cutoff=legacy)]


def select_round_cutoff(
    rnd: Round,
    category_key: str = "general",
    include_ladies: bool = False,
    include_tfws: bool = False,
) -> Optional[RoundCutoff]:
    cutoff = rnd.cutoff
    if cutoff is None:
        return None

    if include_tfws and cutoff.tfws is not None:
        return RoundCutoff(round=rnd.number, cutoff=cutoff.tfws, seat_type=SEAT_TYPE_TFWS)

    if include_ladies and cutoff.ladies is not None:
        value = cutoff.ladies.value_for(category_key)
        if value is None and category_key != "general":
            value = cutoff.ladies.value_for("general")
        if value is not None:
            return RoundCutoff(round=rnd.number, cutoff=value, seat_type=SEAT_TYPE_LADIES)

    value = cutoff.value_for(category_key)
    if value is not None:
        return RoundCutoff(round=rnd.number, cutoff=value, seat_type=_seat_label(category_key))
    if category_key != "general" and cutoff.general is not None:
        return RoundCutoff(round=rnd.number, cutoff=cutoff.general, seat_type=SEAT_TYPE_OPEN)
    return None


def select_cutoffs(
    institution: Institution,
    offering: CourseOffering,
    category_key: str = "general",
    include_ladies: bool = False,
    include_tfws: bool = False,
) -> List[RoundCutoff]:
    """Selected cutoff per round, rounds without a usable value dropped."""
    selected = []
    for rnd in effective_rounds(institution, offering):
        choice = select_round_cutoff(rnd, category_key, include_ladies, include_tfws)
        if choice is not None:
            selected.append(choice)
    return selected


def is_eligible(percentile: float, cutoff: float, window: float = ELIGIBILITY_WINDOW) -> bool:
    return percentile <= cutoff <= percentile + window


def eligible_rounds(
    series: List[RoundCutoff], percentile: float, window: float = ELIGIBILITY_WINDOW
) -> List[RoundCutoff]:
    return [item for item in series if is_eligible(percentile, item.cutoff, window)]


def best_matching_round(
    series: List[RoundCutoff], percentile: float, window: float = ELIGIBILITY_WINDOW
) -> Optional[RoundCutoff]:
    """Highest eligible cutoff; on ties the lowest round number wins."""
    candidates = eligible_rounds(series, percentile, window)
    if not candidates:
        return None
    return min(candidates, key=lambda item: (-item.cutoff, item.round))
