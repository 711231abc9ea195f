"""
Admission prediction engine.

A query runs synchronously over a read-only catalog snapshot and performs
no I/O. Persisting or rendering the result is up to the caller.
"""

import logging
from typing import Dict, List, Optional, Set, Tuple

from .catalog import Catalog
from .config import (
    ALL_CITIES,
    CATEGORY_POLICY,
    ELIGIBILITY_WINDOW,
    HIGH_CHANCE_MIN,
    MEDIUM_CHANCE_MIN,
)
from .cutoffs import best_matching_round, get_policy, select_cutoffs
from .exceptions import NoEligibleColleges
from .matcher import CourseMatcher
from .models import (
    CourseBreakdown,
    CourseOffering,
    Institution,
    PlacementSummary,
    PredictionInput,
    PredictionMetadata,
    PredictionRecord,
    PredictionResult,
)
from .trend import analyze_trend, build_insight, classify_gap

logger = logging.getLogger(__name__)


def predict_offering(
    query: PredictionInput,
    institution: Institution,
    offering: CourseOffering,
    requested_course: str,
    category_key: str = "general",
) -> Optional[PredictionRecord]:
    """
    Score one course offering for the candidate.

    Returns:
        PredictionRecord, or None when no round is eligible
    """
    series = select_cutoffs(
        institution, offering, category_key, query.include_ladies, query.include_tfws
    )
    if not series:
        logger.debug(f"{institution.name} / {offering.name}: no usable cutoff data")
        return None

    best = best_matching_round(series, query.percentile)
    if best is None:
        return None

    trend = analyze_trend(series, query.percentile)
    band = classify_gap(trend.final_gap)

    placements = institution.placements
    return PredictionRecord(
        college=institution.name,
        location=institution.location,
        city=institution.city,
        type=institution.type,
        course=requested_course,
        course_offered=offering.name,
        seat_type=best.seat_type,
        best_matching_round=best.round,
        cutoff_for_category=best.cutoff,
        last_round_cutoff=trend.last_cutoff,
        adjusted_strength=round(trend.adjusted_strength, 2),
        difference=round(trend.final_gap, 2),
        admission_chance=band.admission_chance,
        probability=band.probability,
        risk_label=band.risk_label,
        ai_confidence=trend.confidence_score,
        trend=trend.direction,
        trend_score=round(trend.total_change, 2),
        volatility=round(trend.volatility, 2),
        ai_insight=build_insight(trend),
        all_rounds=sorted(series, key=lambda item: item.round),
        fees=institution.fees.formatted,
        placements=PlacementSummary(
            average_package=placements.average_package.formatted,
            highest_package=placements.highest_package.formatted,
            placement_rate=f"{placements.placement_rate:g}%",
        ),
    )


def rank_course_records(records: List[PredictionRecord]) -> List[PredictionRecord]:
    ranked = sorted(records, key=lambda r: r.cutoff_for_category, reverse=True)
    for position, record in enumerate(ranked, start=1):
        record.rank = position
    return ranked


def _bucket_counts(records: List[PredictionRecord]) -> Tuple[int, int, int]:
    high = sum(1 for r in records if r.admission_chance >= HIGH_CHANCE_MIN)
    medium = sum(1 for r in records if MEDIUM_CHANCE_MIN <= r.admission_chance < HIGH_CHANCE_MIN)
    return high, medium, len(records) - high - medium


def aggregate(
    query: PredictionInput, course_results: Dict[str, List[PredictionRecord]]
) -> PredictionResult:
    """Merge per-course rankings into one list and summarise it."""
    combined = [record for records in course_results.values() for record in records]
    if not combined:
        raise NoEligibleColleges(query.percentile, ELIGIBILITY_WINDOW, query.courses)

    # Per-course ranks are kept, the combined list is not re-ranked
    combined.sort(key=lambda r: r.cutoff_for_category, reverse=True)

    high, medium, low = _bucket_counts(combined)
    breakdown = []
    for course, records in course_results.items():
        c_high, c_medium, c_low = _bucket_counts(records)
        breakdown.append(CourseBreakdown(
            course=course,
            total_colleges=len(records),
            high_chance=c_high,
            medium_chance=c_medium,
            low_chance=c_low,
        ))

    metadata = PredictionMetadata(
        total_colleges=len(combined),
        total_courses=len(course_results),
        high_chance=high,
        medium_chance=medium,
        low_chance=low,
        average_chance=round(sum(r.admission_chance for r in combined) / len(combined), 2),
        course_breakdown=breakdown,
        university_applied=query.university_type,
        category=query.category,
    )
    return PredictionResult(
        input_percentile=query.percentile,
        predictions=combined,
        course_results=course_results,
        metadata=metadata,
    )


def _in_city(institution: Institution, city: str) -> bool:
    if not city or city == ALL_CITIES:
        return True
    return institution.city.strip().lower() == city.strip().lower()


def predict(
    query: PredictionInput,
    catalog: Catalog,
    policy=None,
    matcher: Optional[CourseMatcher] = None,
) -> PredictionResult:
    """
    Predict admission chances for every requested course.

    Args:
        query: validated prediction query
        catalog: read-only catalog snapshot
        policy: category policy, defaults to the configured one
        matcher: course matcher, defaults to the shipped alias table

    Returns:
        PredictionResult with combined and per-course rankings

    Raises:
        NoEligibleColleges: when no course yields a single eligible college
    """
    policy = policy if policy is not None else get_policy(CATEGORY_POLICY)
    matcher = matcher if matcher is not None else CourseMatcher()
    category_key = policy.category_key(query)

    claimed: Set[Tuple[str, int]] = set()
    course_results: Dict[str, List[PredictionRecord]] = {}

    for course in query.courses:
        if course in course_results:
            continue
        records = []
        for institution, offering in matcher.match_catalog(course, catalog):
            if not _in_city(institution, query.city):
                continue
            # Same-named offerings of one institution are separate offerings
            key = (institution.name, id(offering))
            if key in claimed:
                continue
            record = predict_offering(query, institution, offering, course, category_key)
            if record is not None:
                claimed.add(key)
                records.append(record)
        course_results[course] = rank_course_records(records)
        logger.info(f"Course '{course}': {len(records)} eligible college(s) at {query.percentile} percentile")

    return aggregate(query, course_results)
