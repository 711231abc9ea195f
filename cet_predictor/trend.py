"""
Trend Analyzer and Probability Classifier

The trend is read from the whole selected round series, not just the
eligible rounds, and the final gap is always measured against the
chronologically last round.
"""

import math
from dataclasses import dataclass
from typing import List

from .config import (
    CANONICAL_ROUNDS,
    CONFIDENCE_BASE,
    CONFIDENCE_CAP,
    CONFIDENCE_SPAN,
    PROBABILITY_BANDS,
    TREND_LENIENCY,
    VERY_HIGH_CHANCE_THRESHOLD,
)
from .models import RoundCutoff

DOWNWARD = "downward"
UPWARD = "upward"


@dataclass
class TrendAnalysis:
    first_cutoff: float
    last_cutoff: float
    total_change: float
    direction: str
    volatility: float
    rounds_with_data: int
    data_density: float
    confidence_score: int
    trend_adjustment: float
    adjusted_strength: float
    final_gap: float


@dataclass
class ChanceBand:
    admission_chance: int
    probability: str
    risk_label: str


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def confidence_score(rounds_with_data: int, canonical_rounds: int = CANONICAL_ROUNDS) -> int:
    density = min(1.0, rounds_with_data / canonical_rounds)
    return min(CONFIDENCE_CAP, _round_half_up(density * CONFIDENCE_SPAN + CONFIDENCE_BASE))


def analyze_trend(series: List[RoundCutoff], percentile: float) -> TrendAnalysis:
    """
    Derive direction, volatility and confidence from a round series.

    Args:
        series: selected cutoffs, one per round (any order, at least one)
        percentile: the candidate's percentile

    Returns:
        TrendAnalysis with the trend-adjusted gap to the last round
    """
    if not series:
        raise ValueError("Trend analysis needs at least one round")

    ordered = sorted(series, key=lambda item: item.round)
    cutoffs = [item.cutoff for item in ordered]
    first, last = cutoffs[0], cutoffs[-1]

    total_change = last - first
    direction = DOWNWARD if total_change <= 0 else UPWARD
    trend_adjustment = abs(total_change) * TREND_LENIENCY if direction == DOWNWARD else 0.0
    adjusted_strength = percentile + trend_adjustment

    return TrendAnalysis(
        first_cutoff=first,
        last_cutoff=last,
        total_change=total_change,
        direction=direction,
        volatility=max(cutoffs) - min(cutoffs),
        rounds_with_data=len(cutoffs),
        data_density=min(1.0, len(cutoffs) / CANONICAL_ROUNDS),
        confidence_score=confidence_score(len(cutoffs)),
        trend_adjustment=trend_adjustment,
        adjusted_strength=adjusted_strength,
        final_gap=adjusted_strength - last,
    )


def classify_gap(final_gap: float) -> ChanceBand:
    for lower_bound, chance, probability, risk_label in PROBABILITY_BANDS:
        if final_gap >= lower_bound:
            if chance >= VERY_HIGH_CHANCE_THRESHOLD:
                risk_label = "Very High Chance"
            return ChanceBand(chance, probability, risk_label)
    raise ValueError(f"Gap {final_gap!r} is not a comparable number")


def build_insight(trend: TrendAnalysis) -> str:
    rounds = f"{trend.rounds_with_data} round{'s' if trend.rounds_with_data != 1 else ''}"
    if trend.final_gap >= 0:
        if trend.direction == DOWNWARD and trend.total_change < 0:
            return (
                f"Strong fit: cutoffs eased by {abs(trend.total_change):.2f} across {rounds} and your "
                f"percentile clears the latest cutoff of {trend.last_cutoff:.2f}."
            )
        return (
            f"Strong fit: your percentile clears the latest cutoff of {trend.last_cutoff:.2f} "
            f"({trend.direction} trend over {rounds})."
        )
    return (
        f"Within reach: the latest cutoff was {trend.last_cutoff:.2f}, {abs(trend.final_gap):.2f} above your "
        f"trend-adjusted percentile. Keep this option; later CAP rounds often relax cutoffs."
    )
