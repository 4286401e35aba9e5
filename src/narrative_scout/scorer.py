"""Confidence scoring and trend classification for matched signals."""

from __future__ import annotations

from .models import Signal, Trend
from .utils import round_half_up

CONFIDENCE_STRENGTH_WEIGHT = 0.6
CONFIDENCE_SOURCE_BONUS = 10
CONFIDENCE_COUNT_BONUS = 5
CONFIDENCE_COUNT_CAP = 25


def mean_strength(signals: list[Signal]) -> float:
    if not signals:
        return 0.0
    return sum(signal.strength for signal in signals) / len(signals)


def distinct_source_count(signals: list[Signal]) -> int:
    return len({signal.source for signal in signals})


def calculate_confidence(signals: list[Signal]) -> int:
    """Score a matched signal set from 0 to 100.

    Rewards mean strength, corroboration across source kinds and volume,
    with the volume bonus capped.
    """

    if not signals:
        return 0

    raw = (
        mean_strength(signals) * CONFIDENCE_STRENGTH_WEIGHT
        + distinct_source_count(signals) * CONFIDENCE_SOURCE_BONUS
        + min(len(signals) * CONFIDENCE_COUNT_BONUS, CONFIDENCE_COUNT_CAP)
    )
    return min(100, round_half_up(raw))


def determine_trend(signals: list[Signal]) -> Trend:
    """Classify a matched signal set; first rule that holds wins.

    ``declining`` is part of the trend vocabulary but no rule yields it.
    """

    average = mean_strength(signals)
    sources = distinct_source_count(signals)

    if average > 70 and sources >= 3:
        return "accelerating"
    if average > 50 and sources >= 2:
        return "mature"
    return "emerging"
