"""Lexical matching of signals against narrative patterns."""

from __future__ import annotations

from dataclasses import dataclass, field

from .models import NarrativePattern, Signal


@dataclass(slots=True)
class PatternMatch:
    """Signals selected by one pattern, in input order."""

    pattern: NarrativePattern
    matched: list[Signal] = field(default_factory=list)


def signal_text(signal: Signal) -> str:
    """Combined lowercase text searched by keyword rules."""

    return f"{signal.title} {signal.description} {signal.category}".lower()


def keyword_match(pattern: NarrativePattern, text: str) -> bool:
    return any(keyword in text for keyword in pattern.keywords)


def category_match(pattern: NarrativePattern, category: str) -> bool:
    """Containment in either direction, since sources vary in granularity."""

    signal_category = category.lower()
    for hint in pattern.categories:
        hint_lower = hint.lower()
        if hint_lower in signal_category or signal_category in hint_lower:
            return True
    return False


def matches_pattern(pattern: NarrativePattern, signal: Signal) -> bool:
    return keyword_match(pattern, signal_text(signal)) or category_match(pattern, signal.category)


def match_signals(
    signals: list[Signal],
    patterns: tuple[NarrativePattern, ...] | list[NarrativePattern],
) -> list[PatternMatch]:
    """Return matches for every pattern reaching its signal threshold.

    Patterns are evaluated in catalogue order and a signal may back several
    patterns. Patterns under ``min_signals`` are dropped.
    """

    matches: list[PatternMatch] = []
    for pattern in patterns:
        matched = [signal for signal in signals if matches_pattern(pattern, signal)]
        if len(matched) >= pattern.min_signals:
            matches.append(PatternMatch(pattern=pattern, matched=matched))
    return matches
