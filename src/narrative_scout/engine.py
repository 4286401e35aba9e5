"""Narrative engine: collection, matching, scoring and result assembly."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from .interfaces import CollectorInterface
from .matcher import PatternMatch, match_signals
from .models import AnalysisResult, Narrative, NarrativePattern, Signal
from .scorer import calculate_confidence, determine_trend
from .utils import log_step

AGENT_VERSION = "narrative-scout-0.1.0"
SUMMARY_LENGTH = 120
DEFAULT_CATEGORY = "General"


def _as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken as UTC rather than local time."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def summarize_description(description: str) -> str:
    """Hard cut at the summary length, always followed by an ellipsis."""

    return description[:SUMMARY_LENGTH] + "..."


def build_narrative(match: PatternMatch, detected_at: datetime) -> Narrative:
    pattern = match.pattern
    return Narrative(
        id=pattern.id,
        title=pattern.title,
        summary=summarize_description(pattern.description),
        description=pattern.description,
        signals=list(match.matched),
        confidence=calculate_confidence(match.matched),
        trend=determine_trend(match.matched),
        build_ideas=pattern.build_ideas,
        detected_at=detected_at,
        category=pattern.categories[0] if pattern.categories else DEFAULT_CATEGORY,
    )


def analyze_signals(
    signals: list[Signal],
    sources: list[str],
    catalogue: tuple[NarrativePattern, ...],
    now: datetime,
    agent_version: str = AGENT_VERSION,
) -> AnalysisResult:
    """Match, score and rank narratives for an already collected signal set."""

    matches = match_signals(signals, catalogue)
    narratives = [build_narrative(match, detected_at=now) for match in matches]
    narratives.sort(key=lambda item: item.confidence, reverse=True)

    return AnalysisResult(
        narratives=narratives,
        total_signals=len(signals),
        data_sources_used=list(sources),
        analyzed_at=now,
        agent_version=agent_version,
    )


@dataclass(slots=True)
class NarrativeEngine:
    """Coordinate signal collection and narrative detection for one pass."""

    collector: CollectorInterface
    catalogue: tuple[NarrativePattern, ...]
    agent_version: str = AGENT_VERSION

    async def analyze(self, now: datetime | None = None) -> AnalysisResult:
        """Run one stateless analysis pass.

        Producer failures are absorbed by the collector. Anything else that
        escapes, such as a cancelled deadline, is left to the caller.
        """

        collected = await self.collector.collect()
        log_step(
            f"Collected signals={len(collected.signals)}, sources={collected.sources}"
        )

        run_at = _as_utc(now) if now else datetime.now(timezone.utc)
        result = analyze_signals(
            signals=collected.signals,
            sources=collected.sources,
            catalogue=self.catalogue,
            now=run_at,
            agent_version=self.agent_version,
        )
        log_step(f"Detected narratives={len(result.narratives)}")
        return result
