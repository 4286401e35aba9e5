"""Core data models for the narrative detection pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

SignalSource = Literal["onchain", "github", "social", "market"]
Trend = Literal["emerging", "accelerating", "mature", "declining"]
Feasibility = Literal["high", "medium", "low"]

SIGNAL_SOURCES: tuple[str, ...] = ("onchain", "github", "social", "market")
TRENDS: tuple[str, ...] = ("emerging", "accelerating", "mature", "declining")
FEASIBILITY_LEVELS: tuple[str, ...] = ("high", "medium", "low")


@dataclass(frozen=True, slots=True)
class DataPoint:
    """A display metric attached to a signal."""

    metric: str
    value: str | int | float
    source: str
    change: str | None = None
    url: str | None = None

    def to_dict(self) -> dict:
        payload: dict = {"metric": self.metric, "value": self.value}
        if self.change is not None:
            payload["change"] = self.change
        payload["source"] = self.source
        if self.url is not None:
            payload["url"] = self.url
        return payload


@dataclass(frozen=True, slots=True)
class Signal:
    """A normalized observation produced by one upstream source."""

    source: SignalSource
    category: str
    title: str
    description: str
    strength: float
    timestamp: datetime
    data_points: tuple[DataPoint, ...] = ()

    def __post_init__(self) -> None:
        if self.source not in SIGNAL_SOURCES:
            raise ValueError(f"Unknown signal source: {self.source}")
        if not 0 <= self.strength <= 100:
            raise ValueError(f"Signal strength out of range [0, 100]: {self.strength}")
        object.__setattr__(self, "data_points", tuple(self.data_points))

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "category": self.category,
            "title": self.title,
            "description": self.description,
            "dataPoints": [point.to_dict() for point in self.data_points],
            "strength": self.strength,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True, slots=True)
class BuildIdea:
    """Static build suggestion carried by a narrative pattern."""

    title: str
    description: str
    feasibility: Feasibility
    estimated_effort: str
    target_audience: str
    integration: str

    def __post_init__(self) -> None:
        if self.feasibility not in FEASIBILITY_LEVELS:
            raise ValueError(f"Unknown feasibility level: {self.feasibility}")

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "feasibility": self.feasibility,
            "estimatedEffort": self.estimated_effort,
            "targetAudience": self.target_audience,
            "integration": self.integration,
        }


@dataclass(frozen=True, slots=True)
class NarrativePattern:
    """Hand-authored narrative definition from the pattern catalogue."""

    id: str
    title: str
    keywords: tuple[str, ...]
    categories: tuple[str, ...]
    min_signals: int
    description: str
    build_ideas: tuple[BuildIdea, ...] = ()

    def __post_init__(self) -> None:
        if self.min_signals < 1:
            raise ValueError(f"Pattern {self.id} must require at least one signal")
        object.__setattr__(self, "keywords", tuple(kw.lower() for kw in self.keywords))
        object.__setattr__(self, "categories", tuple(self.categories))
        object.__setattr__(self, "build_ideas", tuple(self.build_ideas))


@dataclass(slots=True)
class Narrative:
    """A detected narrative backed by its matched signals."""

    id: str
    title: str
    summary: str
    description: str
    signals: list[Signal]
    confidence: int
    trend: Trend
    build_ideas: tuple[BuildIdea, ...]
    detected_at: datetime
    category: str

    def __post_init__(self) -> None:
        if self.trend not in TRENDS:
            raise ValueError(f"Unknown trend: {self.trend}")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "summary": self.summary,
            "description": self.description,
            "signals": [signal.to_dict() for signal in self.signals],
            "confidence": self.confidence,
            "trend": self.trend,
            "buildIdeas": [idea.to_dict() for idea in self.build_ideas],
            "detectedAt": self.detected_at.isoformat(),
            "category": self.category,
        }


@dataclass(slots=True)
class AnalysisResult:
    """Outcome of one analysis pass."""

    narratives: list[Narrative]
    total_signals: int
    data_sources_used: list[str]
    analyzed_at: datetime
    agent_version: str

    def to_dict(self) -> dict:
        return {
            "narratives": [narrative.to_dict() for narrative in self.narratives],
            "totalSignals": self.total_signals,
            "dataSourcesUsed": list(self.data_sources_used),
            "analyzedAt": self.analyzed_at.isoformat(),
            "agentVersion": self.agent_version,
        }


@dataclass(slots=True)
class CollectedSignals:
    """Merged producer output handed to the matcher."""

    signals: list[Signal] = field(default_factory=list)
    sources: list[str] = field(default_factory=list)
