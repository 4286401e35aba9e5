import asyncio
from datetime import datetime, timezone

from narrative_scout.catalogue import load_catalogue
from narrative_scout.engine import (
    AGENT_VERSION,
    NarrativeEngine,
    analyze_signals,
    summarize_description,
)
from narrative_scout.models import BuildIdea, CollectedSignals, NarrativePattern, Signal

NOW = datetime(2026, 2, 6, 12, 0, tzinfo=timezone.utc)


def make_signal(title: str, category: str, source: str, strength: float) -> Signal:
    return Signal(
        source=source,
        category=category,
        title=title,
        description="",
        strength=strength,
        timestamp=NOW,
    )


IDEA = BuildIdea(
    title="Idea",
    description="Build it",
    feasibility="high",
    estimated_effort="1 week",
    target_audience="Builders",
    integration="CPI",
)


def make_pattern(pattern_id: str, keywords: tuple[str, ...], categories: tuple[str, ...] = (), min_signals: int = 1):
    return NarrativePattern(
        id=pattern_id,
        title=f"{pattern_id} narrative",
        keywords=keywords,
        categories=categories,
        min_signals=min_signals,
        description="x" * 200,
        build_ideas=(IDEA,),
    )


class FakeCollector:
    def __init__(self, collected: CollectedSignals):
        self.collected = collected
        self.calls = 0

    async def collect(self) -> CollectedSignals:
        self.calls += 1
        return self.collected


def test_zero_signals_yield_empty_result() -> None:
    engine = NarrativeEngine(collector=FakeCollector(CollectedSignals()), catalogue=load_catalogue())

    result = asyncio.run(engine.analyze(now=NOW))

    assert result.narratives == []
    assert result.total_signals == 0
    assert result.data_sources_used == []
    assert result.analyzed_at == NOW
    assert result.agent_version == AGENT_VERSION


def test_analyze_builds_narratives_from_collected_signals() -> None:
    signals = [
        make_signal("Agent frameworks", "AI Agents", "github", 80),
        make_signal("Inference market", "Momentum", "market", 60),
    ]
    collector = FakeCollector(CollectedSignals(signals=signals, sources=["GitHub", "CoinGecko"]))
    catalogue = (make_pattern("agents", ("agent", "inference")),)
    engine = NarrativeEngine(collector=collector, catalogue=catalogue)

    result = asyncio.run(engine.analyze(now=NOW))

    assert collector.calls == 1
    assert result.total_signals == 2
    assert result.data_sources_used == ["GitHub", "CoinGecko"]
    narrative = result.narratives[0]
    assert narrative.id == "agents"
    assert narrative.signals == signals
    # 0.6 * 70 + 2 * 10 + 10 = 72
    assert narrative.confidence == 72
    assert narrative.trend == "mature"
    assert narrative.build_ideas == (IDEA,)
    assert narrative.detected_at == result.analyzed_at == NOW


def test_narratives_sorted_by_confidence_with_stable_ties() -> None:
    signals = [
        make_signal("alpha weak", "Other", "onchain", 10),
        make_signal("beta strong", "Other", "onchain", 90),
        make_signal("gamma weak", "Other", "onchain", 10),
    ]
    catalogue = (
        make_pattern("alpha", ("alpha",)),
        make_pattern("beta", ("beta",)),
        make_pattern("gamma", ("gamma",)),
    )

    result = analyze_signals(signals, [], catalogue, now=NOW)

    assert [item.id for item in result.narratives] == ["beta", "alpha", "gamma"]
    confidences = [item.confidence for item in result.narratives]
    assert confidences == sorted(confidences, reverse=True)


def test_threshold_pattern_contributes_nothing() -> None:
    signals = [make_signal("DeFi TVL record", "Other", "onchain", 100)]
    catalogue = (make_pattern("defi", ("defi",), min_signals=2),)

    result = analyze_signals(signals, ["DeFi Llama", "Solana RPC"], catalogue, now=NOW)

    assert result.narratives == []
    assert result.total_signals == 1


def test_summary_is_hard_cut_with_ellipsis() -> None:
    description = "word " * 40

    summary = summarize_description(description)

    assert summary == description[:120] + "..."
    assert len(summary) == 123
    assert summarize_description("short") == "short..."


def test_category_falls_back_to_general() -> None:
    signals = [make_signal("agent", "Other", "github", 50)]
    catalogue = (make_pattern("bare", ("agent",)), make_pattern("hinted", ("agent",), ("AI Agents", "Tooling")))

    result = analyze_signals(signals, [], catalogue, now=NOW)

    categories = {item.id: item.category for item in result.narratives}
    assert categories == {"bare": "General", "hinted": "AI Agents"}


def test_repeated_analysis_is_deterministic() -> None:
    signals = [
        make_signal("Solana Total Value Locked", "DeFi", "onchain", 45),
        make_signal("Jupiter TVL growing", "DEXes", "onchain", 70),
        make_signal("AI Agents: 4 active repositories on Solana", "AI Agents", "github", 100),
        make_signal("SOL Market Position", "Market", "market", 62),
        make_signal("3 Solana tokens declining this week", "Risk", "market", 18),
    ]
    catalogue = load_catalogue()

    first = analyze_signals(signals, ["GitHub"], catalogue, now=NOW)
    second = analyze_signals(signals, ["GitHub"], catalogue, now=datetime(2026, 3, 1, tzinfo=timezone.utc))

    def strip_times(payload: dict) -> dict:
        payload = dict(payload)
        payload.pop("analyzedAt")
        payload["narratives"] = [
            {key: value for key, value in item.items() if key != "detectedAt"} for item in payload["narratives"]
        ]
        return payload

    assert strip_times(first.to_dict()) == strip_times(second.to_dict())
    assert all(item.trend != "declining" for item in first.narratives)
    assert all(0 <= item.confidence <= 100 for item in first.narratives)


def test_naive_now_is_taken_as_utc() -> None:
    engine = NarrativeEngine(
        collector=FakeCollector(CollectedSignals(signals=[make_signal("agent", "AI", "github", 50)])),
        catalogue=(make_pattern("agents", ("agent",)),),
    )

    result = asyncio.run(engine.analyze(now=datetime(2026, 2, 6, 12, 0)))

    assert result.analyzed_at == NOW
    assert result.analyzed_at.tzinfo == timezone.utc
    assert result.narratives[0].detected_at == NOW
