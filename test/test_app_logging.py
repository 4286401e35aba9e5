import asyncio
import json
from datetime import date, datetime, timezone
from types import SimpleNamespace

import pytest

from narrative_scout import app
from narrative_scout.app import _build_collector, _build_runtime_log_lines, analyze_with_deadline, build_engine, write_report
from narrative_scout.config import AppConfig
from narrative_scout.engine import NarrativeEngine
from narrative_scout.models import AnalysisResult, CollectedSignals


def test_runtime_log_lines_use_actual_config_values() -> None:
    config = SimpleNamespace(
        sources=SimpleNamespace(
            defillama_base_url="https://llama.test",
            solana_rpc_url="https://rpc.test",
            github_api_url="https://github.test",
            coingecko_base_url="https://gecko.test",
            github_query_limit=2,
            github_token="secret",
        ),
        runtime=SimpleNamespace(
            analysis_timeout_seconds=12.0,
            catalogue_path=None,
            markdown_output_dir="out/md",
            output_pdf=True,
            pdf_output_dir="out/pdf",
        ),
    )

    joined = "\n".join(_build_runtime_log_lines(config))

    assert "defillama_base_url=https://llama.test" in joined
    assert "github_query_limit=2" in joined
    assert "github_token_set=True" in joined
    assert "secret" not in joined
    assert "analysis_timeout_seconds=12.0" in joined
    assert "catalogue_path=bundled" in joined
    assert "output_pdf=True" in joined


def test_collector_wires_three_producers_with_source_labels() -> None:
    collector = _build_collector(AppConfig())

    assert [slot.name for slot in collector.slots] == ["onchain", "github", "market"]
    assert [slot.labels for slot in collector.slots] == [
        ("DeFi Llama", "Solana RPC"),
        ("GitHub",),
        ("CoinGecko",),
    ]


def test_build_engine_uses_bundled_catalogue() -> None:
    engine = build_engine(AppConfig())

    assert len(engine.catalogue) == 6


class SlowCollector:
    async def collect(self) -> CollectedSignals:
        await asyncio.sleep(5)
        return CollectedSignals()


def test_deadline_discards_in_flight_analysis() -> None:
    engine = NarrativeEngine(collector=SlowCollector(), catalogue=())

    with pytest.raises(asyncio.TimeoutError):
        asyncio.run(analyze_with_deadline(engine, timeout_seconds=0.05))


class EmptyCollector:
    async def collect(self) -> CollectedSignals:
        return CollectedSignals()


def test_main_prints_json_result(monkeypatch, capsys, tmp_path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text("{}", encoding="utf-8")
    monkeypatch.setattr(
        app,
        "build_engine",
        lambda config: NarrativeEngine(collector=EmptyCollector(), catalogue=()),
    )

    exit_code = app.main(["--config", str(config_path)])

    assert exit_code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["narratives"] == []
    assert payload["totalSignals"] == 0
    assert payload["dataSourcesUsed"] == []


def test_main_writes_markdown_report(monkeypatch, capsys, tmp_path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(
        json.dumps({"runtime": {"markdown_output_dir": str(tmp_path / "md"), "pdf_output_dir": str(tmp_path / "pdf")}}),
        encoding="utf-8",
    )
    monkeypatch.setattr(
        app,
        "build_engine",
        lambda config: NarrativeEngine(collector=EmptyCollector(), catalogue=()),
    )

    exit_code = app.main(["--config", str(config_path), "--format", "markdown"])

    assert exit_code == 0
    assert "Generated report ->" in capsys.readouterr().out
    assert len(list((tmp_path / "md").glob("*_narratives.md"))) == 1


def test_main_reports_failure_for_missing_config(capsys, tmp_path) -> None:
    exit_code = app.main(["--config", str(tmp_path / "absent.json")])

    assert exit_code == 1
    assert "Analysis failed: Config not found" in capsys.readouterr().err


class FakeRenderer:
    def __init__(self):
        self.calls: list[date] = []

    def render(self, run_date: date, result: AnalysisResult) -> str:
        self.calls.append(run_date)
        return f"report with {result.total_signals} signals"


class FakeWriter:
    def __init__(self):
        self.written: list[tuple[date, str]] = []

    def write(self, run_date: date, text: str) -> str:
        self.written.append((run_date, text))
        return "out/0206_narratives.md"


def test_write_report_dates_output_by_analysis_time() -> None:
    result = AnalysisResult(
        narratives=[],
        total_signals=4,
        data_sources_used=["GitHub"],
        analyzed_at=datetime(2026, 2, 6, 23, 30, tzinfo=timezone.utc),
        agent_version="test",
    )
    renderer = FakeRenderer()
    writer = FakeWriter()

    path = write_report(result, renderer=renderer, writer=writer)

    assert path == "out/0206_narratives.md"
    assert renderer.calls == [date(2026, 2, 6)]
    assert writer.written == [(date(2026, 2, 6), "report with 4 signals")]
