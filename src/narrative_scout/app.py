"""Application entry point for narrative detection runs."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from .catalogue import load_catalogue
from .collector import ProducerSlot, SignalCollector
from .config import DEFAULT_CONFIG_PATH, AppConfig, load_config
from .engine import NarrativeEngine
from .github_source import GITHUB_LABEL, GitHubSource
from .interfaces import RendererInterface, WriterInterface
from .market_source import COINGECKO_LABEL, MarketSource
from .models import AnalysisResult
from .onchain_source import DEFILLAMA_LABEL, SOLANA_RPC_LABEL, OnChainSource
from .output_writer import ReportWriter
from .renderer import MarkdownRenderer, result_to_json
from .utils import log_step


def _build_runtime_log_lines(config: AppConfig) -> list[str]:
    sources = config.sources
    runtime = config.runtime
    return [
        f"  defillama_base_url={sources.defillama_base_url}",
        f"  solana_rpc_url={sources.solana_rpc_url}",
        f"  github_api_url={sources.github_api_url}",
        f"  coingecko_base_url={sources.coingecko_base_url}",
        f"  github_query_limit={sources.github_query_limit}",
        f"  github_token_set={bool(sources.github_token)}",
        f"  analysis_timeout_seconds={runtime.analysis_timeout_seconds}",
        f"  catalogue_path={runtime.catalogue_path or 'bundled'}",
        f"  markdown_output_dir={runtime.markdown_output_dir}",
        f"  output_pdf={runtime.output_pdf}",
        f"  pdf_output_dir={runtime.pdf_output_dir}",
    ]


def _build_collector(config: AppConfig) -> SignalCollector:
    sources = config.sources
    timeout = sources.request_timeout_seconds
    return SignalCollector(
        [
            ProducerSlot(
                name="onchain",
                producer=OnChainSource(
                    defillama_base_url=sources.defillama_base_url,
                    rpc_url=sources.solana_rpc_url,
                    timeout=timeout,
                    user_agent=sources.user_agent,
                ),
                labels=(DEFILLAMA_LABEL, SOLANA_RPC_LABEL),
            ),
            ProducerSlot(
                name="github",
                producer=GitHubSource(
                    api_url=sources.github_api_url,
                    queries=sources.github_queries,
                    query_limit=sources.github_query_limit,
                    query_delay_seconds=sources.github_query_delay_seconds,
                    timeout=timeout,
                    user_agent=sources.user_agent,
                    token=sources.github_token,
                ),
                labels=(GITHUB_LABEL,),
            ),
            ProducerSlot(
                name="market",
                producer=MarketSource(
                    base_url=sources.coingecko_base_url,
                    timeout=timeout,
                    user_agent=sources.user_agent,
                ),
                labels=(COINGECKO_LABEL,),
            ),
        ]
    )


def build_engine(config: AppConfig) -> NarrativeEngine:
    return NarrativeEngine(
        collector=_build_collector(config),
        catalogue=load_catalogue(config.runtime.catalogue_path),
    )


async def analyze_with_deadline(engine: NarrativeEngine, timeout_seconds: float) -> AnalysisResult:
    """Run one pass under a caller deadline; on expiry nothing is salvaged."""

    return await asyncio.wait_for(engine.analyze(), timeout=timeout_seconds)


def write_report(result: AnalysisResult, renderer: RendererInterface, writer: WriterInterface) -> str:
    """Render a result dated by its analysis time and hand it to the writer."""

    run_date = result.analyzed_at.date()
    text = renderer.render(run_date=run_date, result=result)
    path = writer.write(run_date=run_date, text=text)
    log_step(f"Report written to {path}")
    return path


def run_analysis(config_path: str | None = None, output_format: str = "json") -> str:
    """Build dependencies from config, execute one pass and emit output.

    Returns the JSON document for ``json`` output, or the written report
    path for ``markdown`` output.
    """

    effective_config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    config = load_config(effective_config_path)
    log_step(f"Loading configuration from {effective_config_path.resolve()}")
    for line in _build_runtime_log_lines(config):
        log_step(line)

    engine = build_engine(config)
    log_step("Analysis started")
    result = asyncio.run(analyze_with_deadline(engine, config.runtime.analysis_timeout_seconds))

    if output_format == "json":
        return result_to_json(result)

    writer = ReportWriter(
        markdown_dir=config.runtime.markdown_output_dir,
        pdf_dir=config.runtime.pdf_output_dir,
        output_pdf=config.runtime.output_pdf,
    )
    return write_report(result, renderer=MarkdownRenderer(), writer=writer)


def main(argv: list[str] | None = None) -> int:
    """CLI main function."""

    parser = argparse.ArgumentParser(description="Detect ecosystem narratives from live signals")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to config json. Default: config/default_config.json",
    )
    parser.add_argument(
        "--format",
        choices=["json", "markdown"],
        default="json",
        help="Print JSON to stdout, or write a markdown (and optional PDF) report.",
    )
    args = parser.parse_args(argv)

    try:
        output = run_analysis(config_path=args.config, output_format=args.format)
    except asyncio.TimeoutError:
        print("Analysis failed: deadline exceeded", file=sys.stderr)
        return 1
    except Exception as exc:
        print(f"Analysis failed: {exc}", file=sys.stderr)
        return 1

    if args.format == "json":
        print(output)
    else:
        print(f"Generated report -> {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
