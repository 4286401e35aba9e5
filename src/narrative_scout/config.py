"""Configuration loading for narrative scout."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_GITHUB_QUERIES = [
    "solana created:>2026-01-01 stars:>5",
    "solana agent ai created:>2026-01-01",
    "solana depin created:>2025-10-01 stars:>3",
    "anchor solana created:>2025-10-01 stars:>10",
    "solana token-2022 OR token-extensions",
    "solana blinks OR actions created:>2025-06-01",
    "solana compressed-nft OR state-compression",
]


@dataclass(slots=True)
class SourcesConfig:
    """Upstream endpoints and fetch behavior."""

    defillama_base_url: str = "https://api.llama.fi"
    solana_rpc_url: str = "https://api.mainnet-beta.solana.com"
    github_api_url: str = "https://api.github.com"
    coingecko_base_url: str = "https://api.coingecko.com/api/v3"
    github_queries: list[str] = field(default_factory=lambda: list(DEFAULT_GITHUB_QUERIES))
    github_query_limit: int = 3
    github_query_delay_seconds: float = 0.5
    request_timeout_seconds: float = 15.0
    user_agent: str = "narrative-scout"
    github_token: str = ""


@dataclass(slots=True)
class RuntimeConfig:
    """Runtime behavior configuration."""

    markdown_output_dir: str = "reports/markdown"
    pdf_output_dir: str = "reports/pdf"
    output_pdf: bool = False
    analysis_timeout_seconds: float = 30.0
    catalogue_path: str | None = None


@dataclass(slots=True)
class AppConfig:
    """Application configuration object."""

    sources: SourcesConfig = field(default_factory=SourcesConfig)
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)


DEFAULT_CONFIG_PATH = Path("config/default_config.json")


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load configuration from JSON file.

    Args:
        path: Custom config path. If omitted, uses default config.

    Returns:
        Parsed AppConfig object.

    Raises:
        FileNotFoundError: If config file does not exist.
        ValueError: If a field carries an invalid value.
    """

    config_path = Path(path) if path else DEFAULT_CONFIG_PATH
    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    data = json.loads(config_path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Config root must be a JSON object")

    defaults = SourcesConfig()
    sources_data = data.get("sources", {})
    sources = SourcesConfig(
        defillama_base_url=sources_data.get("defillama_base_url", defaults.defillama_base_url),
        solana_rpc_url=sources_data.get("solana_rpc_url", defaults.solana_rpc_url),
        github_api_url=sources_data.get("github_api_url", defaults.github_api_url),
        coingecko_base_url=sources_data.get("coingecko_base_url", defaults.coingecko_base_url),
        github_queries=list(sources_data.get("github_queries", DEFAULT_GITHUB_QUERIES)),
        github_query_limit=int(sources_data.get("github_query_limit", defaults.github_query_limit)),
        github_query_delay_seconds=float(
            sources_data.get("github_query_delay_seconds", defaults.github_query_delay_seconds)
        ),
        request_timeout_seconds=float(
            sources_data.get("request_timeout_seconds", defaults.request_timeout_seconds)
        ),
        user_agent=sources_data.get("user_agent", defaults.user_agent),
        github_token=os.getenv("GITHUB_TOKEN", "").strip(),
    )
    if sources.github_query_limit < 0:
        raise ValueError("sources.github_query_limit must not be negative")

    runtime_data = data.get("runtime", {})
    runtime = RuntimeConfig(
        markdown_output_dir=runtime_data.get("markdown_output_dir", "reports/markdown"),
        pdf_output_dir=runtime_data.get("pdf_output_dir", "reports/pdf"),
        output_pdf=_parse_bool(runtime_data.get("output_pdf", runtime_data.get("OUTPUT_PDF", False))),
        analysis_timeout_seconds=float(runtime_data.get("analysis_timeout_seconds", 30.0)),
        catalogue_path=runtime_data.get("catalogue_path") or None,
    )
    if runtime.analysis_timeout_seconds <= 0:
        raise ValueError("runtime.analysis_timeout_seconds must be positive")

    return AppConfig(sources=sources, runtime=runtime)


def _parse_bool(value: object) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)
