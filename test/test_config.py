import json
from pathlib import Path

import pytest

from narrative_scout.config import DEFAULT_GITHUB_QUERIES, load_config


def _write_config(path: Path, payload: dict) -> None:
    path.write_text(json.dumps(payload), encoding="utf-8")


def test_defaults_apply_for_empty_config(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    config_path = tmp_path / "config.json"
    _write_config(config_path, {})

    config = load_config(config_path)

    assert config.sources.defillama_base_url == "https://api.llama.fi"
    assert config.sources.github_queries == DEFAULT_GITHUB_QUERIES
    assert config.sources.github_query_limit == 3
    assert config.sources.github_token == ""
    assert config.runtime.output_pdf is False
    assert config.runtime.analysis_timeout_seconds == 30.0
    assert config.runtime.catalogue_path is None


def test_output_pdf_true_when_enabled(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    _write_config(config_path, {"runtime": {"OUTPUT_PDF": "true"}})

    config = load_config(config_path)

    assert config.runtime.output_pdf is True


def test_github_token_comes_from_environment(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("GITHUB_TOKEN", " ghp_example \n")
    config_path = tmp_path / "config.json"
    _write_config(config_path, {"sources": {"github_token": "ignored", "github_query_limit": 5}})

    config = load_config(config_path)

    assert config.sources.github_token == "ghp_example"
    assert config.sources.github_query_limit == 5


def test_missing_config_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.json")


def test_non_positive_timeout_is_rejected(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    _write_config(config_path, {"runtime": {"analysis_timeout_seconds": 0}})

    with pytest.raises(ValueError):
        load_config(config_path)


def test_bundled_default_config_parses() -> None:
    config = load_config(Path(__file__).resolve().parents[1] / "config" / "default_config.json")

    assert config.sources.coingecko_base_url == "https://api.coingecko.com/api/v3"
    assert len(config.sources.github_queries) == 7
