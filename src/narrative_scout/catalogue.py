"""Narrative pattern catalogue loading."""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path

from .models import BuildIdea, NarrativePattern

DEFAULT_CATALOGUE_PATH = Path(__file__).resolve().parent / "data" / "narrative_patterns.json"


def parse_catalogue(data: dict) -> tuple[NarrativePattern, ...]:
    """Build immutable patterns from a decoded catalogue document.

    Raises:
        ValueError: If a pattern misses a required field or carries
            invalid values.
    """

    if "patterns" not in data:
        raise ValueError("Catalogue must contain a 'patterns' list")

    patterns: list[NarrativePattern] = []
    seen_ids: set[str] = set()
    for item in data["patterns"]:
        try:
            pattern_id = item["id"]
            pattern = NarrativePattern(
                id=pattern_id,
                title=item["title"],
                keywords=_string_list(item, "keywords", pattern_id),
                categories=_string_list(item, "categories", pattern_id),
                min_signals=int(item.get("min_signals", 1)),
                description=item["description"],
                build_ideas=tuple(_parse_build_idea(idea) for idea in _idea_list(item, pattern_id)),
            )
        except KeyError as exc:
            raise ValueError(f"Catalogue pattern missing field: {exc}") from exc

        if pattern.id in seen_ids:
            raise ValueError(f"Duplicate catalogue pattern id: {pattern.id}")
        seen_ids.add(pattern.id)
        patterns.append(pattern)

    return tuple(patterns)


@lru_cache(maxsize=None)
def load_catalogue(path: str | Path | None = None) -> tuple[NarrativePattern, ...]:
    """Load the pattern catalogue once per path and share it read-only."""

    catalogue_path = Path(path) if path else DEFAULT_CATALOGUE_PATH
    if not catalogue_path.exists():
        raise FileNotFoundError(f"Catalogue not found: {catalogue_path}")

    data = json.loads(catalogue_path.read_text(encoding="utf-8"))
    return parse_catalogue(data)


def _string_list(item: dict, key: str, pattern_id: str) -> tuple[str, ...]:
    values = item.get(key, [])
    if not isinstance(values, list) or not all(isinstance(value, str) for value in values):
        raise ValueError(f"Catalogue pattern {pattern_id}: {key} must be a list of strings")
    return tuple(values)


def _idea_list(item: dict, pattern_id: str) -> list[dict]:
    ideas = item.get("build_ideas", [])
    if not isinstance(ideas, list) or not all(isinstance(idea, dict) for idea in ideas):
        raise ValueError(f"Catalogue pattern {pattern_id}: build_ideas must be a list of objects")
    return ideas


def _parse_build_idea(item: dict) -> BuildIdea:
    return BuildIdea(
        title=item["title"],
        description=item["description"],
        feasibility=item["feasibility"],
        estimated_effort=item.get("estimated_effort", ""),
        target_audience=item.get("target_audience", ""),
        integration=item.get("integration", ""),
    )
