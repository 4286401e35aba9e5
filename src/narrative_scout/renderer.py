"""Markdown and JSON rendering for analysis results."""

from __future__ import annotations

import json
from datetime import date

from .models import AnalysisResult, DataPoint


def result_to_json(result: AnalysisResult, indent: int | None = 2) -> str:
    """Serialize a result with the camelCase keys of the HTTP API."""

    return json.dumps(result.to_dict(), ensure_ascii=False, indent=indent)


def _format_data_point(point: DataPoint) -> str:
    text = f"{point.metric}: {point.value}"
    if point.change:
        text += f" ({point.change})"
    text += f" [{point.source}]"
    if point.url:
        text += f" {point.url}"
    return text


def render_markdown_report(run_date: date, result: AnalysisResult) -> str:
    """Render narratives with their signals and build ideas."""

    header = f"# Narrative Report - {run_date.strftime('%m%d')}, {run_date.year}"
    sources = ", ".join(result.data_sources_used) if result.data_sources_used else "N/A"
    blocks = [
        header,
        "",
        f"- **Analyzed At**: {result.analyzed_at.isoformat()}",
        f"- **Total Signals**: {result.total_signals}",
        f"- **Data Sources**: {sources}",
        f"- **Agent Version**: {result.agent_version}",
        "",
    ]

    if not result.narratives:
        blocks.extend(["No narratives detected.", ""])

    for index, narrative in enumerate(result.narratives, start=1):
        blocks.extend(
            [
                f"## Narrative {index}: {narrative.title}",
                "",
                f"- **Confidence**: {narrative.confidence}",
                f"- **Trend**: {narrative.trend}",
                f"- **Category**: {narrative.category}",
                f"- **Signals**: {len(narrative.signals)}",
                "",
                narrative.description,
                "",
                "### Supporting Signals",
            ]
        )
        for signal in narrative.signals:
            blocks.append(f"- **{signal.title}** ({signal.source}, strength {signal.strength:.0f}): {signal.description}")
            blocks.extend(f"  - {_format_data_point(point)}" for point in signal.data_points)
        blocks.extend(["", "### Build Ideas"])
        for idea in narrative.build_ideas:
            blocks.append(
                f"- **{idea.title}** [{idea.feasibility} feasibility, {idea.estimated_effort}]: "
                f"{idea.description} Audience: {idea.target_audience}. Integration: {idea.integration}."
            )
        blocks.append("")

    return "\n".join(blocks).strip() + "\n"


class MarkdownRenderer:
    """Object adapter for engine dependency injection."""

    def render(self, run_date: date, result: AnalysisResult) -> str:
        return render_markdown_report(run_date=run_date, result=result)
