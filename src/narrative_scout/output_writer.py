"""Report writers for markdown and PDF narrative reports."""

from __future__ import annotations

import html
import re
from datetime import date
from pathlib import Path

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import ListFlowable, ListItem, Paragraph, SimpleDocTemplate, Spacer

HEADING_SPACING = {"h1": 10, "h2": 6, "h3": 4}
BULLET_PATTERN = re.compile(r"^(\s*)(?:-|\*)\s+(.*)$")


class ReportWriter:
    """Write a narrative report to markdown, optionally mirrored as PDF."""

    def __init__(self, markdown_dir: str | Path, pdf_dir: str | Path, output_pdf: bool = False):
        self.markdown_dir = Path(markdown_dir)
        self.pdf_dir = Path(pdf_dir)
        self.output_pdf = output_pdf
        self.markdown_dir.mkdir(parents=True, exist_ok=True)
        if self.output_pdf:
            self.pdf_dir.mkdir(parents=True, exist_ok=True)

    def write(self, run_date: date, text: str) -> str:
        stem = f"{run_date.strftime('%m%d')}_narratives"
        markdown_path = self.markdown_dir / f"{stem}.md"
        markdown_path.write_text(text, encoding="utf-8")
        if self.output_pdf:
            self._write_pdf(text=text, output_path=self.pdf_dir / f"{stem}.pdf")
        return str(markdown_path)

    def _write_pdf(self, text: str, output_path: Path) -> None:
        doc = SimpleDocTemplate(
            str(output_path),
            pagesize=A4,
            leftMargin=18 * mm,
            rightMargin=18 * mm,
            topMargin=16 * mm,
            bottomMargin=18 * mm,
            title="Narrative Report",
        )
        doc.build(
            _build_story(_parse_markdown_blocks(text)),
            onFirstPage=_draw_footer,
            onLaterPages=_draw_footer,
        )


def _draw_footer(canvas, doc) -> None:  # type: ignore[no-untyped-def]
    canvas.saveState()
    canvas.setFont("Helvetica", 9)
    canvas.setFillColor(colors.grey)
    canvas.drawRightString(A4[0] - 18 * mm, 10 * mm, f"Page {canvas.getPageNumber()}")
    canvas.restoreState()


def _build_story(blocks: list[tuple[str, str]]):
    styles = _build_styles()
    story = []
    i = 0

    while i < len(blocks):
        kind, content = blocks[i]

        if kind in HEADING_SPACING:
            story.append(Paragraph(_inline_to_reportlab(content), styles[kind]))
            story.append(Spacer(1, HEADING_SPACING[kind]))
            i += 1
            continue

        if kind in {"li", "li2"}:
            items = []
            while i < len(blocks) and blocks[i][0] in {"li", "li2"}:
                item_kind, item_text = blocks[i]
                indent = 8 if item_kind == "li" else 24
                items.append(ListItem(Paragraph(_inline_to_reportlab(item_text), styles[item_kind]), leftIndent=indent))
                i += 1
            story.append(ListFlowable(items, bulletType="bullet", leftIndent=12, bulletFontName="Helvetica"))
            story.append(Spacer(1, 8))
            continue

        story.append(Paragraph(_inline_to_reportlab(content), styles["p"]))
        story.append(Spacer(1, 8))
        i += 1

    return story


def _build_styles() -> dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    body = ParagraphStyle(
        "P",
        parent=base["BodyText"],
        fontName="Helvetica",
        fontSize=10.5,
        leading=15,
        textColor=colors.HexColor("#111827"),
    )
    return {
        "h1": ParagraphStyle("H1", parent=base["Heading1"], fontName="Helvetica-Bold", fontSize=18, leading=22),
        "h2": ParagraphStyle(
            "H2",
            parent=base["Heading2"],
            fontName="Helvetica-Bold",
            fontSize=14,
            leading=18,
            textColor=colors.HexColor("#1f2937"),
        ),
        "h3": ParagraphStyle(
            "H3",
            parent=base["Heading3"],
            fontName="Helvetica-Bold",
            fontSize=12,
            leading=15,
            textColor=colors.HexColor("#374151"),
        ),
        "p": body,
        "li": ParagraphStyle("LI", parent=body, leading=14),
        "li2": ParagraphStyle("LI2", parent=body, fontSize=9.5, leading=13, textColor=colors.HexColor("#4b5563")),
    }


def _parse_markdown_blocks(text: str) -> list[tuple[str, str]]:
    """Split report markdown into headings, paragraphs and two bullet levels."""

    blocks: list[tuple[str, str]] = []
    for raw in text.splitlines():
        line = raw.rstrip()
        stripped = line.strip()
        if not stripped:
            continue

        heading = re.match(r"^(#{1,3})\s+(.*)$", stripped)
        if heading:
            blocks.append((f"h{len(heading.group(1))}", heading.group(2).strip()))
            continue

        bullet = BULLET_PATTERN.match(line)
        if bullet:
            kind = "li2" if bullet.group(1) else "li"
            blocks.append((kind, bullet.group(2).strip()))
            continue

        blocks.append(("p", stripped))

    return blocks


def _inline_to_reportlab(text: str) -> str:
    escaped = html.escape(text)
    # **bold** -> <b>bold</b>
    return re.sub(r"\*\*([^*]+)\*\*", r"<b>\1</b>", escaped)
