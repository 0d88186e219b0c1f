from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import httpx
from reportlab.lib import colors
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas

from ..config import PAGE_HEIGHT_MM, PAGE_WIDTH_MM, STANDARD_FONT
from ..models import WorksheetSettings
from .fonts import load_typeface
from .geometry import sheet_plan
from .layout import Layout
from .templates import TemplateDescriptor
from .typefaces import Typeface, typeface_map
from .units import mm_to_pt, px_to_mm


logger = logging.getLogger(__name__)

DASH_PATTERN = [3, 3]
GUIDE_WIDTHS: Dict[str, float] = {"mid": 0.4, "diagonal": 0.25, "third": 0.35}
# baseline drop below the cell center, as a fraction of the font size
BASELINE_SHIFT = 1 / 3


def _hex(value: str, default=colors.black) -> colors.Color:
    if not value:
        return default
    try:
        return colors.HexColor("#" + str(value).lstrip("#"))
    except ValueError:
        return default


def to_pdf_y(value_from_top_mm: float) -> float:
    """PDF origin is bottom-left; flip before converting to points."""
    return mm_to_pt(PAGE_HEIGHT_MM - value_from_top_mm)


@dataclass(frozen=True)
class PdfRect:
    layer: str
    x: float
    y: float            # bottom edge
    width: float
    height: float
    line_width: float


@dataclass(frozen=True)
class PdfLine:
    x1: float
    y1: float
    x2: float
    y2: float
    line_width: float


@dataclass(frozen=True)
class PdfText:
    layer: str
    x: float            # draw origin (left end of the baseline)
    y: float
    text: str
    size: float
    anchor_x: float
    anchor_y: float
    opacity: float = 1.0


@dataclass
class DocumentPlan:
    """Point-space drawing operations for the single worksheet page."""

    width: float
    height: float
    font_name: str
    labels: List[PdfText] = field(default_factory=list)
    rects: List[PdfRect] = field(default_factory=list)
    guides: List[PdfLine] = field(default_factory=list)
    glyphs: List[PdfText] = field(default_factory=list)


def document_plan(
    settings: WorksheetSettings,
    template: TemplateDescriptor,
    layout: Layout,
    font_name: str = STANDARD_FONT,
) -> DocumentPlan:
    plan = sheet_plan(settings, template, layout)
    doc = DocumentPlan(width=mm_to_pt(PAGE_WIDTH_MM), height=mm_to_pt(PAGE_HEIGHT_MM), font_name=font_name)

    for label in plan.header:
        x = mm_to_pt(label.x)
        y = to_pdf_y(label.y)
        doc.labels.append(PdfText("header", x, y, label.text, label.size, anchor_x=x, anchor_y=y))

    for layer, boxes in (("border", plan.borders), ("cell", plan.cells)):
        for box in boxes:
            doc.rects.append(
                PdfRect(
                    layer,
                    mm_to_pt(box.x),
                    to_pdf_y(box.y + box.height),
                    mm_to_pt(box.width),
                    mm_to_pt(box.height),
                    box.stroke_width,
                )
            )

    for guide in plan.guides:
        doc.guides.append(
            PdfLine(
                mm_to_pt(guide.x1),
                to_pdf_y(guide.y1),
                mm_to_pt(guide.x2),
                to_pdf_y(guide.y2),
                GUIDE_WIDTHS[guide.kind],
            )
        )

    size = mm_to_pt(px_to_mm(float(settings.font_size)))
    opacity = settings.effective_opacity
    for glyph in plan.glyphs:
        cx = mm_to_pt(glyph.cx)
        cy = to_pdf_y(glyph.cy)
        width = pdfmetrics.stringWidth(glyph.char, font_name, size)
        doc.glyphs.append(
            PdfText(
                "glyph",
                cx - width / 2,
                cy - size * BASELINE_SHIFT,
                glyph.char,
                size,
                anchor_x=cx,
                anchor_y=cy,
                opacity=opacity,
            )
        )
    return doc


def _draw_labels(canv: canvas.Canvas, doc: DocumentPlan, color: colors.Color) -> None:
    canv.setFillColor(color)
    for label in doc.labels:
        canv.setFont(doc.font_name, label.size)
        canv.drawString(label.x, label.y, label.text)


def _draw_rects(canv: canvas.Canvas, doc: DocumentPlan, color: colors.Color) -> None:
    canv.setStrokeColor(color)
    for rect in doc.rects:
        canv.setLineWidth(rect.line_width)
        canv.rect(rect.x, rect.y, rect.width, rect.height, stroke=1, fill=0)


def _draw_guides(canv: canvas.Canvas, doc: DocumentPlan, color: colors.Color) -> None:
    canv.saveState()
    canv.setStrokeColor(color)
    canv.setDash(DASH_PATTERN, 0)
    for line in doc.guides:
        canv.setLineWidth(line.line_width)
        canv.line(line.x1, line.y1, line.x2, line.y2)
    canv.restoreState()


def _draw_glyphs(canv: canvas.Canvas, doc: DocumentPlan, color: colors.Color) -> None:
    if not doc.glyphs:
        return
    canv.saveState()
    canv.setFillColor(color)
    for glyph in doc.glyphs:
        canv.setFillAlpha(glyph.opacity)
        canv.setFont(doc.font_name, glyph.size)
        canv.drawString(glyph.x, glyph.y, glyph.text)
    canv.restoreState()


def paint_document(doc: DocumentPlan, settings: WorksheetSettings) -> bytes:
    buffer = io.BytesIO()
    canv = canvas.Canvas(buffer, pagesize=(doc.width, doc.height))
    canv.setTitle("WriteMate worksheet")
    grid = _hex(settings.grid_color)

    _draw_labels(canv, doc, grid)
    _draw_rects(canv, doc, grid)
    _draw_guides(canv, doc, grid)
    _draw_glyphs(canv, doc, _hex(settings.text_color))

    canv.showPage()
    canv.save()
    return buffer.getvalue()


async def render_document(
    settings: WorksheetSettings,
    template: TemplateDescriptor,
    layout: Layout,
    typeface: Optional[Typeface] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> bytes:
    """
    Build the worksheet PDF in memory.

    The only suspension point is the typeface download; AssetFetchFailed
    propagates to the caller and no partial document is produced.
    """
    if typeface is None:
        typeface = typeface_map().get(settings.font_id)
    font_name = await load_typeface(typeface, client=client)
    doc = document_plan(settings, template, layout, font_name=font_name)
    data = paint_document(doc, settings)
    logger.info(
        "Rendered %s worksheet: %d glyphs, font %s, %d bytes",
        template.id,
        len(doc.glyphs),
        font_name,
        len(data),
    )
    return data
