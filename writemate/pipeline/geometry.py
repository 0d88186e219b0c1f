"""
Millimeter-space drawing plan for one worksheet page.

Both renderers consume the same plan and only differ in the final transform
(px with y pointing down for the preview, pt with y pointing up for the PDF).
All coordinates here are millimeters measured from the top-left page corner.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

from ..config import (
    BORDER_GAP_MM,
    DATE_LABEL_INSET_MM,
    HEADER_GAP_MM,
    HEADER_LABEL_SIZE,
    HEADER_LABELS,
    TOP_PADDING_EXTRA_MM,
)
from ..models import WorksheetSettings
from .layout import Layout
from .templates import TemplateDescriptor


HAIRLINE = 0.8
HEAVY_LINE = 2.5
CELL_LINE = 0.8


@dataclass(frozen=True)
class Label:
    x: float
    y: float            # baseline
    text: str
    size: float


@dataclass(frozen=True)
class Box:
    x: float
    y: float            # top edge
    width: float
    height: float
    stroke_width: float


@dataclass(frozen=True)
class GuideLine:
    x1: float
    y1: float
    x2: float
    y2: float
    kind: str           # mid | diagonal | third


@dataclass(frozen=True)
class GlyphAnchor:
    cx: float
    cy: float
    char: str
    row: int
    column: int


@dataclass
class SheetPlan:
    header: List[Label] = field(default_factory=list)
    borders: List[Box] = field(default_factory=list)
    cells: List[Box] = field(default_factory=list)
    guides: List[GuideLine] = field(default_factory=list)
    glyphs: List[GlyphAnchor] = field(default_factory=list)


def grid_origin(template: TemplateDescriptor) -> Tuple[float, float]:
    return template.padding_mm, template.padding_mm + TOP_PADDING_EXTRA_MM


def header_labels(template: TemplateDescriptor) -> List[Label]:
    x0, y0 = grid_origin(template)
    baseline = y0 - HEADER_GAP_MM
    name_label, date_label = HEADER_LABELS
    return [
        Label(x0 + 2, baseline, name_label, HEADER_LABEL_SIZE),
        Label(x0 + template.grid_width_mm - DATE_LABEL_INSET_MM, baseline, date_label, HEADER_LABEL_SIZE),
    ]


def double_border(template: TemplateDescriptor) -> List[Box]:
    x0, y0 = grid_origin(template)
    out: List[Box] = []
    # hairline on the grid edge, heavy line grown outward by the gap
    for offset, width in ((0.0, HAIRLINE), (-BORDER_GAP_MM, HEAVY_LINE)):
        out.append(
            Box(
                x=x0 + offset,
                y=y0 + offset,
                width=template.grid_width_mm - offset * 2,
                height=template.grid_height_mm - offset * 2,
                stroke_width=width,
            )
        )
    return out


def cell_guides(grid_type: str, left: float, top: float, size: float) -> List[GuideLine]:
    right = left + size
    bottom = top + size
    if grid_type == "tian":
        return [
            GuideLine(left + size / 2, top, left + size / 2, bottom, "mid"),
            GuideLine(left, top + size / 2, right, top + size / 2, "mid"),
        ]
    if grid_type == "mi":
        return cell_guides("tian", left, top, size) + [
            GuideLine(left, top, right, bottom, "diagonal"),
            GuideLine(left, bottom, right, top, "diagonal"),
        ]
    if grid_type == "nine":
        return [
            GuideLine(left + size / 3, top, left + size / 3, bottom, "third"),
            GuideLine(left + 2 * size / 3, top, left + 2 * size / 3, bottom, "third"),
            GuideLine(left, top + size / 3, right, top + size / 3, "third"),
            GuideLine(left, top + 2 * size / 3, right, top + 2 * size / 3, "third"),
        ]
    return []


def sheet_plan(settings: WorksheetSettings, template: TemplateDescriptor, layout: Layout) -> SheetPlan:
    size = template.cell_size_mm
    plan = SheetPlan(header=header_labels(template), borders=double_border(template))
    draw_glyphs = settings.effective_opacity > 0

    for cell in layout.cells:
        plan.cells.append(Box(cell.x_mm, cell.y_mm, size, size, CELL_LINE))
        plan.guides.extend(cell_guides(settings.grid_type, cell.x_mm, cell.y_mm, size))
        if draw_glyphs and not cell.is_blank:
            plan.glyphs.append(
                GlyphAnchor(
                    cx=cell.x_mm + size / 2,
                    cy=cell.y_mm + size / 2,
                    char=cell.char,
                    row=cell.row,
                    column=cell.column,
                )
            )
    return plan
