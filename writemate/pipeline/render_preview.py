from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union
from xml.sax.saxutils import escape, quoteattr

import fitz  # PyMuPDF

from ..config import PAGE_HEIGHT_MM, PAGE_WIDTH_MM, ZOOM_MAX, ZOOM_MIN
from ..models import WorksheetSettings
from .geometry import sheet_plan
from .layout import Layout
from .templates import VERTICAL, TemplateDescriptor
from .typefaces import typeface_map
from .units import mm_to_px


BACKGROUND = "#fffef8"
BACKGROUND_RADIUS = 8
DASH_PATTERN = "6 6"
GUIDE_WIDTHS: Dict[str, float] = {"mid": 0.4, "diagonal": 0.3, "third": 0.35}
FALLBACK_CSS_STACK = '"Noto Serif TC", serif'


@dataclass(frozen=True)
class SceneRect:
    layer: str
    x: float
    y: float
    width: float
    height: float
    stroke: Optional[str] = None
    stroke_width: float = 0.0
    fill: str = "none"
    rx: float = 0.0
    non_scaling: bool = False


@dataclass(frozen=True)
class SceneLine:
    layer: str
    x1: float
    y1: float
    x2: float
    y2: float
    stroke: str
    stroke_width: float
    dash: Optional[str] = None


@dataclass(frozen=True)
class SceneText:
    layer: str
    x: float
    y: float
    text: str
    font_size: float
    fill: str
    font_family: Optional[str] = None
    font_weight: Optional[int] = None
    opacity: float = 1.0
    centered: bool = False
    writing_mode: str = "horizontal-tb"


SceneItem = Union[SceneRect, SceneLine, SceneText]


@dataclass
class Scene:
    """Vector drawing list in unscaled screen pixels, origin top-left."""

    width: float
    height: float
    scale: float = 1.0
    items: List[SceneItem] = field(default_factory=list)

    def layer(self, name: str) -> List[SceneItem]:
        return [item for item in self.items if item.layer == name]

    def to_svg(self) -> str:
        out: List[str] = [
            f'<svg xmlns="http://www.w3.org/2000/svg" '
            f'width="{self.width * self.scale:.3f}" height="{self.height * self.scale:.3f}" '
            f'viewBox="0 0 {self.width:.3f} {self.height:.3f}">'
        ]
        for item in self.items:
            out.append(_svg_item(item))
        out.append("</svg>")
        return "\n".join(out)


def _svg_item(item: SceneItem) -> str:
    if isinstance(item, SceneRect):
        stroke = f' stroke="{item.stroke}" stroke-width="{item.stroke_width}"' if item.stroke else ""
        extra = ' vector-effect="non-scaling-stroke"' if item.non_scaling else ""
        rx = f' rx="{item.rx}"' if item.rx else ""
        return (
            f'<rect x="{item.x:.3f}" y="{item.y:.3f}" width="{item.width:.3f}" height="{item.height:.3f}"'
            f'{rx} fill="{item.fill}"{stroke}{extra} />'
        )
    if isinstance(item, SceneLine):
        dash = f' stroke-dasharray="{item.dash}"' if item.dash else ""
        return (
            f'<line x1="{item.x1:.3f}" y1="{item.y1:.3f}" x2="{item.x2:.3f}" y2="{item.y2:.3f}" '
            f'stroke="{item.stroke}" stroke-width="{item.stroke_width}"{dash} vector-effect="non-scaling-stroke" />'
        )
    attrs = [f'x="{item.x:.3f}"', f'y="{item.y:.3f}"', f'font-size="{item.font_size}"', f'fill="{item.fill}"']
    if item.font_family:
        attrs.append(f"font-family={quoteattr(item.font_family)}")
    if item.font_weight:
        attrs.append(f'font-weight="{item.font_weight}"')
    if item.opacity < 1.0:
        attrs.append(f'opacity="{item.opacity}"')
    if item.centered:
        attrs.append('text-anchor="middle" dominant-baseline="middle"')
    if item.writing_mode != "horizontal-tb":
        attrs.append(f'writing-mode="{item.writing_mode}"')
    return f"<text {' '.join(attrs)}>{escape(item.text)}</text>"


def render_preview(
    settings: WorksheetSettings,
    template: TemplateDescriptor,
    layout: Layout,
    zoom_percent: float = 100,
) -> Scene:
    if not ZOOM_MIN <= zoom_percent <= ZOOM_MAX:
        raise ValueError(f"zoom must be between {ZOOM_MIN} and {ZOOM_MAX}, got {zoom_percent}")

    page_w = mm_to_px(PAGE_WIDTH_MM)
    page_h = mm_to_px(PAGE_HEIGHT_MM)
    scene = Scene(width=page_w, height=page_h, scale=zoom_percent / 100.0)
    plan = sheet_plan(settings, template, layout)
    grid = settings.grid_color

    scene.items.append(SceneRect("background", 0, 0, page_w, page_h, fill=BACKGROUND, rx=BACKGROUND_RADIUS))

    for label in plan.header:
        scene.items.append(
            SceneText("header", mm_to_px(label.x), mm_to_px(label.y), label.text, label.size, grid, font_weight=700)
        )

    for box in plan.borders:
        scene.items.append(
            SceneRect(
                "border",
                mm_to_px(box.x),
                mm_to_px(box.y),
                mm_to_px(box.width),
                mm_to_px(box.height),
                stroke=grid,
                stroke_width=box.stroke_width,
            )
        )

    for box in plan.cells:
        scene.items.append(
            SceneRect(
                "cell",
                mm_to_px(box.x),
                mm_to_px(box.y),
                mm_to_px(box.width),
                mm_to_px(box.height),
                stroke=grid,
                stroke_width=box.stroke_width,
                non_scaling=True,
            )
        )

    for guide in plan.guides:
        scene.items.append(
            SceneLine(
                "guide",
                mm_to_px(guide.x1),
                mm_to_px(guide.y1),
                mm_to_px(guide.x2),
                mm_to_px(guide.y2),
                stroke=grid,
                stroke_width=GUIDE_WIDTHS[guide.kind],
                dash=DASH_PATTERN,
            )
        )

    face = typeface_map().get(settings.font_id)
    family = face.css_stack if face else FALLBACK_CSS_STACK
    writing_mode = "vertical-rl" if template.orientation == VERTICAL else "horizontal-tb"
    for glyph in plan.glyphs:
        scene.items.append(
            SceneText(
                "glyph",
                mm_to_px(glyph.cx),
                mm_to_px(glyph.cy),
                glyph.char,
                float(settings.font_size),
                settings.text_color,
                font_family=family,
                opacity=settings.effective_opacity,
                centered=True,
                writing_mode=writing_mode,
            )
        )
    return scene


def rasterize_preview(scene: Scene) -> bytes:
    """Render the scene to PNG bytes at its zoom scale."""
    with fitz.open(stream=scene.to_svg().encode("utf-8"), filetype="svg") as doc:
        page = doc.load_page(0)
        pix = page.get_pixmap(alpha=False)
        return pix.tobytes("png")
