from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from ..errors import InvalidTemplateReference


HORIZONTAL = "horizontal"
VERTICAL = "vertical"

CELL_SIZE_MM = 15.0
PADDING_MM = 15.0


@dataclass(frozen=True)
class TemplateDescriptor:
    id: str
    label: str
    description: str
    rows: int
    columns: int
    orientation: str                 # horizontal | vertical
    max_chars: int
    cell_size_mm: float = CELL_SIZE_MM
    padding_mm: float = PADDING_MM
    min_chars: Optional[int] = None

    @property
    def capacity(self) -> int:
        return self.rows * self.columns

    @property
    def grid_width_mm(self) -> float:
        return self.columns * self.cell_size_mm

    @property
    def grid_height_mm(self) -> float:
        return self.rows * self.cell_size_mm


TEMPLATES: List[TemplateDescriptor] = [
    TemplateDescriptor(
        id="article-horizontal",
        label="文章 · 橫式",
        description="204 格，左至右書寫",
        rows=17,
        columns=12,
        orientation=HORIZONTAL,
        min_chars=24,
        max_chars=204,
    ),
    TemplateDescriptor(
        id="article-vertical",
        label="文章 · 直式",
        description="204 格，右至左直排",
        rows=17,
        columns=12,
        orientation=VERTICAL,
        min_chars=24,
        max_chars=204,
    ),
]

TEMPLATE_MAP: Dict[str, TemplateDescriptor] = {t.id: t for t in TEMPLATES}

DEFAULT_TEMPLATE_ID = TEMPLATES[0].id


def get_template(template_id: str) -> TemplateDescriptor:
    try:
        return TEMPLATE_MAP[template_id]
    except KeyError:
        raise InvalidTemplateReference(template_id) from None
