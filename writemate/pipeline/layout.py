from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

import regex

from ..config import TOP_PADDING_EXTRA_MM
from .templates import VERTICAL, TemplateDescriptor


NEWLINE_PLACEHOLDER = "\u3000"  # full-width blank, keeps the newline in its own cell
GRAPHEME = regex.compile(r"\X")


@dataclass
class Cell:
    row: int
    column: int
    x_mm: float
    y_mm: float
    char: str = ""

    @property
    def is_blank(self) -> bool:
        return not self.char.strip()


@dataclass
class Layout:
    cells: List[Cell] = field(default_factory=list)
    overflow: int = 0
    char_count: int = 0
    max_chars: int = 0
    min_chars: Optional[int] = None


def tokenize(text: str) -> List[str]:
    """
    텍스트를 칸 단위 토큰(사용자가 인식하는 글자, 확장 grapheme cluster)으로 나눈다.
    줄바꿈은 전각 공백 한 칸으로 바꾼다 (줄바꿈도 칸 하나를 차지).
    """
    clusters = GRAPHEME.findall((text or "").replace("\r", ""))
    return [NEWLINE_PLACEHOLDER if cluster == "\n" else cluster for cluster in clusters]


def _allocate_cells(template: TemplateDescriptor) -> List[Cell]:
    top = template.padding_mm + TOP_PADDING_EXTRA_MM
    cells: List[Cell] = []
    for row in range(template.rows):
        for column in range(template.columns):
            cells.append(
                Cell(
                    row=row,
                    column=column,
                    x_mm=template.padding_mm + column * template.cell_size_mm,
                    y_mm=top + row * template.cell_size_mm,
                )
            )
    return cells


def _fill_order(template: TemplateDescriptor) -> List[int]:
    """Cell indices in reading order."""
    if template.orientation == VERTICAL:
        # 오른쪽 열부터, 열 안에서는 위에서 아래로
        return [
            row * template.columns + column
            for column in range(template.columns - 1, -1, -1)
            for row in range(template.rows)
        ]
    return list(range(template.rows * template.columns))


def build_layout(template: TemplateDescriptor, text: str) -> Layout:
    tokens = tokenize(text)
    cells = _allocate_cells(template)

    for pointer, index in enumerate(_fill_order(template)):
        if pointer >= len(tokens):
            break
        cells[index].char = tokens[pointer]

    return Layout(
        cells=cells,
        overflow=max(len(tokens) - len(cells), 0),
        char_count=len(tokens),
        max_chars=template.max_chars,
        min_chars=template.min_chars,
    )


def layout_notices(template: TemplateDescriptor, layout: Layout) -> List[str]:
    notices: List[str] = []
    if layout.char_count == 0:
        notices.append("輸入任何文字即可即時生成字帖預覽。")
        return notices
    if template.min_chars and layout.char_count < template.min_chars:
        notices.append(f"至少需要 {template.min_chars} 字（目前 {layout.char_count} 字）")
    if layout.overflow > 0:
        notices.append(f"超出 {layout.overflow} 字，匯出時僅包含第一頁。")
    return notices
