from __future__ import annotations

import pytest

from writemate.config import TOP_PADDING_EXTRA_MM
from writemate.pipeline.layout import NEWLINE_PLACEHOLDER, build_layout, layout_notices, tokenize
from writemate.pipeline.templates import TEMPLATES, get_template
from writemate.errors import InvalidTemplateReference

SAMPLE = "永和九年，歲在癸丑。暮春之初，會於會稽山陰之蘭亭。"


@pytest.mark.parametrize("template", TEMPLATES, ids=lambda t: t.id)
@pytest.mark.parametrize("text", ["", "A", SAMPLE, "字" * 500])
def test_cell_count_is_fixed(template, text) -> None:
    layout = build_layout(template, text)
    assert len(layout.cells) == template.rows * template.columns
    assert layout.overflow == max(len(tokenize(text)) - template.rows * template.columns, 0)
    assert layout.char_count == len(tokenize(text))


def test_catalog_capacity_matches_max_chars() -> None:
    for template in TEMPLATES:
        assert template.rows * template.columns == template.max_chars == 204
        assert template.min_chars == 24


def test_cell_positions() -> None:
    template = get_template("article-horizontal")
    layout = build_layout(template, "")
    cell = layout.cells[13]  # row 1, column 1
    assert (cell.row, cell.column) == (1, 1)
    assert cell.x_mm == pytest.approx(15 + 15)
    assert cell.y_mm == pytest.approx(15 + TOP_PADDING_EXTRA_MM + 15)


def test_horizontal_fills_in_reading_order() -> None:
    template = get_template("article-horizontal")
    tokens = tokenize(SAMPLE)
    layout = build_layout(template, SAMPLE)
    for index, cell in enumerate(layout.cells):
        expected = tokens[index] if index < len(tokens) else ""
        assert cell.char == expected


def test_vertical_fills_rightmost_column_first() -> None:
    template = get_template("article-vertical")
    text = "一二三四五六七八九十甲乙丙丁戊己庚"
    assert len(text) == 17
    layout = build_layout(template, text)
    rightmost = [cell for cell in layout.cells if cell.column == 11]
    assert [cell.char for cell in rightmost] == list(text)
    assert all(cell.char == "" for cell in layout.cells if cell.column == 10)


def test_vertical_moves_one_column_left() -> None:
    template = get_template("article-vertical")
    layout = build_layout(template, "甲" * 17 + "乙")
    top_of_column_10 = next(c for c in layout.cells if c.row == 0 and c.column == 10)
    assert top_of_column_10.char == "乙"


def test_build_layout_is_deterministic() -> None:
    template = get_template("article-vertical")
    assert build_layout(template, SAMPLE) == build_layout(template, SAMPLE)


def test_newline_becomes_full_width_blank() -> None:
    assert tokenize("A\nB") == ["A", NEWLINE_PLACEHOLDER, "B"]
    assert tokenize("A\r\nB") == ["A", NEWLINE_PLACEHOLDER, "B"]


def test_tokenize_keeps_combining_marks_with_base() -> None:
    assert tokenize("e\u0301a") == ["e\u0301", "a"]
    assert tokenize("\U0001F469\u200d\U0001F4BB!") == ["\U0001F469\u200d\U0001F4BB", "!"]


@pytest.mark.parametrize(
    "text",
    [
        "\U0001F1F9\U0001F1FC",  # regional indicator pair (flag)
        "\u0915\u093F",  # Devanagari consonant + spacing vowel sign
        "\u1100\u1161\u11A8",  # conjoining Hangul jamo
    ],
)
def test_tokenize_keeps_grapheme_cluster_in_one_cell(text) -> None:
    assert tokenize(text) == [text]
    assert build_layout(get_template("article-horizontal"), text).char_count == 1


def test_tokenize_leading_joiner_does_not_swallow_next_char() -> None:
    assert tokenize("\u200d\u5b57\u5e16") == ["\u200d", "\u5b57", "\u5e16"]


def test_capacity_boundary() -> None:
    template = get_template("article-horizontal")
    assert build_layout(template, "字" * 204).overflow == 0
    assert build_layout(template, "字" * 205).overflow == 1
    full = build_layout(template, "字" * 205)
    assert all(cell.char == "字" for cell in full.cells)


def test_empty_text_gives_empty_grid() -> None:
    layout = build_layout(get_template("article-horizontal"), "")
    assert layout.char_count == 0
    assert all(cell.char == "" for cell in layout.cells)


def test_layout_notices() -> None:
    template = get_template("article-horizontal")
    assert any("即時生成字帖預覽" in n for n in layout_notices(template, build_layout(template, "")))
    assert any("至少需要 24 字" in n for n in layout_notices(template, build_layout(template, "短")))
    overflowing = layout_notices(template, build_layout(template, "字" * 210))
    assert any("超出 6 字" in n for n in overflowing)


def test_unknown_template_reference() -> None:
    with pytest.raises(InvalidTemplateReference):
        get_template("article-diagonal")
