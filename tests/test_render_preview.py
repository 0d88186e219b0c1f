from __future__ import annotations

import pytest

from writemate.models import WorksheetSettings
from writemate.pipeline.layout import build_layout
from writemate.pipeline.render_preview import SceneLine, rasterize_preview, render_preview
from writemate.pipeline.templates import get_template
from writemate.pipeline.units import mm_to_px


def _scene(zoom: float = 100, **changes):
    settings = WorksheetSettings(font_id="cwtex-kai").with_changes(**changes)
    template = get_template(settings.template_id)
    layout = build_layout(template, settings.text)
    return render_preview(settings, template, layout, zoom)


def test_page_size_and_layers() -> None:
    scene = _scene()
    assert scene.width == pytest.approx(mm_to_px(210))
    assert scene.height == pytest.approx(mm_to_px(297))
    assert len(scene.layer("background")) == 1
    assert [item.text for item in scene.layer("header")] == ["姓名：", "日期："]
    assert [item.stroke_width for item in scene.layer("border")] == [0.8, 2.5]
    assert len(scene.layer("cell")) == 204


@pytest.mark.parametrize("grid_type,per_cell", [("tian", 2), ("mi", 4), ("nine", 4)])
def test_guide_lines_per_variant(grid_type: str, per_cell: int) -> None:
    guides = _scene(grid_type=grid_type).layer("guide")
    assert len(guides) == 204 * per_cell
    assert all(isinstance(line, SceneLine) and line.dash == "6 6" for line in guides)


def test_zoom_only_changes_scale() -> None:
    small = _scene(60)
    large = _scene(140)
    assert small.scale == pytest.approx(0.6)
    assert large.scale == pytest.approx(1.4)
    assert small.items == large.items


@pytest.mark.parametrize("zoom", [59, 141])
def test_zoom_out_of_range(zoom: int) -> None:
    with pytest.raises(ValueError):
        _scene(zoom)


def test_glyphs_follow_reference_toggle() -> None:
    shown = _scene(text="永和\n九")
    assert [item.text for item in shown.layer("glyph")] == ["永", "和", "九"]
    assert all(item.opacity == pytest.approx(0.35) for item in shown.layer("glyph"))
    assert _scene(text="永和", show_reference=False).layer("glyph") == []


def test_glyph_centered_in_cell() -> None:
    scene = _scene(text="永")
    glyph = scene.layer("glyph")[0]
    cell = scene.layer("cell")[0]
    assert glyph.x == pytest.approx(cell.x + cell.width / 2)
    assert glyph.y == pytest.approx(cell.y + cell.height / 2)
    assert glyph.centered is True


def test_svg_output() -> None:
    horizontal = _scene(90, text="永<和>").to_svg()
    assert horizontal.startswith("<svg")
    assert "永&lt;和&gt;" not in horizontal  # one char per cell
    assert "&lt;" in horizontal
    assert 'writing-mode="vertical-rl"' not in horizontal
    vertical = _scene(text="永", template_id="article-vertical").to_svg()
    assert 'writing-mode="vertical-rl"' in vertical
    assert "cwTeXKai" in vertical


class DummyPixmap:
    def tobytes(self, output: str = "png") -> bytes:
        return b"\x89PNG" + output.encode("ascii")


class DummyPage:
    def get_pixmap(self, matrix=None, alpha=True) -> DummyPixmap:  # noqa: ARG002 - signature matches fitz
        return DummyPixmap()


class DummyDoc:
    def __init__(self) -> None:
        self.closed = False

    def __enter__(self) -> "DummyDoc":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001 - test helper
        self.closed = True

    def load_page(self, index: int) -> DummyPage:  # noqa: ARG002 - test helper
        return DummyPage()


def test_rasterize_preview_closes_document(monkeypatch) -> None:
    doc = DummyDoc()
    seen = {}

    def fake_open(stream=None, filetype=None) -> DummyDoc:
        seen["filetype"] = filetype
        seen["svg"] = stream.decode("utf-8")
        return doc

    monkeypatch.setattr("writemate.pipeline.render_preview.fitz.open", fake_open)
    png = rasterize_preview(_scene(120))
    assert png.startswith(b"\x89PNG")
    assert doc.closed is True
    assert seen["filetype"] == "svg"
    assert 'viewBox="0 0 ' in seen["svg"]
