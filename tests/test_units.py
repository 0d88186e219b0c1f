from __future__ import annotations

import pytest

from writemate.pipeline.units import mm_to_pt, mm_to_px, pt_to_mm, px_to_mm


def test_conversion_constants() -> None:
    assert mm_to_px(1) == pytest.approx(3.7795, abs=1e-4)
    assert mm_to_pt(1) == pytest.approx(2.8346, abs=1e-4)
    assert mm_to_pt(210) == pytest.approx(595.2756, abs=1e-3)
    assert mm_to_px(25.4) == pytest.approx(96.0)


@pytest.mark.parametrize("value", [0.0, 0.5, 15.0, 123.456, 210.0, 297.0, 300.0])
def test_round_trip(value: float) -> None:
    assert px_to_mm(mm_to_px(value)) == pytest.approx(value)
    assert pt_to_mm(mm_to_pt(value)) == pytest.approx(value)
