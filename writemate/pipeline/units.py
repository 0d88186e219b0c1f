from __future__ import annotations

from reportlab.lib.units import inch, mm

# CSS reference pixel: 96 per inch.
MM_TO_PX = 96.0 / 25.4
PX_TO_MM = 25.4 / 96.0
# reportlab point unit: 72 per inch.
MM_TO_PT = mm
PT_TO_MM = 25.4 / inch


def mm_to_px(value: float) -> float:
    return value * MM_TO_PX


def px_to_mm(value: float) -> float:
    return value * PX_TO_MM


def mm_to_pt(value: float) -> float:
    return value * MM_TO_PT


def pt_to_mm(value: float) -> float:
    return value * PT_TO_MM
