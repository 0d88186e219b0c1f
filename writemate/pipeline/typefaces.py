from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, List, Optional

from ..config import load_typeface_catalog


@dataclass(frozen=True)
class Typeface:
    id: str
    label: str
    css_stack: str
    description: str = ""
    sample: str = ""
    pdf_source: Optional[str] = None    # TTF url, embedded on export


@lru_cache(maxsize=1)
def typeface_catalog() -> List[Typeface]:
    out: List[Typeface] = []
    for raw in load_typeface_catalog():
        out.append(
            Typeface(
                id=str(raw["id"]),
                label=str(raw.get("label", raw["id"])),
                css_stack=str(raw.get("css_stack", "serif")),
                description=str(raw.get("description", "")),
                sample=str(raw.get("sample", "")),
                pdf_source=raw.get("pdf_source") or None,
            )
        )
    return out


def typeface_map() -> Dict[str, Typeface]:
    return {face.id: face for face in typeface_catalog()}
