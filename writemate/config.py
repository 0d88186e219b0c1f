from __future__ import annotations

from pathlib import Path
from typing import List
import json


BASE_DIR = Path(__file__).resolve().parents[1]
OUT_DIR = BASE_DIR / "out"
DB_PATH = OUT_DIR / "writemate.db"
TYPEFACE_CATALOG_PATH = Path(__file__).resolve().parent / "assets" / "typefaces.json"

PAGE_WIDTH_MM = 210.0
PAGE_HEIGHT_MM = 297.0

# Room above the grid for the name/date header line.
TOP_PADDING_EXTRA_MM = 6.0
HEADER_GAP_MM = 6.0
BORDER_GAP_MM = 2.0

HEADER_LABELS: List[str] = ["姓名：", "日期："]
HEADER_LABEL_SIZE = 14.0
DATE_LABEL_INSET_MM = 62.0

STANDARD_FONT = "Helvetica"
FONT_FETCH_TIMEOUT = 30.0

STORAGE_KEY = "write-mate-settings"
HISTORY_LIMIT = 3
EXPORT_PREFIX = "WriteMate"

ZOOM_MIN = 60
ZOOM_MAX = 140
ZOOM_DEFAULT = 90

OPACITY_MIN = 0.1
OPACITY_MAX = 0.9

SAMPLE_TEXT = "永和九年，歲在癸丑。暮春之初，會於會稽山陰之蘭亭。"

DEFAULT_SETTINGS = {
    "templateId": "article-horizontal",
    "text": SAMPLE_TEXT,
    "fontId": "chenyuluoyan-thin",
    "fontSize": 46,
    "textColor": "#1b1b1f",
    "gridColor": "#5b6045",
    "gridType": "tian",
    "showReference": True,
    "referenceOpacity": 0.35,
}


def load_typeface_catalog() -> list[dict]:
    with TYPEFACE_CATALOG_PATH.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def set_out_dir(path: Path) -> None:
    global OUT_DIR, DB_PATH
    OUT_DIR = path
    DB_PATH = OUT_DIR / "writemate.db"
