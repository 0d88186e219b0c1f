from __future__ import annotations

import time
from pathlib import Path
from typing import Optional

from . import config
from .config import EXPORT_PREFIX


ARTIFACT_SUFFIXES = {
    "pdf": ".pdf",
    "svg": ".svg",
    "png": ".png",
}


def export_dir(base_dir: Path | None = None) -> Path:
    path = base_dir or config.OUT_DIR
    path.mkdir(parents=True, exist_ok=True)
    return path


def export_filename(now_ms: Optional[int] = None, artifact_type: str = "pdf") -> str:
    stamp = int(time.time() * 1000) if now_ms is None else int(now_ms)
    return f"{EXPORT_PREFIX}-{stamp}{ARTIFACT_SUFFIXES[artifact_type]}"


def write_export(
    data: bytes,
    base_dir: Path | None = None,
    artifact_type: str = "pdf",
    now_ms: Optional[int] = None,
) -> Path:
    path = export_dir(base_dir) / export_filename(now_ms, artifact_type)
    path.write_bytes(data)
    return path
