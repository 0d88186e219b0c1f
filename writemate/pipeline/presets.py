from __future__ import annotations

import json
import logging
import re
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from .. import config
from ..config import HISTORY_LIMIT, OPACITY_MAX, OPACITY_MIN, STORAGE_KEY
from ..models import (
    GRID_TYPES,
    SettingsPreset,
    StoredState,
    WorksheetSettings,
    get_session,
    get_stored_state,
    init_db,
)
from .templates import TEMPLATE_MAP
from .typefaces import typeface_map


logger = logging.getLogger(__name__)

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def validate_settings(settings: WorksheetSettings) -> List[str]:
    errors: List[str] = []
    if settings.template_id not in TEMPLATE_MAP:
        errors.append(f"Unknown template: {settings.template_id}")
    if settings.font_id not in typeface_map():
        errors.append(f"Unknown typeface: {settings.font_id}")
    if settings.grid_type not in GRID_TYPES:
        errors.append(f"Unknown grid type: {settings.grid_type}")
    if not OPACITY_MIN <= float(settings.reference_opacity) <= OPACITY_MAX:
        errors.append(f"Reference opacity must be between {OPACITY_MIN} and {OPACITY_MAX}")
    if float(settings.font_size) <= 0:
        errors.append("Font size must be positive")
    for name, value in (("text color", settings.text_color), ("grid color", settings.grid_color)):
        if not _HEX_COLOR.match(str(value)):
            errors.append(f"Invalid {name}: {value}")
    return errors


class SettingsRepository:
    """Keeps the whole store as one JSON payload under a fixed key."""

    def __init__(self, key: str = STORAGE_KEY) -> None:
        self.key = key

    def load(self) -> Optional[dict]:
        row = get_stored_state(self.key)
        if row is None:
            return None
        try:
            return json.loads(row.payload)
        except json.JSONDecodeError:
            logger.warning("Stored settings under %s are not valid JSON, ignoring", self.key)
            return None

    def save(self, payload: dict) -> None:
        init_db()
        with get_session() as session:
            row = session.get(StoredState, self.key)
            if row is None:
                row = StoredState(key=self.key, payload="")
            row.payload = json.dumps(payload, ensure_ascii=False)
            row.updated_at = datetime.now(timezone.utc)
            session.add(row)
            session.commit()


class WorksheetStore:
    """Current settings plus a short history of saved presets (newest first)."""

    def __init__(self, repository: Optional[SettingsRepository] = None) -> None:
        self.repository = repository
        self.settings = WorksheetSettings()
        self.history: List[SettingsPreset] = []
        if repository is not None:
            self._restore(repository.load())

    def _restore(self, payload: Optional[dict]) -> None:
        if not payload:
            return
        self.settings = WorksheetSettings.from_dict(payload.get("settings") or {})
        self.history = [SettingsPreset.from_dict(raw) for raw in payload.get("history") or []][:HISTORY_LIMIT]

    def to_dict(self) -> dict:
        return {
            "settings": self.settings.to_dict(),
            "history": [preset.to_dict() for preset in self.history],
        }

    def _flush(self) -> None:
        if self.repository is not None:
            self.repository.save(self.to_dict())

    def set_template(self, template_id: str) -> None:
        self.update_settings(template_id=template_id)

    def update_settings(self, **changes) -> WorksheetSettings:
        self.settings = self.settings.with_changes(**changes)
        self._flush()
        return self.settings

    def save_preset(self, now: Optional[datetime] = None) -> SettingsPreset:
        moment = now or datetime.now()
        preset = SettingsPreset(
            id=uuid.uuid4().hex,
            label=f"設定 {moment:%H:%M}",
            saved_at=int(moment.timestamp() * 1000),
            snapshot=self.settings,
        )
        self.history = [preset] + self.history[: HISTORY_LIMIT - 1]
        self._flush()
        return preset

    def apply_preset(self, preset_id: str) -> bool:
        for preset in self.history:
            if preset.id == preset_id:
                self.settings = preset.snapshot
                self._flush()
                return True
        return False

    def clear_presets(self) -> None:
        self.history = []
        self._flush()


def open_store() -> WorksheetStore:
    logger.debug("Opening settings store at %s", config.DB_PATH)
    return WorksheetStore(SettingsRepository())
