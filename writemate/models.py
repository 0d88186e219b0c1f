from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel, Session, create_engine

from . import config


GRID_TYPES = ("tian", "mi", "nine")

# dataclass field -> persisted key
_SETTINGS_KEYS = {
    "template_id": "templateId",
    "text": "text",
    "font_id": "fontId",
    "font_size": "fontSize",
    "text_color": "textColor",
    "grid_color": "gridColor",
    "grid_type": "gridType",
    "show_reference": "showReference",
    "reference_opacity": "referenceOpacity",
}


@dataclass(frozen=True)
class WorksheetSettings:
    template_id: str = config.DEFAULT_SETTINGS["templateId"]
    text: str = config.DEFAULT_SETTINGS["text"]
    font_id: str = config.DEFAULT_SETTINGS["fontId"]
    font_size: float = config.DEFAULT_SETTINGS["fontSize"]
    text_color: str = config.DEFAULT_SETTINGS["textColor"]
    grid_color: str = config.DEFAULT_SETTINGS["gridColor"]
    grid_type: str = config.DEFAULT_SETTINGS["gridType"]
    show_reference: bool = config.DEFAULT_SETTINGS["showReference"]
    reference_opacity: float = config.DEFAULT_SETTINGS["referenceOpacity"]

    @property
    def effective_opacity(self) -> float:
        return float(self.reference_opacity) if self.show_reference else 0.0

    def with_changes(self, **changes) -> "WorksheetSettings":
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {_SETTINGS_KEYS[f.name]: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: dict) -> "WorksheetSettings":
        known = {}
        for name, key in _SETTINGS_KEYS.items():
            if key in data:
                known[name] = data[key]
        return cls(**known)


@dataclass(frozen=True)
class SettingsPreset:
    id: str
    label: str
    saved_at: int                       # epoch ms
    snapshot: WorksheetSettings = field(default_factory=WorksheetSettings)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "savedAt": self.saved_at,
            "snapshot": self.snapshot.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SettingsPreset":
        return cls(
            id=str(data["id"]),
            label=str(data.get("label", "")),
            saved_at=int(data.get("savedAt", 0)),
            snapshot=WorksheetSettings.from_dict(data.get("snapshot") or {}),
        )


class StoredState(SQLModel, table=True):
    key: str = Field(primary_key=True)
    payload: str
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


engine = create_engine(f"sqlite:///{config.DB_PATH}")


def reset_engine() -> None:
    global engine
    engine = create_engine(f"sqlite:///{config.DB_PATH}")


def init_db() -> None:
    config.OUT_DIR.mkdir(parents=True, exist_ok=True)
    SQLModel.metadata.create_all(engine)


def get_session() -> Session:
    return Session(engine, expire_on_commit=False)


def get_stored_state(key: str) -> Optional[StoredState]:
    init_db()
    with get_session() as session:
        return session.get(StoredState, key)
