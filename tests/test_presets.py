from __future__ import annotations

from datetime import datetime
from pathlib import Path

from writemate import config
from writemate.models import WorksheetSettings, get_stored_state, reset_engine
from writemate.pipeline.presets import SettingsRepository, WorksheetStore, validate_settings


def _use_tmp_db(path: Path) -> None:
    config.set_out_dir(path)
    reset_engine()


def test_history_keeps_three_newest() -> None:
    store = WorksheetStore()
    ids = []
    for minute in range(5):
        store.update_settings(font_size=40 + minute)
        ids.append(store.save_preset(now=datetime(2024, 5, 1, 9, minute)).id)
    assert [preset.id for preset in store.history] == list(reversed(ids))[:3]
    assert store.history[0].label == "設定 09:04"
    assert store.history[0].snapshot.font_size == 44


def test_apply_and_clear_presets() -> None:
    store = WorksheetStore()
    store.update_settings(grid_type="mi")
    preset = store.save_preset()
    store.update_settings(grid_type="nine", text="練字")
    assert store.apply_preset(preset.id) is True
    assert store.settings.grid_type == "mi"
    assert store.apply_preset("missing") is False
    store.clear_presets()
    assert store.history == []


def test_store_persists_every_mutation(tmp_path: Path) -> None:
    _use_tmp_db(tmp_path)
    store = WorksheetStore(SettingsRepository())
    store.set_template("article-vertical")
    store.update_settings(text="暮春之初")
    store.save_preset(now=datetime(2024, 5, 1, 10, 30))

    reloaded = WorksheetStore(SettingsRepository())
    assert reloaded.settings.template_id == "article-vertical"
    assert reloaded.settings.text == "暮春之初"
    assert len(reloaded.history) == 1
    assert reloaded.history[0].snapshot == reloaded.settings
    assert (tmp_path / "writemate.db").exists()


def test_empty_repository_gives_defaults(tmp_path: Path) -> None:
    _use_tmp_db(tmp_path)
    assert SettingsRepository().load() is None
    assert WorksheetStore(SettingsRepository()).settings == WorksheetSettings()


def test_settings_round_trip_uses_camel_case() -> None:
    settings = WorksheetSettings(font_size=52, reference_opacity=0.5)
    data = settings.to_dict()
    assert data["fontSize"] == 52
    assert data["referenceOpacity"] == 0.5
    assert WorksheetSettings.from_dict(data) == settings


def test_validate_settings() -> None:
    assert validate_settings(WorksheetSettings()) == []
    errors = validate_settings(
        WorksheetSettings(
            template_id="nope",
            font_id="comic",
            grid_type="hex",
            reference_opacity=0.95,
            grid_color="green",
        )
    )
    assert len(errors) == 5


def test_saving_stamps_update_time(tmp_path: Path) -> None:
    _use_tmp_db(tmp_path)
    store = WorksheetStore(SettingsRepository())
    store.update_settings(grid_type="mi")
    store.update_settings(grid_type="nine")

    row = get_stored_state(config.STORAGE_KEY)
    assert row is not None
    assert row.updated_at.year >= 2024
    assert WorksheetStore(SettingsRepository()).settings.grid_type == "nine"
