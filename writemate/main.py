from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import fields
from pathlib import Path
from typing import List, Optional

import typer

from . import config
from .errors import AssetFetchFailed, WriteMateError
from .logging_config import setup_logging
from .models import WorksheetSettings, reset_engine
from .pipeline.presets import open_store, validate_settings
from .pipeline.render_preview import rasterize_preview
from .pipeline.run import build_worksheet, export_worksheet, preview_worksheet
from .pipeline.templates import TEMPLATES
from .pipeline.typefaces import typeface_catalog
from .storage import write_export

app = typer.Typer(help="Handwriting practice worksheet generator")
preset_app = typer.Typer(help="Saved setting presets (last 3 kept)")
app.add_typer(preset_app, name="preset")

logger = logging.getLogger(__name__)

TRUE_WORDS = {"1", "true", "yes", "on"}


def _field_name(key: str) -> str:
    for f in fields(WorksheetSettings):
        camel = "".join(part if i == 0 else part.title() for i, part in enumerate(f.name.split("_")))
        if key in (f.name, camel):
            return f.name
    raise typer.BadParameter(f"Unknown setting: {key}")


def _coerce(name: str, raw: str):
    default = getattr(WorksheetSettings(), name)
    if isinstance(default, bool):
        return raw.strip().lower() in TRUE_WORDS
    if isinstance(default, (int, float)):
        try:
            return float(raw)
        except ValueError:
            raise typer.BadParameter(f"{name} expects a number, got {raw!r}") from None
    return raw


def parse_assignments(pairs: List[str]) -> dict:
    changes = {}
    for pair in pairs:
        if "=" not in pair:
            raise typer.BadParameter(f"Expected KEY=VALUE, got {pair!r}")
        key, raw = pair.split("=", 1)
        name = _field_name(key.strip())
        changes[name] = _coerce(name, raw)
    return changes


def _run_settings(
    text: Optional[str],
    text_file: Optional[Path],
    template: Optional[str],
    font: Optional[str],
    grid_type: Optional[str],
) -> WorksheetSettings:
    settings = open_store().settings
    overrides = {}
    if text_file is not None:
        overrides["text"] = text_file.read_text(encoding="utf-8")
    elif text is not None:
        overrides["text"] = text
    if template:
        overrides["template_id"] = template
    if font:
        overrides["font_id"] = font
    if grid_type:
        overrides["grid_type"] = grid_type
    settings = settings.with_changes(**overrides)
    errors = validate_settings(settings)
    if errors:
        for error in errors:
            typer.echo(f"INVALID: {error}", err=True)
        raise typer.Exit(code=2)
    return settings


@app.callback()
def main(
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory (exports and settings db)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Also write log records to this file"),
) -> None:
    setup_logging(logging.DEBUG if verbose else logging.WARNING, log_file=str(log_file) if log_file else None)
    if out:
        config.set_out_dir(out)
        reset_engine()


@app.command()
def templates() -> None:
    for item in TEMPLATES:
        typer.echo(f"{item.id}\t{item.label}\t{item.rows}x{item.columns}\t{item.orientation}")


@app.command()
def fonts() -> None:
    for face in typeface_catalog():
        source = "embedded" if face.pdf_source else "standard"
        typer.echo(f"{face.id}\t{face.label}\t{source}")


@app.command()
def preview(
    text: Optional[str] = typer.Option(None, "--text", help="Override the stored text"),
    text_file: Optional[Path] = typer.Option(None, "--text-file", help="Read text from a UTF-8 file"),
    template: Optional[str] = typer.Option(None, "--template"),
    font: Optional[str] = typer.Option(None, "--font"),
    grid_type: Optional[str] = typer.Option(None, "--grid-type"),
    zoom: int = typer.Option(config.ZOOM_DEFAULT, "--zoom", min=config.ZOOM_MIN, max=config.ZOOM_MAX),
    svg: Optional[Path] = typer.Option(None, "--svg", help="Write the preview SVG here"),
    png: Optional[Path] = typer.Option(None, "--png", help="Write a PNG rendering here"),
    save: bool = typer.Option(False, "--save", help="Save SVG and PNG into the output directory"),
) -> None:
    settings = _run_settings(text, text_file, template, font, grid_type)
    sheet = build_worksheet(settings)
    scene = preview_worksheet(sheet, zoom_percent=zoom)
    if save:
        now_ms = int(time.time() * 1000)
        saved_svg = write_export(scene.to_svg().encode("utf-8"), artifact_type="svg", now_ms=now_ms)
        saved_png = write_export(rasterize_preview(scene), artifact_type="png", now_ms=now_ms)
        typer.echo(f"SVG: {saved_svg}")
        typer.echo(f"PNG: {saved_png}")
    if svg:
        svg.write_text(scene.to_svg(), encoding="utf-8")
        typer.echo(f"SVG: {svg}")
    if png:
        png.write_bytes(rasterize_preview(scene))
        typer.echo(f"PNG: {png}")
    typer.echo(f"{sheet.template.label} · {sheet.template.rows}×{sheet.template.columns}")
    typer.echo(f"{sheet.layout.char_count} / {sheet.layout.max_chars} 字")
    for notice in sheet.notices:
        typer.echo(notice)


@app.command()
def export(
    text: Optional[str] = typer.Option(None, "--text", help="Override the stored text"),
    text_file: Optional[Path] = typer.Option(None, "--text-file", help="Read text from a UTF-8 file"),
    template: Optional[str] = typer.Option(None, "--template"),
    font: Optional[str] = typer.Option(None, "--font"),
    grid_type: Optional[str] = typer.Option(None, "--grid-type"),
) -> None:
    settings = _run_settings(text, text_file, template, font, grid_type)
    try:
        path = asyncio.run(export_worksheet(settings, out_dir=config.OUT_DIR))
    except AssetFetchFailed as exc:
        typer.echo(f"FAILED: {exc}", err=True)
        raise typer.Exit(code=1)
    except WriteMateError:
        logger.exception("Export failed")
        raise typer.Exit(code=1)
    typer.echo(f"PDF: {path}")


@app.command("set")
def set_settings(assignments: List[str] = typer.Argument(..., help="KEY=VALUE pairs")) -> None:
    store = open_store()
    changes = parse_assignments(assignments)
    errors = validate_settings(store.settings.with_changes(**changes))
    if errors:
        for error in errors:
            typer.echo(f"INVALID: {error}", err=True)
        raise typer.Exit(code=2)
    store.update_settings(**changes)
    for key, value in store.settings.to_dict().items():
        if key != "text":
            typer.echo(f"{key}={value}")


@preset_app.command("save")
def preset_save() -> None:
    preset = open_store().save_preset()
    typer.echo(f"{preset.id}\t{preset.label}")


@preset_app.command("list")
def preset_list() -> None:
    store = open_store()
    if not store.history:
        typer.echo("No presets saved")
        return
    for preset in store.history:
        typer.echo(f"{preset.id}\t{preset.label}\t{preset.snapshot.template_id}")


@preset_app.command("apply")
def preset_apply(preset_id: str) -> None:
    if not open_store().apply_preset(preset_id):
        typer.echo(f"No preset {preset_id}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Applied {preset_id}")


@preset_app.command("clear")
def preset_clear() -> None:
    open_store().clear_presets()
    typer.echo("Presets cleared")


if __name__ == "__main__":
    app()
