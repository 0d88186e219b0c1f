from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import httpx

from ..models import WorksheetSettings
from ..storage import write_export
from .layout import Layout, build_layout, layout_notices
from .render_pdf import render_document
from .render_preview import Scene, render_preview
from .templates import TemplateDescriptor, get_template


logger = logging.getLogger(__name__)


@dataclass
class Worksheet:
    settings: WorksheetSettings
    template: TemplateDescriptor
    layout: Layout

    @property
    def notices(self) -> List[str]:
        return layout_notices(self.template, self.layout)


def build_worksheet(settings: WorksheetSettings) -> Worksheet:
    """Resolve the template and lay out the text. Raises InvalidTemplateReference."""
    template = get_template(settings.template_id)
    return Worksheet(settings=settings, template=template, layout=build_layout(template, settings.text))


def preview_worksheet(sheet: Worksheet, zoom_percent: float = 100) -> Scene:
    return render_preview(sheet.settings, sheet.template, sheet.layout, zoom_percent)


async def export_worksheet(
    settings: WorksheetSettings,
    out_dir: Optional[Path] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> Path:
    sheet = build_worksheet(settings)
    if sheet.layout.overflow:
        logger.info("Export drops %d overflowing characters", sheet.layout.overflow)
    data = await render_document(sheet.settings, sheet.template, sheet.layout, client=client)
    path = write_export(data, base_dir=out_dir)
    logger.info("Exported worksheet to %s", path)
    return path
