from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Dict, Optional

import httpx
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFError, TTFont

from ..config import FONT_FETCH_TIMEOUT, STANDARD_FONT
from ..errors import AssetFetchFailed
from .typefaces import Typeface


logger = logging.getLogger(__name__)

FETCH_FAILED_MESSAGE = "無法載入字型檔，請稍後再試。"

# typeface id -> registered reportlab font name
_REGISTERED: Dict[str, str] = {}


@dataclass(frozen=True)
class FontFetch:
    data: Optional[bytes] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.data is not None


async def fetch_font(
    url: str,
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = FONT_FETCH_TIMEOUT,
) -> FontFetch:
    """Download typeface bytes; failures come back as FontFetch.error."""
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as own_client:
                resp = await own_client.get(url)
        else:
            resp = await client.get(url)
    except httpx.HTTPError as exc:
        logger.warning("Typeface fetch failed for %s: %s", url, exc)
        return FontFetch(error=FETCH_FAILED_MESSAGE)

    if not resp.is_success:
        logger.warning("Typeface fetch for %s returned HTTP %s", url, resp.status_code)
        return FontFetch(error=FETCH_FAILED_MESSAGE)
    return FontFetch(data=resp.content)


def font_name_for(typeface: Typeface) -> str:
    return "WM-" + "".join(ch for ch in typeface.id.title() if ch.isalnum())


def register_font_bytes(name: str, data: bytes) -> str:
    if name not in pdfmetrics.getRegisteredFontNames():
        pdfmetrics.registerFont(TTFont(name, io.BytesIO(data)))
    return name


async def load_typeface(
    typeface: Optional[Typeface],
    client: Optional[httpx.AsyncClient] = None,
) -> str:
    """
    Return the reportlab font name to draw with.

    No locator configured -> the built-in standard font, without touching the
    network. A configured locator that cannot be fetched or parsed raises
    AssetFetchFailed.
    """
    if typeface is None or not typeface.pdf_source:
        return STANDARD_FONT

    cached = _REGISTERED.get(typeface.id)
    if cached:
        return cached

    result = await fetch_font(typeface.pdf_source, client=client)
    if not result.ok:
        raise AssetFetchFailed(result.error or FETCH_FAILED_MESSAGE, url=typeface.pdf_source)

    name = font_name_for(typeface)
    try:
        register_font_bytes(name, result.data)
    except TTFError as exc:
        logger.warning("Typeface %s is not a usable TrueType file: %s", typeface.id, exc)
        raise AssetFetchFailed(FETCH_FAILED_MESSAGE, url=typeface.pdf_source) from exc

    logger.info("Embedded typeface %s (%d bytes)", typeface.id, len(result.data))
    _REGISTERED[typeface.id] = name
    return name
