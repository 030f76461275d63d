# ============================================================================
# SIGNATURE FONT
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Documents - Remote cursive font for certificate signatures
# PURPOSE: Fetch, cache and register the fallback signature typeface
# CREATED: 19 OCT 2026
# ============================================================================
"""
Signature Font

When a signatory has no signature artwork, the certificate prints their name
in a cursive TrueType font fetched over HTTP. If the fetch fails the
certificate uses the built-in Times-Italic instead, so a font outage never
fails a job.
"""

import hashlib
import io
import logging
from typing import Optional

import httpx
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFError, TTFont

logger = logging.getLogger(__name__)

FALLBACK_SIGNATURE_FONT = "Times-Italic"


async def fetch_signature_font(
    url: str,
    timeout: float = 10.0,
    client: Optional[httpx.AsyncClient] = None,
) -> Optional[bytes]:
    """
    Download font bytes.

    Returns:
        The response body, or None on any network or HTTP error, or when
        the URL itself is malformed
    """
    try:
        if client is not None:
            response = await client.get(url, timeout=timeout, follow_redirects=True)
        else:
            async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as owned:
                response = await owned.get(url)
        response.raise_for_status()
        return response.content
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning(f"Failed to load cursive font, falling back to {FALLBACK_SIGNATURE_FONT}: {e}")
        return None


def register_font(font_bytes: Optional[bytes]) -> Optional[str]:
    """
    Register TrueType bytes with ReportLab.

    The font name is derived from the content hash, so registering the same
    bytes twice is a no-op.

    Returns:
        The registered font name, or None if the bytes are not a usable font
    """
    if not font_bytes:
        return None
    name = f"Signature-{hashlib.sha1(font_bytes).hexdigest()[:12]}"
    if name in pdfmetrics.getRegisteredFontNames():
        return name
    try:
        pdfmetrics.registerFont(TTFont(name, io.BytesIO(font_bytes)))
    except (TTFError, ValueError, OSError) as e:
        logger.warning(f"Signature font bytes rejected, using {FALLBACK_SIGNATURE_FONT}: {e}")
        return None
    return name


class SignatureFontSource:
    """
    Fetches the signature font once per process.

    A failed fetch is not cached; the next certificate retries the download.
    """

    def __init__(self, url: Optional[str], timeout: float = 10.0):
        self.url = url
        self.timeout = timeout
        self._cached: Optional[bytes] = None

    async def get(self) -> Optional[bytes]:
        if self._cached is not None or not self.url:
            return self._cached
        self._cached = await fetch_signature_font(self.url, self.timeout)
        return self._cached


__all__ = [
    "FALLBACK_SIGNATURE_FONT",
    "fetch_signature_font",
    "register_font",
    "SignatureFontSource",
]
