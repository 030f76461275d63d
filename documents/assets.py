# ============================================================================
# DOCUMENT ASSETS
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Documents - Static artwork lookup
# PURPOSE: Resolve logo and signature images for ticket/certificate rendering
# CREATED: 19 OCT 2026
# ============================================================================
"""
Asset Locator

Artwork is optional. Every lookup returns None when the file is absent or
cannot be decoded, and the renderers fall back to text.

Layout under the assets directory:
    logo.png
    signatures/<slug>.png
"""

import logging
from pathlib import Path
from typing import Optional, Union

from PIL import Image, UnidentifiedImageError
from reportlab.lib.utils import ImageReader

logger = logging.getLogger(__name__)


class AssetLocator:
    """Looks up image assets under one directory."""

    def __init__(self, assets_dir: Optional[Union[str, Path]] = None):
        self.root = Path(assets_dir) if assets_dir else None

    def _path(self, *parts: str) -> Optional[Path]:
        if self.root is None:
            return None
        candidate = self.root.joinpath(*parts)
        return candidate if candidate.is_file() else None

    def logo_path(self) -> Optional[Path]:
        return self._path("logo.png")

    def signature_path(self, slug: str) -> Optional[Path]:
        return self._path("signatures", f"{slug}.png")

    def logo(self) -> Optional[ImageReader]:
        return load_image(self.logo_path())

    def signature(self, slug: str) -> Optional[ImageReader]:
        return load_image(self.signature_path(slug))


def load_image(path: Optional[Path]) -> Optional[ImageReader]:
    """Decode an image file for ReportLab, or None if unusable."""
    if path is None:
        return None
    try:
        with Image.open(path) as img:
            img.load()
            return ImageReader(img.convert("RGBA"))
    except (OSError, UnidentifiedImageError) as e:
        logger.warning(f"Skipping unreadable image asset {path}: {e}")
        return None


__all__ = ["AssetLocator", "load_image"]
