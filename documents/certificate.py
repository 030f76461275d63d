# ============================================================================
# CERTIFICATE PDF
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Documents - Certificate of participation rendering
# PURPOSE: A4 landscape certificate attached to certificate emails
# CREATED: 19 OCT 2026
# ============================================================================
"""
Certificate PDF

Layout (A4 landscape):
    - double gold border
    - seal with ribbon tails top left, logo top right
    - "CERTIFICATE / OF PARTICIPATION" heading
    - attendee name over a rule, then the participation sentence
    - footer: one community text column plus one column per signatory,
      evenly spaced across the page

Signature fallback chain per signatory:
    signatures/<slug>.png  ->  name in the fetched cursive font  ->  Times-Italic

Like the ticket, positions are written top-down and converted on draw.
"""

import io
import logging
import math
from typing import Any, Mapping, Optional, Sequence, Union

from reportlab.lib.colors import HexColor, white
from reportlab.lib.pagesizes import A4, landscape
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from core.config.defaults import DocumentDefaults, Signatory
from core.errors import GenerationError
from core.formatting import format_long_date
from core.models.payloads import EventSnapshot, ParticipationSnapshot
from documents.assets import AssetLocator
from documents.fonts import FALLBACK_SIGNATURE_FONT, register_font

logger = logging.getLogger(__name__)

MAROON = HexColor("#800000")
GOLD = HexColor("#C5A059")
DARK_GREY = HexColor("#333333")
PURPLE = HexColor("#6A1B9A")
NAVY_BLUE = HexColor("#000080")

PAGE_SIZE = landscape(A4)
FOOTER_MARGIN_X = 20
SEAL_CENTER = (100, 95)


def _fit_size(text: str, font: str, size: float, max_width: float, floor: float = 14) -> float:
    """Largest size <= `size` at which `text` fits `max_width`."""
    while size > floor and stringWidth(text, font, size) > max_width:
        size -= 1
    return size


class _CertificateCanvas:
    """Top-down drawing helpers over a ReportLab canvas."""

    def __init__(self, pdf: canvas.Canvas):
        self.pdf = pdf
        self.width, self.height = PAGE_SIZE

    def baseline(self, top: float, size: float) -> float:
        return self.height - top - size * 0.8

    def centered(self, center_x: float, top: float, text: str, font: str, size: float, color,
                 spacing: float = 0) -> None:
        text_width = stringWidth(text, font, size) + spacing * max(len(text) - 1, 0)
        obj = self.pdf.beginText(center_x - text_width / 2, self.baseline(top, size))
        obj.setFont(font, size)
        obj.setFillColor(color)
        obj.setCharSpace(spacing)
        obj.textLine(text)
        self.pdf.drawText(obj)

    def draw_seal(self, lines: Sequence[str]) -> None:
        pdf = self.pdf
        pdf.saveState()
        pdf.translate(SEAL_CENTER[0], self.height - SEAL_CENTER[1])

        # Ribbon tails hang below the seal
        pdf.setFillColor(MAROON)
        for sign in (-1, 1):
            tail = pdf.beginPath()
            tail.moveTo(sign * 20, -35)
            tail.lineTo(sign * 45, -95)
            tail.lineTo(sign * 25, -75)
            tail.lineTo(sign * 10, -95)
            tail.lineTo(sign * 5, -35)
            tail.close()
            pdf.drawPath(tail, stroke=0, fill=1)

        # Scalloped edge: 40 spikes alternating radius 50 / 45
        spikes = 40
        edge = pdf.beginPath()
        for i in range(spikes * 2):
            radius = 50 if i % 2 == 0 else 45
            angle = math.pi * i / spikes
            point = (math.cos(angle) * radius, math.sin(angle) * radius)
            if i == 0:
                edge.moveTo(*point)
            else:
                edge.lineTo(*point)
        edge.close()
        pdf.setFillColor(GOLD)
        pdf.drawPath(edge, stroke=0, fill=1)

        pdf.setFillColor(PURPLE)
        pdf.circle(0, 0, 40, stroke=0, fill=1)
        pdf.setStrokeColor(GOLD)
        pdf.setLineWidth(1)
        pdf.circle(0, 0, 36, stroke=1, fill=0)

        pdf.setFillColor(white)
        pdf.setFont("Helvetica-Bold", 10)
        for offset, line in zip((7, -3), lines):
            pdf.drawCentredString(0, offset, line)
        pdf.setFillColor(GOLD)
        pdf.setFont("Helvetica", 8)
        pdf.drawCentredString(0, -16, "VERIFIED")

        pdf.restoreState()


def _draw_signature(page: _CertificateCanvas, assets: AssetLocator, signatory: Signatory,
                    center_x: float, footer_top: float, font_name: Optional[str]) -> None:
    pdf = page.pdf
    artwork = assets.signature(signatory.slug)
    if artwork is not None:
        pdf.drawImage(
            artwork, center_x - 70, page.height - (footer_top - 10) - 70,
            width=140, height=70, preserveAspectRatio=True, anchor="c", mask="auto",
        )
    elif font_name:
        page.centered(center_x, footer_top + 10, signatory.name, font_name, 28, NAVY_BLUE)
    else:
        page.centered(center_x, footer_top + 10, signatory.name, FALLBACK_SIGNATURE_FONT, 24, NAVY_BLUE)

    page.centered(center_x, footer_top + 50, signatory.name.upper(), "Helvetica-Bold", 12, DARK_GREY)
    page.centered(center_x, footer_top + 68, signatory.role, "Helvetica", 10, DARK_GREY)


def render_certificate(
    participation: Optional[Union[ParticipationSnapshot, Mapping[str, Any]]],
    event: Optional[Union[EventSnapshot, Mapping[str, Any]]],
    font_bytes: Optional[bytes] = None,
    assets: Optional[AssetLocator] = None,
    settings: Optional[DocumentDefaults] = None,
) -> bytes:
    """
    Render the certificate PDF.

    Args:
        participation: attendee name (and email)
        event: event snapshot; title and date are printed
        font_bytes: cursive TrueType for signature fallbacks, if fetched

    Raises:
        GenerationError: event or attendee name missing, or rendering failed
    """
    if event is None:
        raise GenerationError("Missing event data for certificate")
    if participation is None:
        raise GenerationError("Missing attendee for certificate")

    settings = settings or DocumentDefaults()
    assets = assets or AssetLocator(settings.assets_dir)
    event = event if isinstance(event, EventSnapshot) else EventSnapshot.model_validate(dict(event))
    if not isinstance(participation, ParticipationSnapshot):
        user_name = dict(participation).get("userName") or dict(participation).get("user_name")
        if not user_name:
            raise GenerationError("Missing attendee name for certificate")
        participation = ParticipationSnapshot.model_validate(dict(participation))

    title = event.title or "Event"
    held_on = format_long_date(event.date_time, settings.display_timezone)
    short_name = settings.community_short_name
    seal_lines = short_name.upper().split()[:2] or ["VERIFIED"]

    buffer = io.BytesIO()
    try:
        pdf = canvas.Canvas(buffer, pagesize=PAGE_SIZE)
        pdf.setTitle(f"Certificate - {participation.user_name}")
        pdf.setAuthor(short_name)
        page = _CertificateCanvas(pdf)
        width, height = PAGE_SIZE
        center = width / 2

        # Borders
        pdf.setStrokeColor(GOLD)
        pdf.setLineWidth(5)
        pdf.rect(20, 20, width - 40, height - 40, stroke=1, fill=0)
        pdf.setLineWidth(2)
        pdf.rect(28, 28, width - 56, height - 56, stroke=1, fill=0)

        logo = assets.logo()
        if logo is not None:
            pdf.drawImage(logo, width - 140, height - 50 - 90, width=90, height=90,
                          preserveAspectRatio=True, anchor="n", mask="auto")

        page.draw_seal(seal_lines)

        # Heading
        page.centered(center, 90, f"COMMUNITY OF {short_name.upper()}", "Helvetica-Bold", 16, NAVY_BLUE, spacing=4)
        page.centered(center, 120, "CERTIFICATE", "Times-Bold", 60, MAROON, spacing=2)
        page.centered(center, 190, "OF PARTICIPATION", "Helvetica-Bold", 18, DARK_GREY, spacing=6)

        # Body
        page.centered(center, 250, "This certificate is proudly presented to", "Times-Italic", 16, DARK_GREY)
        name_size = _fit_size(participation.user_name, "Times-BoldItalic", 44, width - 200)
        page.centered(center, 285, participation.user_name, "Times-BoldItalic", name_size, PURPLE)

        pdf.setStrokeColor(DARK_GREY)
        pdf.setLineWidth(1.5)
        pdf.line(center - 220, height - 335, center + 220, height - 335)

        line_one = f"For participating in the {title}"
        line_two = f"held by {short_name} on {held_on}."
        body_size = min(
            _fit_size(line_one, "Times-Roman", 16, width - 120, floor=10),
            _fit_size(line_two, "Times-Roman", 16, width - 120, floor=10),
        )
        page.centered(center, 360, line_one, "Times-Roman", body_size, DARK_GREY)
        page.centered(center, 385, line_two, "Times-Roman", body_size, DARK_GREY)

        # Footer: community block, then one column per signatory
        footer_top = height - 130
        columns = 1 + len(settings.signatories)
        column_width = (width - FOOTER_MARGIN_X * 2) / columns
        font_name = register_font(font_bytes)

        community_x = FOOTER_MARGIN_X + column_width / 2
        page.centered(community_x, footer_top + 15, short_name.upper(), "Times-Bold", 15, NAVY_BLUE)
        line_top = footer_top + 35
        for line in settings.community_address.splitlines():
            page.centered(community_x, line_top, line, "Times-Roman", 11, DARK_GREY)
            line_top += 11 * 1.2 + 4

        for index, signatory in enumerate(settings.signatories, start=1):
            center_x = FOOTER_MARGIN_X + index * column_width + column_width / 2
            _draw_signature(page, assets, signatory, center_x, footer_top, font_name)

        pdf.showPage()
        pdf.save()
    except GenerationError:
        raise
    except Exception as e:
        logger.error(f"Certificate rendering failed for {participation.user_name}: {e}")
        raise GenerationError(f"Certificate rendering failed: {e}") from e

    return buffer.getvalue()


__all__ = ["render_certificate", "PAGE_SIZE"]
