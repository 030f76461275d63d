# ============================================================================
# TICKET PDF
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Documents - Event ticket rendering
# PURPOSE: A5 landscape e-ticket with QR code, attached to REGISTRATION emails
# CREATED: 19 OCT 2026
# ============================================================================
"""
Ticket PDF

Layout (A5 landscape, 25pt margin):
    - light border around the card
    - indigo header strip: "EVENT TICKET" left, community name (and logo) right
    - left column: title, DATE & TIME, VENUE, ATTENDEE
    - right column: QR code of the token id with the token printed below
    - footer: entrance instructions

Coordinates below are measured from the top of the page and converted to
ReportLab's bottom-left origin at draw time.

Optional fields degrade to placeholders. Only a missing registration or event
raises GenerationError.
"""

import io
import logging
from typing import Any, Mapping, Optional, Type, TypeVar, Union

import qrcode
from pydantic import BaseModel
from qrcode.image.pil import PilImage
from reportlab.lib.colors import HexColor, white
from reportlab.lib.pagesizes import A5, landscape
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfgen import canvas

from core.errors import GenerationError
from core.formatting import DEFAULT_DISPLAY_TIMEZONE, format_event_datetime
from core.models.payloads import EventSnapshot, RegistrationSnapshot
from documents.assets import AssetLocator

logger = logging.getLogger(__name__)

PRIMARY = HexColor("#3730a3")
TEXT_DARK = HexColor("#111827")
TEXT_GRAY = HexColor("#6b7280")
BORDER = HexColor("#e5e7eb")

PAGE_SIZE = landscape(A5)
MARGIN = 25
HEADER_HEIGHT = 70
QR_SIZE = 140
TITLE_WIDTH = 300

FOOTER_TEXT = "Please present this ticket at the event entrance. One-time use only."

M = TypeVar("M", bound=BaseModel)


def _coerce(model: Type[M], value: Union[M, Mapping[str, Any]]) -> M:
    if isinstance(value, model):
        return value
    return model.model_validate(dict(value))


def qr_image(data: str) -> ImageReader:
    """QR code for `data` as a ReportLab image."""
    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=1,
    )
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(image_factory=PilImage, fill_color="#111827", back_color="white")

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    buffer.seek(0)
    return ImageReader(buffer)


class _TicketCanvas:
    """Top-down drawing helpers over a ReportLab canvas."""

    def __init__(self, pdf: canvas.Canvas):
        self.pdf = pdf
        self.width, self.height = PAGE_SIZE

    def text(self, x: float, top: float, value: str, font: str, size: float, color) -> None:
        # Baseline sits roughly 0.8em below the top of the line box
        self.pdf.setFont(font, size)
        self.pdf.setFillColor(color)
        self.pdf.drawString(x, self.height - top - size * 0.8, value)

    def block(self, x: float, top: float, label: str, value: str, size: float, color) -> float:
        """Gray label over a bold value. Returns the top of the next block."""
        self.text(x, top, label, "Helvetica", 9, TEXT_GRAY)
        top += 9 * 1.2 + 4
        for line in simpleSplit(value, "Helvetica-Bold", size, TITLE_WIDTH) or [""]:
            self.text(x, top, line, "Helvetica-Bold", size, color)
            top += size * 1.2
        return top + 15


def render_ticket(
    registration: Optional[Union[RegistrationSnapshot, Mapping[str, Any]]],
    event: Optional[Union[EventSnapshot, Mapping[str, Any]]],
    assets: Optional[AssetLocator] = None,
    tz_name: str = DEFAULT_DISPLAY_TIMEZONE,
    community_name: str = "CodeBuilders Community",
) -> bytes:
    """
    Render the ticket PDF.

    Raises:
        GenerationError: registration or event missing, or rendering failed
    """
    if registration is None or event is None:
        raise GenerationError("Missing registration or event data")

    registration = _coerce(RegistrationSnapshot, registration)
    event = _coerce(EventSnapshot, event)
    assets = assets or AssetLocator()

    title = event.title or "Event Ticket"
    venue = event.venue or "Venue TBD"
    attendee = registration.user_name or "Guest"
    token = registration.token_id or "N/A"
    when = format_event_datetime(event.date_time, tz_name)

    buffer = io.BytesIO()
    try:
        pdf = canvas.Canvas(buffer, pagesize=PAGE_SIZE)
        pdf.setTitle(f"{title} - Ticket")
        pdf.setAuthor(community_name)
        page = _TicketCanvas(pdf)
        width, height = PAGE_SIZE

        # Border
        pdf.setLineWidth(2)
        pdf.setStrokeColor(BORDER)
        pdf.rect(MARGIN, MARGIN, width - MARGIN * 2, height - MARGIN * 2, stroke=1, fill=0)

        # Header strip
        pdf.setFillColor(PRIMARY)
        pdf.rect(MARGIN, height - MARGIN - HEADER_HEIGHT, width - MARGIN * 2, HEADER_HEIGHT, stroke=0, fill=1)
        page.text(MARGIN + 20, MARGIN + 22, "EVENT TICKET", "Helvetica-Bold", 24, white)

        pdf.saveState()
        pdf.setFillAlpha(0.9)
        logo = assets.logo()
        text_right = width - MARGIN - 20
        if logo is not None:
            logo_x = text_right - 160
            pdf.drawImage(
                logo, logo_x, height - (MARGIN + 20) - 30,
                width=30, height=30, mask="auto", preserveAspectRatio=True,
            )
            page.text(logo_x + 40, MARGIN + 28, community_name, "Helvetica", 12, white)
        else:
            pdf.setFont("Helvetica", 12)
            pdf.setFillColor(white)
            pdf.drawRightString(text_right, height - (MARGIN + 28) - 12 * 0.8, community_name)
        pdf.restoreState()

        # Left column
        content_top = MARGIN + HEADER_HEIGHT + 35
        left_x = MARGIN + 25
        cursor = content_top
        for line in simpleSplit(title, "Helvetica-Bold", 20, TITLE_WIDTH):
            page.text(left_x, cursor, line, "Helvetica-Bold", 20, TEXT_DARK)
            cursor += 25
        cursor += 15

        cursor = page.block(left_x, cursor, "DATE & TIME", when, 12, TEXT_DARK)
        cursor = page.block(left_x, cursor, "VENUE", venue, 12, TEXT_DARK)
        page.block(left_x, cursor, "ATTENDEE", attendee, 16, PRIMARY)

        # QR code
        qr_x = width * 0.65
        qr_top = content_top + 10
        pdf.drawImage(qr_image(token), qr_x, height - qr_top - QR_SIZE, width=QR_SIZE, height=QR_SIZE)
        pdf.setFont("Courier-Bold", 10)
        pdf.setFillColor(TEXT_DARK)
        pdf.drawCentredString(qr_x + QR_SIZE / 2, height - (qr_top + QR_SIZE + 5) - 8, token)

        # Footer
        pdf.setFont("Helvetica", 8)
        pdf.setFillColor(TEXT_GRAY)
        pdf.drawCentredString(width / 2, MARGIN + 20 - 6, FOOTER_TEXT)

        pdf.showPage()
        pdf.save()
    except GenerationError:
        raise
    except Exception as e:
        logger.error(f"Ticket rendering failed for token {token}: {e}")
        raise GenerationError(f"Ticket rendering failed: {e}") from e

    return buffer.getvalue()


__all__ = ["render_ticket", "qr_image", "PAGE_SIZE"]
