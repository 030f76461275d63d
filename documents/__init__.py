# ============================================================================
# DOCUMENTS MODULE
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Documents - PDF generation
# PURPOSE: Ticket and certificate PDFs attached to outbound mail
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
Document Generator

Synchronous ReportLab renderers. Processors call them through
asyncio.to_thread so a render never blocks the event loop.
"""

from documents.assets import AssetLocator
from documents.certificate import render_certificate
from documents.fonts import SignatureFontSource, fetch_signature_font, register_font
from documents.ticket import render_ticket

__all__ = [
    "AssetLocator",
    "render_ticket",
    "render_certificate",
    "fetch_signature_font",
    "register_font",
    "SignatureFontSource",
]
