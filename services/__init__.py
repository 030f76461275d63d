# ============================================================================
# SERVICES MODULE
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Service - Platform-facing producers
# PURPOSE: Turn platform actions into queued jobs
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
Services Module

Usage:
    from services import JobProducer

    producer = JobProducer(email_store, certificate_store, client_url)
    await producer.registration_confirmed(registration, event)
"""

from services.producer_service import JobProducer, Recipient

__all__ = [
    "JobProducer",
    "Recipient",
]
