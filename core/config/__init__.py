# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Core - Configuration and defaults
# PURPOSE: Centralized configuration management
# CREATED: 19 OCT 2026
# ============================================================================
"""
Configuration Module

Provides centralized configuration and defaults for the queue workers.
"""

from core.config.defaults import (
    AppDefaults,
    Defaults,
    DocumentDefaults,
    MailDefaults,
    QueueDefaults,
    ReminderDefaults,
    Signatory,
    get_defaults,
)

__all__ = [
    "AppDefaults",
    "Defaults",
    "DocumentDefaults",
    "MailDefaults",
    "QueueDefaults",
    "ReminderDefaults",
    "Signatory",
    "get_defaults",
]
