# ============================================================================
# VERSION - EVENT JOB QUEUE
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# ============================================================================
"""
Version information for the event job queue workers.

This is the single source of truth for the application version.
Updated manually for each release.
"""
# Version format: major.minor.patch.build
# Criteria for 0.2 - stale-job sweep enabled in production
__version__ = "0.1.3.0"
__version_info__ = tuple(int(x) for x in __version__.split("."))

# Build metadata
BUILD_DATE = "2026-10-19"

EPOCH = 1
CODENAME = "Event Job Queue"
