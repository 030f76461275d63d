# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Core - Default configuration values
# PURPOSE: Centralized defaults for queue cadence, mail, documents, reminders
# CREATED: 19 OCT 2026
# ============================================================================
"""
Configuration Defaults

The queue constants (batch size, delays, retry ceiling) are fixed values in
normal operation. They are kept here so tests and operators can override them
through environment variables without touching the processors.

Design:
- Immutable dataclasses for defaults
- Environment variable overrides
- Type-safe access
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class QueueDefaults:
    """
    Defaults for queue processing cadence.

    Delays are measured from the end of one cycle to the start of the next.
    """
    batch_size: int = 5
    max_attempts: int = 3

    email_cycle_delay_seconds: float = 10.0
    certificate_cycle_delay_seconds: float = 15.0

    # Throttle between certificate jobs inside one batch
    certificate_inter_job_delay_seconds: float = 1.0

    # 0 disables the stale-processing sweep
    stale_job_timeout_seconds: int = 0
    stale_sweep_interval_seconds: float = 300.0

    @property
    def sweep_enabled(self) -> bool:
        return self.stale_job_timeout_seconds > 0

    @classmethod
    def from_env(cls) -> "QueueDefaults":
        """Create from environment variables."""
        return cls(
            batch_size=int(os.getenv("QUEUE_BATCH_SIZE", 5)),
            max_attempts=int(os.getenv("QUEUE_MAX_ATTEMPTS", 3)),
            email_cycle_delay_seconds=float(os.getenv("EMAIL_CYCLE_DELAY_SEC", 10)),
            certificate_cycle_delay_seconds=float(os.getenv("CERTIFICATE_CYCLE_DELAY_SEC", 15)),
            certificate_inter_job_delay_seconds=float(os.getenv("CERTIFICATE_INTER_JOB_DELAY_SEC", 1)),
            stale_job_timeout_seconds=int(os.getenv("STALE_JOB_TIMEOUT_SECONDS", 0)),
            stale_sweep_interval_seconds=float(os.getenv("STALE_SWEEP_INTERVAL_SEC", 300)),
        )


@dataclass(frozen=True)
class MailDefaults:
    """
    Defaults for the outbound mail transport.

    transport "console" logs messages instead of delivering them.
    """
    transport: str = "console"

    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_start_tls: bool = True
    smtp_timeout_seconds: float = 60.0

    from_name: str = "CodeBuilders"
    from_address: str = "no-reply@codebuilders.com"
    unsubscribe_address: Optional[str] = "unsubscribe@codebuilders.com"

    # Console transport: optional directory for .eml dumps
    console_output_dir: Optional[str] = None

    @classmethod
    def from_env(cls) -> "MailDefaults":
        """Create from environment variables."""
        return cls(
            transport=os.getenv("MAIL_TRANSPORT", "console").lower(),
            smtp_host=os.getenv("SMTP_HOST", "localhost"),
            smtp_port=int(os.getenv("SMTP_PORT", 587)),
            smtp_username=os.getenv("SMTP_USERNAME", os.getenv("EMAIL_USER", "")),
            smtp_password=os.getenv("SMTP_PASSWORD", os.getenv("EMAIL_PASS", "")),
            smtp_start_tls=_env_bool("SMTP_START_TLS", True),
            smtp_timeout_seconds=float(os.getenv("SMTP_TIMEOUT_SEC", 60)),
            from_name=os.getenv("MAIL_FROM_NAME", "CodeBuilders"),
            from_address=os.getenv("MAIL_FROM_ADDRESS", "no-reply@codebuilders.com"),
            unsubscribe_address=os.getenv("MAIL_UNSUBSCRIBE_ADDRESS", "unsubscribe@codebuilders.com") or None,
            console_output_dir=os.getenv("MAIL_CONSOLE_OUTPUT_DIR") or None,
        )


@dataclass(frozen=True)
class Signatory:
    """One signature block in the certificate footer."""
    name: str
    role: str
    slug: str


DEFAULT_SIGNATORIES: Tuple[Signatory, ...] = (
    Signatory(name="Kamesh Raval", role="Director & HOD", slug="kamesh_raval"),
    Signatory(name="Jainish Dabgar", role="Speaker", slug="jainish_dabgar"),
)


@dataclass(frozen=True)
class DocumentDefaults:
    """
    Defaults for ticket and certificate rendering.

    Dates are always rendered in display_timezone so output does not depend
    on the host clock.
    """
    assets_dir: str = str(Path(__file__).resolve().parents[2] / "assets")
    font_url: str = "https://github.com/google/fonts/raw/main/ofl/greatvibes/GreatVibes-Regular.ttf"
    font_timeout_seconds: float = 10.0
    display_timezone: str = "Asia/Kolkata"

    community_name: str = "CodeBuilders Community"
    community_short_name: str = "Code Builders"
    community_address: str = (
        "Community of Som-Lalit Institute of\n"
        "Computer Applications (SLICA)\n"
        "Navrangpura, Ahmedabad-9"
    )
    signatories: Tuple[Signatory, ...] = field(default=DEFAULT_SIGNATORIES)

    @classmethod
    def from_env(cls) -> "DocumentDefaults":
        """Create from environment variables."""
        base = cls()
        return cls(
            assets_dir=os.getenv("ASSETS_DIR", base.assets_dir),
            font_url=os.getenv("CERTIFICATE_FONT_URL", base.font_url),
            font_timeout_seconds=float(os.getenv("CERTIFICATE_FONT_TIMEOUT_SEC", 10)),
            display_timezone=os.getenv("DISPLAY_TIMEZONE", base.display_timezone),
            community_name=os.getenv("COMMUNITY_NAME", base.community_name),
            community_short_name=os.getenv("COMMUNITY_SHORT_NAME", base.community_short_name),
        )


@dataclass(frozen=True)
class ReminderDefaults:
    """Daily reminder cron schedule (local time in `timezone`)."""
    enabled: bool = True
    hour: int = 9
    minute: int = 0
    timezone: str = "Asia/Kolkata"

    @classmethod
    def from_env(cls) -> "ReminderDefaults":
        """Create from environment variables."""
        return cls(
            enabled=_env_bool("REMINDER_ENABLED", True),
            hour=int(os.getenv("REMINDER_HOUR", 9)),
            minute=int(os.getenv("REMINDER_MINUTE", 0)),
            timezone=os.getenv("REMINDER_TIMEZONE", "Asia/Kolkata"),
        )


@dataclass(frozen=True)
class AppDefaults:
    """Process-level settings."""
    client_url: str = "http://localhost:5173"
    queue_backend: str = "memory"  # "memory" or "postgres"
    auto_bootstrap_schema: bool = False
    workers_enabled: bool = True  # false: API only, no background loops

    @classmethod
    def from_env(cls) -> "AppDefaults":
        """Create from environment variables."""
        return cls(
            client_url=os.getenv("CLIENT_URL", os.getenv("FRONTEND_URL", "http://localhost:5173")).rstrip("/"),
            queue_backend=os.getenv("QUEUE_BACKEND", "memory").lower(),
            auto_bootstrap_schema=_env_bool("AUTO_BOOTSTRAP_SCHEMA", False),
            workers_enabled=_env_bool("WORKERS_ENABLED", True),
        )


@dataclass(frozen=True)
class Defaults:
    """All configuration sections."""
    queue: QueueDefaults
    mail: MailDefaults
    documents: DocumentDefaults
    reminders: ReminderDefaults
    app: AppDefaults


def get_defaults() -> Defaults:
    """Load every configuration section from the environment."""
    return Defaults(
        queue=QueueDefaults.from_env(),
        mail=MailDefaults.from_env(),
        documents=DocumentDefaults.from_env(),
        reminders=ReminderDefaults.from_env(),
        app=AppDefaults.from_env(),
    )
