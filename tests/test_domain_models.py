# ============================================================================
# DOMAIN MODEL TESTS
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Tests - Job contracts, payload snapshots, schema generation
# PURPOSE: Verify enums, transitions, enqueue validation and DDL output
# CREATED: 19 OCT 2026
# ============================================================================
"""
Domain Model Tests

Unit tests for the queue domain layer:
- Enums: JobStatus, ResolveOutcome
- JobData transitions and attempt counting
- EmailJob / CertificateJob enqueue validation
- Payload snapshots and the tagged email content union
- Schema generator output

Run with:
    pytest tests/test_domain_models.py -v
"""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from core.contracts import (
    MAX_ERROR_LENGTH,
    EmailJobType,
    JobFamily,
    JobStatus,
    ResolveOutcome,
    truncate_error,
)
from core.errors import ValidationError
from core.formatting import (
    format_event_datetime,
    format_long_date,
    format_time,
    safe_filename_stem,
)
from core.models import QUEUE_MODELS, CertificateJob, EmailJob
from core.models.payloads import (
    EventSnapshot,
    NewEventEmail,
    RegistrationEmail,
    RegistrationSnapshot,
    parse_email_content,
)
from core.schema import PydanticToSQL


# ============================================================================
# ENUM TESTS
# ============================================================================


class TestJobStatus:
    def test_values(self):
        assert JobStatus.PENDING.value == "pending"
        assert JobStatus.PROCESSING.value == "processing"
        assert JobStatus.COMPLETED.value == "completed"
        assert JobStatus.FAILED.value == "failed"

    def test_terminal_states(self):
        assert JobStatus.COMPLETED.is_terminal()
        assert JobStatus.FAILED.is_terminal()
        assert not JobStatus.PENDING.is_terminal()
        assert not JobStatus.PROCESSING.is_terminal()

    def test_email_job_types(self):
        assert {t.value for t in EmailJobType} == {
            "REGISTRATION", "NEW_EVENT", "EXTERNAL_EVENT_ALERT", "SIMPLE",
        }


# ============================================================================
# TRANSITIONS
# ============================================================================


def _email(**overrides):
    data = {"to": "a@example.com", "type": "SIMPLE", "subject": "Hi", "html": "<p>Hi</p>"}
    data.update(overrides)
    return EmailJob.model_validate(data)


class TestJobTransitions:
    def test_new_job_defaults(self):
        job = _email()
        assert job.status == JobStatus.PENDING
        assert job.attempts == 0
        assert job.last_error is None
        assert job.created_at.tzinfo is not None
        assert len(job.id) == 36

    def test_pending_to_processing(self):
        job = _email()
        job.mark_processing()
        assert job.status == JobStatus.PROCESSING

    def test_cannot_process_twice(self):
        job = _email()
        job.mark_processing()
        with pytest.raises(ValueError):
            job.mark_processing()

    def test_completed_does_not_count_attempt(self):
        job = _email()
        job.mark_processing()
        job.apply_outcome(ResolveOutcome.COMPLETED)
        assert job.status == JobStatus.COMPLETED
        assert job.attempts == 0
        assert job.is_terminal

    def test_retry_counts_attempt_and_records_error(self):
        job = _email()
        job.mark_processing()
        job.apply_outcome(ResolveOutcome.RETRY, "connection reset")
        assert job.status == JobStatus.PENDING
        assert job.attempts == 1
        assert job.last_error == "connection reset"

    def test_terminal_job_is_immutable(self):
        job = _email()
        job.mark_processing()
        job.apply_outcome(ResolveOutcome.FAILED, "boom")
        for outcome in ResolveOutcome:
            with pytest.raises(ValueError):
                job.apply_outcome(outcome, "again")
        assert job.attempts == 1
        assert job.last_error == "boom"

    def test_pending_job_cannot_be_resolved(self):
        job = _email()
        with pytest.raises(ValueError):
            job.apply_outcome(ResolveOutcome.COMPLETED)

    def test_truncate_error(self):
        assert truncate_error(None) == "unknown error"
        assert truncate_error("   ") == "unknown error"
        assert len(truncate_error("x" * (MAX_ERROR_LENGTH + 50))) == MAX_ERROR_LENGTH


# ============================================================================
# ENQUEUE VALIDATION
# ============================================================================


class TestEmailJobValidation:
    def test_field_aliases(self):
        job = EmailJob.model_validate({"to": "a@example.com", "type": "NEW_EVENT", "data": {"event": {"title": "X"}}})
        assert job.recipient == "a@example.com"
        assert job.job_type == "NEW_EVENT"
        assert job.payload == {"event": {"title": "X"}}
        assert job.family == JobFamily.EMAIL

    def test_requires_recipient(self):
        with pytest.raises(ValidationError):
            _email(to="  ").validate_for_enqueue()

    def test_registration_requires_event_title(self):
        job = _email(type="REGISTRATION", data={"userName": "Asha", "event": {"venue": "Hall A"}})
        with pytest.raises(ValidationError, match="title"):
            job.validate_for_enqueue()

    def test_registration_with_title_is_valid(self):
        _email(type="REGISTRATION", data={"event": {"title": "DevConf"}}).validate_for_enqueue()

    @pytest.mark.parametrize("job_type", ["NEW_EVENT", "EXTERNAL_EVENT_ALERT"])
    def test_announcements_require_event(self, job_type):
        with pytest.raises(ValidationError):
            _email(type=job_type, data={"userName": "Asha"}).validate_for_enqueue()

    def test_simple_requires_html(self):
        with pytest.raises(ValidationError):
            _email(html=None).validate_for_enqueue()

    def test_unknown_type_is_accepted_at_enqueue(self):
        _email(type="NEWSLETTER", html=None).validate_for_enqueue()


class TestCertificateJobValidation:
    def _job(self, **overrides):
        data = {
            "registrationId": "reg-1",
            "eventId": "evt-1",
            "userName": "Asha Patel",
            "userEmail": "asha@example.com",
            "data": {"event": {"title": "DevConf"}},
        }
        data.update(overrides)
        return CertificateJob.model_validate(data)

    def test_aliases_and_family(self):
        job = self._job(userId=42)
        assert job.registration_ref == "reg-1"
        assert job.event_ref == "evt-1"
        assert job.user_ref == "42"
        assert job.family == JobFamily.CERTIFICATE
        assert job.job_type == "CERTIFICATE"
        assert job.recipient == "asha@example.com"

    def test_user_ref_is_optional(self):
        job = self._job()
        job.validate_for_enqueue()
        assert job.user_ref is None

    @pytest.mark.parametrize("field", ["eventId", "registrationId", "userEmail", "userName"])
    def test_required_fields(self, field):
        with pytest.raises(ValidationError):
            self._job(**{field: None}).validate_for_enqueue()

    def test_event_snapshot(self):
        snapshot = self._job().event_snapshot()
        assert snapshot.title == "DevConf"

    def test_missing_event_snapshot(self):
        assert self._job(data={}).event_snapshot() is None


# ============================================================================
# PAYLOAD SNAPSHOTS
# ============================================================================


class TestPayloads:
    def test_event_aliases(self):
        event = EventSnapshot.model_validate({"_id": 7, "title": "T", "date": "2025-05-01T10:00:00Z"})
        assert event.id == "7"
        assert event.date_time == datetime(2025, 5, 1, 10, 0, tzinfo=timezone.utc)

    def test_unreadable_date_becomes_none(self):
        assert EventSnapshot.model_validate({"title": "T", "dateTime": "next tuesday"}).date_time is None
        assert EventSnapshot.model_validate({"title": "T", "dateTime": ""}).date_time is None

    def test_to_payload_is_camel_case(self):
        event = EventSnapshot(title="T", date_time=datetime(2025, 5, 1, 10, tzinfo=timezone.utc), start_time="10 AM")
        payload = event.to_payload()
        assert payload["dateTime"].startswith("2025-05-01T10:00:00")
        assert payload["startTime"] == "10 AM"
        assert "venue" not in payload

    def test_registration_snapshot_ignores_extra(self):
        snap = RegistrationSnapshot.model_validate({"userName": "Asha", "tokenId": "TKN", "event": {}})
        assert snap.user_name == "Asha"
        assert snap.token_id == "TKN"

    def test_content_union_dispatches_on_kind(self):
        content = parse_email_content("REGISTRATION", {"event": {"title": "DevConf"}, "tokenId": "T1"})
        assert isinstance(content, RegistrationEmail)
        assert content.user_name == "there"
        assert isinstance(parse_email_content("NEW_EVENT", {"event": {"title": "X"}}), NewEventEmail)

    def test_content_requires_event(self):
        with pytest.raises(PydanticValidationError):
            parse_email_content("REMINDER", {"userName": "Asha"})


# ============================================================================
# FORMATTING
# ============================================================================


class TestFormatting:
    def test_display_timezone(self, event_time):
        assert format_time(event_time) == "3:30 pm"
        assert format_event_datetime(event_time) == "Thursday, 1 May 2025 at 3:30 pm"
        assert format_long_date(event_time) == "1 May 2025"

    def test_naive_is_utc(self):
        assert format_time(datetime(2025, 5, 1, 10, 0)) == "3:30 pm"

    def test_missing_date(self):
        assert format_event_datetime(None) == "Date TBA"
        assert format_long_date(None) == "Date TBA"

    def test_safe_filename_stem(self):
        assert safe_filename_stem("DevConf 2025") == "DevConf_2025"
        assert safe_filename_stem("AI/ML: Day-1") == "AI_ML__Day_1"


# ============================================================================
# SCHEMA GENERATION
# ============================================================================


class TestSchemaGeneration:
    def test_queue_models_registered(self):
        assert EmailJob in QUEUE_MODELS
        assert CertificateJob in QUEUE_MODELS

    def test_metadata_schema_override(self):
        meta = PydanticToSQL(schema_name="custom").get_model_metadata(EmailJob)
        assert meta["table"] == "email_queue"
        assert meta["schema"] == "custom"
        assert meta["primary_key"] == ["id"]

    def test_type_mapping(self):
        gen = PydanticToSQL()
        fields = EmailJob.model_fields

        def sql_type(name):
            return gen.python_type_to_sql(fields[name].annotation, fields[name])

        assert sql_type("recipient") == "VARCHAR(320)"
        assert sql_type("payload") == "JSONB"
        assert sql_type("html") == "TEXT"
        assert sql_type("status") == "VARCHAR(20)"
        assert sql_type("attempts") == "INTEGER"
        assert sql_type("created_at") == "TIMESTAMPTZ"

    def test_generate_all(self):
        statements = PydanticToSQL(schema_name="eventq").generate_all(QUEUE_MODELS)
        # schema, email table + 1 index, certificate table + 2 indexes
        assert len(statements) == 6
