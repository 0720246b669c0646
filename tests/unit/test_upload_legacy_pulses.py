"""
Unit tests for the 2.0.0 migration step.

Tests verify:
- Legacy records are projected and uploaded in one tagged batch
- Each attempt asks for a fresh session
- Rejections surface the server's message
- Transport failures surface a generic message
- Local records are never deleted
"""
import pytest

from pulsewatch.core.errors import StepFailedError, TransportError
from pulsewatch.domain.migration import MigrationContext, UploadResponse
from pulsewatch.migration.steps.base import UNKNOWN_ERROR_MESSAGE, StepEnvironment
from pulsewatch.migration.steps.v2_0_0_upload_legacy_pulses import UploadLegacyPulses
from tests.fixtures.mock_collaborators import (
    MockSessionProvider,
    MockUploadChannel,
    legacy_pulse,
)

LEGACY_KEYS = ("pulse-1", "pulse-2")


def make_env(store, uploads, sessions, legacy_keys=LEGACY_KEYS, current="1.0.0"):
    context = MigrationContext(
        current_version=current,
        target_version="2.0.0",
        marker_found=False,
        legacy_keys=legacy_keys,
    )
    return StepEnvironment(context=context, store=store, sessions=sessions, uploads=uploads)


class TestUploadLegacyPulses:
    """Tests for UploadLegacyPulses.apply."""

    @pytest.mark.asyncio
    async def test_uploads_projected_records(self, legacy_store, uploads, sessions):
        await UploadLegacyPulses().apply(make_env(legacy_store, uploads, sessions))

        assert len(uploads.batches) == 1
        payload = uploads.batches[0].to_payload()
        assert payload["currentVersion"] == "1.0.0"
        assert payload["targetVersion"] == "2.0.0"
        assert payload["sessionId"] == "session-1"
        assert payload["data"] == [
            {"old_id": 1, "arrived_at": 1556697600000},
            {"old_id": 2, "arrived_at": 1556697601500},
        ]

    @pytest.mark.asyncio
    async def test_current_version_comes_from_context(self, legacy_store, uploads, sessions):
        await UploadLegacyPulses().apply(
            make_env(legacy_store, uploads, sessions, current="1.1.0")
        )
        assert uploads.batches[0].current_version == "1.1.0"

    @pytest.mark.asyncio
    async def test_does_not_delete_records(self, legacy_store, uploads, sessions):
        before = dict(legacy_store.data)
        await UploadLegacyPulses().apply(make_env(legacy_store, uploads, sessions))

        assert legacy_store.data == before
        assert legacy_store.delete_calls == []
        assert legacy_store.set_calls == []

    @pytest.mark.asyncio
    async def test_fresh_session_per_attempt(self, legacy_store, sessions):
        uploads = MockUploadChannel.rejecting("Data upgrade refused.")
        step = UploadLegacyPulses()
        env = make_env(legacy_store, uploads, sessions)

        with pytest.raises(StepFailedError):
            await step.apply(env)
        await step.apply(env)

        assert [b.session_id for b in uploads.batches] == ["session-1", "session-2"]

    @pytest.mark.asyncio
    async def test_rejection_surfaces_server_message(self, legacy_store, sessions):
        uploads = MockUploadChannel.rejecting("Data upgrade refused.")

        with pytest.raises(StepFailedError) as exc_info:
            await UploadLegacyPulses().apply(make_env(legacy_store, uploads, sessions))

        assert exc_info.value.version == "2.0.0"
        assert exc_info.value.message == "Data upgrade refused."

    @pytest.mark.asyncio
    async def test_rejection_without_message(self, legacy_store, sessions):
        uploads = MockUploadChannel([UploadResponse(success=False)])

        with pytest.raises(StepFailedError) as exc_info:
            await UploadLegacyPulses().apply(make_env(legacy_store, uploads, sessions))

        assert exc_info.value.message == UNKNOWN_ERROR_MESSAGE

    @pytest.mark.asyncio
    async def test_transport_failure_is_generic(self, legacy_store, sessions):
        uploads = MockUploadChannel.disconnected()

        with pytest.raises(StepFailedError) as exc_info:
            await UploadLegacyPulses().apply(make_env(legacy_store, uploads, sessions))

        assert exc_info.value.message == UNKNOWN_ERROR_MESSAGE
        assert isinstance(exc_info.value.cause, TransportError)

    @pytest.mark.asyncio
    async def test_session_failure(self, legacy_store, uploads):
        with pytest.raises(StepFailedError) as exc_info:
            await UploadLegacyPulses().apply(
                make_env(legacy_store, uploads, MockSessionProvider(fail=True))
            )

        assert exc_info.value.message == "session endpoint unavailable"
        assert uploads.batches == []

    @pytest.mark.asyncio
    async def test_store_read_failure(self, legacy_store, uploads, sessions):
        legacy_store.fail_reads = True

        with pytest.raises(StepFailedError) as exc_info:
            await UploadLegacyPulses().apply(make_env(legacy_store, uploads, sessions))

        assert exc_info.value.message == "storage unavailable"
        assert uploads.batches == []

    @pytest.mark.asyncio
    async def test_record_removed_since_detection_is_skipped(self, legacy_store, uploads, sessions):
        del legacy_store.data["pulse-2"]

        await UploadLegacyPulses().apply(make_env(legacy_store, uploads, sessions))

        assert [p.old_id for p in uploads.batches[0].data] == [1]

    @pytest.mark.asyncio
    async def test_malformed_record_fails_step(self, legacy_store, uploads, sessions):
        legacy_store.data["pulse-2"] = {"receivedAt": 0}

        with pytest.raises(StepFailedError, match="pulse-2"):
            await UploadLegacyPulses().apply(make_env(legacy_store, uploads, sessions))

        assert uploads.batches == []

    @pytest.mark.asyncio
    async def test_no_legacy_records_uploads_empty_batch(self, store, uploads, sessions):
        await UploadLegacyPulses().apply(make_env(store, uploads, sessions, legacy_keys=()))

        assert len(uploads.batches) == 1
        assert uploads.batches[0].data == ()
