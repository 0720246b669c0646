"""Migration to 2.0.0: upload legacy pulse readings to the server.

Version 1.0.0 kept every received pulse in local storage under
"pulse-<id>" keys. From 2.0.0 the history lives server-side, so each
stored reading is sent to the client-upgrade endpoint as
{old_id, arrived_at}. arrived_at is the local receipt time; the transport
delay shown by 1.0.0 is not recomputed.

Local records are left in place. Removing them is a separate clean-up the
user confirms on its own.
"""

import structlog

from pulsewatch.core.errors import (
    LocalStoreError,
    SessionError,
    StepFailedError,
    TransportError,
)
from pulsewatch.domain.migration import MigratedPulse, UploadBatch
from pulsewatch.migration.steps.base import UNKNOWN_ERROR_MESSAGE, StepEnvironment

log = structlog.get_logger()

VERSION = "2.0.0"
DESCRIPTION = "Upload locally stored pulse readings to the server"


class UploadLegacyPulses:
    """Reads every legacy pulse record and uploads it in one batch."""

    version = VERSION
    description = DESCRIPTION

    async def apply(self, env: StepEnvironment) -> None:
        pulses = await self._collect(env)

        try:
            session_id = await env.sessions.new_session()
        except SessionError as e:
            raise StepFailedError(self.version, e.message, e)

        batch = UploadBatch(
            current_version=env.context.current_version,
            target_version=self.version,
            session_id=session_id,
            data=tuple(pulses),
        )

        try:
            response = await env.uploads.submit_migration(batch)
        except TransportError as e:
            log.error(
                "legacy_pulse_upload_transport_failed",
                version=self.version,
                session_id=session_id,
                error=str(e),
            )
            raise StepFailedError(self.version, UNKNOWN_ERROR_MESSAGE, e)

        if not response.success:
            raise StepFailedError(self.version, response.message or UNKNOWN_ERROR_MESSAGE)

        log.info(
            "legacy_pulses_uploaded",
            version=self.version,
            session_id=session_id,
            records=len(pulses),
        )

    async def _collect(self, env: StepEnvironment) -> list[MigratedPulse]:
        """Read the live value of every legacy key collected at detection."""
        pulses: list[MigratedPulse] = []
        for key in sorted(env.context.legacy_keys):
            try:
                record = await env.store.get(key)
            except LocalStoreError as e:
                raise StepFailedError(self.version, e.message, e)

            # Removed since detection; nothing left to upload for it
            if record is None:
                continue

            try:
                pulses.append(MigratedPulse.from_legacy_record(record))
            except ValueError as e:
                raise StepFailedError(
                    self.version, f"Legacy record {key!r} is malformed: {e}", e
                )
        return pulses
