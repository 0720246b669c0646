"""Mock collaborators for the migration subsystem.

Controllable test doubles that:
- Keep local storage in a dict
- Return scripted upload responses or transport failures
- Answer confirmation prompts from a script
- Track every call for assertions
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Union

from pulsewatch.core.errors import LocalStoreError, SessionError, TransportError
from pulsewatch.domain.migration import UploadBatch, UploadResponse


class MockLocalStore:
    """In-memory LocalStore.

    Keys listed in fail_delete raise LocalStoreError on delete. With
    fail_reads set, get() and list_keys() raise.
    """

    def __init__(self, data: Optional[Dict[str, Any]] = None) -> None:
        self.data: Dict[str, Any] = dict(data or {})
        self.fail_delete: Set[str] = set()
        self.fail_reads = False
        self.fail_writes = False
        self.get_calls: List[str] = []
        self.set_calls: List[tuple] = []
        self.delete_calls: List[str] = []

    async def get(self, key: str) -> Optional[Any]:
        self.get_calls.append(key)
        if self.fail_reads:
            raise LocalStoreError("storage unavailable")
        return self.data.get(key)

    async def set(self, key: str, value: Any) -> None:
        self.set_calls.append((key, value))
        if self.fail_writes:
            raise LocalStoreError("storage is read-only")
        self.data[key] = value

    async def list_keys(self) -> Set[str]:
        if self.fail_reads:
            raise LocalStoreError("storage unavailable")
        return set(self.data)

    async def delete(self, key: str) -> None:
        self.delete_calls.append(key)
        if key in self.fail_delete:
            raise LocalStoreError(f"cannot delete {key}")
        self.data.pop(key, None)


ScriptedUpload = Union[UploadResponse, Exception]


class MockUploadChannel:
    """UploadChannel returning scripted responses in order.

    When the script runs out, every further upload succeeds.
    """

    def __init__(self, responses: Optional[List[ScriptedUpload]] = None) -> None:
        self.responses: List[ScriptedUpload] = list(responses or [])
        self.batches: List[UploadBatch] = []

    async def submit_migration(self, batch: UploadBatch) -> UploadResponse:
        self.batches.append(batch)
        if self.responses:
            response = self.responses.pop(0)
            if isinstance(response, Exception):
                raise response
            return response
        return UploadResponse(success=True, message="Client data upgraded.")

    @classmethod
    def rejecting(cls, message: str) -> "MockUploadChannel":
        return cls([UploadResponse(success=False, message=message)])

    @classmethod
    def disconnected(cls) -> "MockUploadChannel":
        return cls([TransportError("connection reset by peer")])


class MockSessionProvider:
    """Hands out session-1, session-2, ..."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.issued: List[str] = []

    async def new_session(self) -> str:
        if self.fail:
            raise SessionError("session endpoint unavailable")
        session_id = f"session-{len(self.issued) + 1}"
        self.issued.append(session_id)
        return session_id


class MockConfirmer:
    """Answers prompts from a list; answers False once the list is empty."""

    def __init__(self, *answers: bool) -> None:
        self.answers: List[bool] = list(answers)
        self.prompts: List[str] = []

    async def confirm(self, prompt: str) -> bool:
        self.prompts.append(prompt)
        if not self.answers:
            return False
        return self.answers.pop(0)


@dataclass
class MockNotifier:
    """Records every notification."""

    versions: List[str] = field(default_factory=list)
    successes: List[tuple] = field(default_factory=list)
    warnings: List[tuple] = field(default_factory=list)
    failures: List[tuple] = field(default_factory=list)

    def version_info(self, text: str) -> None:
        self.versions.append(text)

    def success(self, title: str, detail: str = "") -> None:
        self.successes.append((title, detail))

    def warning(self, title: str, detail: str = "") -> None:
        self.warnings.append((title, detail))

    def failure(self, title: str, detail: str = "") -> None:
        self.failures.append((title, detail))


def legacy_pulse(pulse_id: int, received_at: Any = "2019-05-01T08:00:00.000Z", **pulse: Any) -> dict:
    """A record as version 1.0.0 stored it under "pulse-<id>"."""
    body = {
        "id": pulse_id,
        "device_id": 1,
        "pulse": 72.0,
        "emitted_at": "2019-05-01 07:59:59",
    }
    body.update(pulse)
    return {"pulse": body, "receivedAt": received_at}
