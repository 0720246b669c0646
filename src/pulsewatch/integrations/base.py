"""Protocols for the collaborators the migration subsystem talks to.

The migration code only depends on these interfaces. Concrete adapters
live next to this module (SQLite store, HTTP client, console prompts).
"""

from abc import abstractmethod
from typing import Any, Optional, Protocol, Set, runtime_checkable

from pulsewatch.domain.migration import UploadBatch, UploadResponse


@runtime_checkable
class LocalStore(Protocol):
    """Durable local key-value namespace.

    All operations may raise LocalStoreError.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Return the decoded value for a key, or None if absent."""
        ...

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value under a key."""
        ...

    @abstractmethod
    async def list_keys(self) -> Set[str]:
        """Return every key currently stored."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete a key. Deleting an absent key is not an error."""
        ...


@runtime_checkable
class UploadChannel(Protocol):
    """Request/response exchange with the server's migration endpoint."""

    @abstractmethod
    async def submit_migration(self, batch: UploadBatch) -> UploadResponse:
        """Upload one batch.

        Returns:
            The server's structured answer, including application-level
            rejections (success=False).

        Raises:
            TransportError: If no structured response was received.
        """
        ...


@runtime_checkable
class SessionProvider(Protocol):
    """Source of opaque session ids correlating one upload."""

    @abstractmethod
    async def new_session(self) -> str:
        """Obtain a fresh session id.

        Raises:
            SessionError: If no session could be obtained.
        """
        ...


@runtime_checkable
class Confirmer(Protocol):
    """Yes/no prompt shown to the user before destructive work."""

    @abstractmethod
    async def confirm(self, prompt: str) -> bool:
        """Ask the user and wait for the answer."""
        ...


@runtime_checkable
class Notifier(Protocol):
    """Fire-and-forget display surface."""

    @abstractmethod
    def version_info(self, text: str) -> None:
        """Show the resolved application version."""
        ...

    @abstractmethod
    def success(self, title: str, detail: str = "") -> None:
        """Show a success banner."""
        ...

    @abstractmethod
    def warning(self, title: str, detail: str = "") -> None:
        """Show a warning banner."""
        ...

    @abstractmethod
    def failure(self, title: str, detail: str = "") -> None:
        """Show a failure banner."""
        ...
