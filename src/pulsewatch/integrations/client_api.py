"""HTTP client for the dashboard server's client-upgrade API.

Two endpoints are used during a data migration:
- session endpoint: hands out an opaque id correlating one upload
- client-upgrade endpoint: receives a batch of transformed records

No call is retried here. A failed upload is reported to the user, who
decides whether to try again.
"""

import uuid
from typing import Any, Optional

import httpx
import structlog

from pulsewatch.core.config import ConfigManager
from pulsewatch.core.errors import SessionError, TransportError
from pulsewatch.domain.migration import UploadBatch, UploadResponse

log = structlog.get_logger()

DEFAULT_BASE_URL = "http://localhost:9000"
DEFAULT_UPGRADE_PATH = "/client-upgrade"
DEFAULT_SESSION_PATH = "/client-session"
DEFAULT_TIMEOUT = 30.0


class ClientUpgradeApi:
    """Async HTTP client for migration uploads and session ids.

    Implements both the UploadChannel and SessionProvider protocols.

    Usage:
        async with ClientUpgradeApi("http://localhost:9000") as api:
            session_id = await api.new_session()
            response = await api.submit_migration(batch)
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        upgrade_path: str = DEFAULT_UPGRADE_PATH,
        session_path: str = DEFAULT_SESSION_PATH,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            base_url: Server root URL.
            upgrade_path: Path of the client-upgrade endpoint.
            session_path: Path of the session endpoint.
            timeout: Request timeout in seconds. A timeout fails the upload.
            transport: Optional httpx transport (used by tests).
        """
        self._base_url = base_url.rstrip("/")
        self._upgrade_path = upgrade_path
        self._session_path = session_path
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._log = log.bind(component="client_upgrade_api")

    @classmethod
    def from_config(
        cls,
        config: ConfigManager,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "ClientUpgradeApi":
        """Build a client from the [server] and [upload] config sections."""
        return cls(
            base_url=config.get("server.url", DEFAULT_BASE_URL),
            upgrade_path=config.get("server.upgrade_path", DEFAULT_UPGRADE_PATH),
            session_path=config.get("server.session_path", DEFAULT_SESSION_PATH),
            timeout=config.get_float("upload.timeout_seconds", DEFAULT_TIMEOUT),
            transport=transport,
        )

    async def connect(self) -> None:
        """Initialize the HTTP client."""
        if self._client is not None:
            return

        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
            headers={"Accept": "application/json"},
        )
        self._log.info("client_upgrade_api_connected", base_url=self._base_url)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            self._log.info("client_upgrade_api_closed")

    async def __aenter__(self) -> "ClientUpgradeApi":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _ensure_connected(self) -> httpx.AsyncClient:
        if self._client is None:
            raise TransportError("Client not connected. Call connect() first.")
        return self._client

    async def new_session(self) -> str:
        """Request a fresh session id from the server.

        Raises:
            SessionError: If the server cannot be reached or answers without an id.
        """
        client = self._ensure_connected()
        try:
            response = await client.get(self._session_path)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as e:
            raise SessionError("Cannot obtain a migration session", e)
        except ValueError as e:
            raise SessionError("Session response is not valid JSON", e)

        session_id = body.get("sessionId") if isinstance(body, dict) else None
        if not session_id:
            raise SessionError("Session response has no sessionId")

        self._log.debug("migration_session_obtained", session_id=session_id)
        return str(session_id)

    async def submit_migration(self, batch: UploadBatch) -> UploadResponse:
        """POST one batch to the client-upgrade endpoint.

        An error status with a JSON message is an application-level rejection
        and is returned as success=False. Anything without a structured body
        raises TransportError.
        """
        client = self._ensure_connected()
        self._log.info(
            "migration_upload_started",
            current_version=batch.current_version,
            target_version=batch.target_version,
            session_id=batch.session_id,
            records=len(batch.data),
        )

        try:
            response = await client.post(self._upgrade_path, json=batch.to_payload())
        except httpx.TimeoutException as e:
            raise TransportError("Migration upload timed out", e)
        except httpx.HTTPError as e:
            raise TransportError("Migration upload failed before a response was received", e)

        body = self._decode(response)
        if response.is_success:
            if body is None:
                raise TransportError(
                    f"Unreadable response from {self._upgrade_path} (HTTP {response.status_code})"
                )
            try:
                result = UploadResponse.from_json(body)
            except ValueError as e:
                raise TransportError("Malformed response from client-upgrade endpoint", e)
        else:
            message = body.get("message") if isinstance(body, dict) else None
            if not message:
                raise TransportError(
                    f"Client-upgrade endpoint returned HTTP {response.status_code}"
                )
            result = UploadResponse(success=False, message=str(message))

        self._log.info(
            "migration_upload_finished",
            target_version=batch.target_version,
            status_code=response.status_code,
            success=result.success,
        )
        return result

    @staticmethod
    def _decode(response: httpx.Response) -> Optional[Any]:
        try:
            return response.json()
        except ValueError:
            return None


class LocalSessionProvider:
    """Mints session ids on the client, for servers that accept them."""

    async def new_session(self) -> str:
        return uuid.uuid4().hex
