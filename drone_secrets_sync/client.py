"""
Drone Client — Credentials and HTTP transport for the Drone secrets API.

Reads the server address and token from the environment:
    DRONE_SERVER = <url of the Drone server, e.g. https://drone.example.com>
    DRONE_TOKEN = <personal access token>
    DRONE_TIMEOUT = <optional seconds per API call, default 30>

Security Note:
    Never log the token or secret payloads. Only log methods and paths.
"""
import os
import asyncio
import logging
from typing import Any, Optional
from urllib.parse import quote

import orjson
import aiohttp
from pydantic import BaseModel, Field, ValidationError

from .conf import (
    DRONE_SERVER_VARIABLE,
    DRONE_TOKEN_VARIABLE,
    DRONE_TIMEOUT,
    DRONE_TIMEOUT_VARIABLE,
)
from .exceptions import ConfigurationError, TransportError

logger = logging.getLogger("drone_secrets_sync.client")


class Credential(BaseModel):
    """Drone server address, access token and per-call timeout."""

    server: str = Field(min_length=1)
    token: str = Field(min_length=1, repr=False)
    timeout: float = Field(default=DRONE_TIMEOUT, gt=0)

    @classmethod
    def from_env(cls) -> "Credential":
        """Create a Credential from DRONE_SERVER, DRONE_TOKEN and DRONE_TIMEOUT.

        DRONE_TIMEOUT is optional and given in seconds.

        Returns:
            Populated Credential instance.

        Raises:
            ConfigurationError: If the server or token is unset or empty, or
                the timeout is not a positive number.
        """
        values = {}
        for field, variable in (
            ("server", DRONE_SERVER_VARIABLE),
            ("token", DRONE_TOKEN_VARIABLE),
        ):
            value = os.environ.get(variable, "")
            if not value:
                raise ConfigurationError(
                    f"{variable} environment variable must be set and non-empty"
                )
            values[field] = value

        timeout = os.environ.get(DRONE_TIMEOUT_VARIABLE, "")
        if timeout:
            try:
                values["timeout"] = float(timeout)
            except ValueError as err:
                raise ConfigurationError(
                    f"{DRONE_TIMEOUT_VARIABLE} must be a number of seconds, "
                    f"got {timeout!r}"
                ) from err
        try:
            return cls(**values)
        except ValidationError as err:
            raise ConfigurationError(
                f"Invalid Drone credentials: {err}"
            ) from err


def _segment(value: str) -> str:
    """Quote a value for use as a single URL path segment."""
    return quote(value, safe="")


class DroneClient:
    """Minimal async client for the Drone repository/organisation secrets API.

    Use as an async context manager, or call ``close()`` when done::

        async with DroneClient(Credential.from_env()) as client:
            names = await client.org_secret_list("octocat")

    Any failure (connection error, timeout or non-2xx response) raises
    ``TransportError``. Nothing is retried.
    """

    def __init__(
        self,
        credential: Credential,
        timeout: Optional[float] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self._server = credential.server.rstrip("/")
        self._token = credential.token
        self._timeout = aiohttp.ClientTimeout(
            total=credential.timeout if timeout is None else timeout
        )
        self._session = session

    def __repr__(self) -> str:
        return f"<DroneClient server={self._server}>"

    async def __aenter__(self) -> "DroneClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={
                    "Authorization": f"Bearer {self._token}",
                    "Accept": "application/json",
                },
                timeout=self._timeout,
            )
        return self._session

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()

    async def _request(
        self, method: str, path: str, payload: Optional[dict] = None
    ) -> Any:
        """Send a request to the Drone API and decode the JSON response.

        Raises:
            TransportError: On connection failure, timeout or non-2xx status.
        """
        url = f"{self._server}{path}"
        kwargs: dict[str, Any] = {}
        if payload is not None:
            kwargs["data"] = orjson.dumps(payload)
            kwargs["headers"] = {"Content-Type": "application/json"}
        logger.debug("%s %s", method, path)
        try:
            async with self._get_session().request(method, url, **kwargs) as response:
                body = await response.read()
                if response.status >= 400:
                    raise TransportError(
                        f"{method} {path} failed: {self._error_message(body, response.reason)}",
                        status=response.status,
                    )
        except aiohttp.ClientError as err:
            raise TransportError(f"{method} {path} failed: {err}") from err
        except asyncio.TimeoutError as err:
            raise TransportError(f"{method} {path} timed out") from err
        if not body:
            return None
        try:
            return orjson.loads(body)
        except orjson.JSONDecodeError as err:
            raise TransportError(
                f"{method} {path} returned invalid JSON", status=response.status
            ) from err

    @staticmethod
    def _error_message(body: bytes, reason: Optional[str]) -> str:
        # Drone reports errors as {"message": "..."}
        try:
            parsed = orjson.loads(body)
        except orjson.JSONDecodeError:
            parsed = None
        if isinstance(parsed, dict) and parsed.get("message"):
            return str(parsed["message"])
        return reason or "unknown error"

    # ------------------------------------------------------------------
    # Repository secrets
    # ------------------------------------------------------------------

    async def repo_secret_list(self, owner: str, name: str) -> list[dict]:
        """Return the secrets of a repository (values are never included)."""
        path = f"/api/repos/{_segment(owner)}/{_segment(name)}/secrets"
        return await self._request("GET", path) or []

    async def repo_secret_create(self, owner: str, name: str, secret: dict) -> dict:
        path = f"/api/repos/{_segment(owner)}/{_segment(name)}/secrets"
        return await self._request("POST", path, secret)

    async def repo_secret_update(self, owner: str, name: str, secret: dict) -> dict:
        path = (
            f"/api/repos/{_segment(owner)}/{_segment(name)}"
            f"/secrets/{_segment(secret['name'])}"
        )
        return await self._request("PATCH", path, secret)

    async def repo_secret_delete(self, owner: str, name: str, secret: str) -> None:
        path = (
            f"/api/repos/{_segment(owner)}/{_segment(name)}"
            f"/secrets/{_segment(secret)}"
        )
        await self._request("DELETE", path)

    # ------------------------------------------------------------------
    # Organisation secrets
    # ------------------------------------------------------------------

    async def org_secret_list(self, namespace: str) -> list[dict]:
        """Return the secrets of a namespace (values are never included)."""
        return await self._request("GET", f"/api/secrets/{_segment(namespace)}") or []

    async def org_secret_create(self, namespace: str, secret: dict) -> dict:
        return await self._request(
            "POST", f"/api/secrets/{_segment(namespace)}", secret,
        )

    async def org_secret_update(self, namespace: str, secret: dict) -> dict:
        path = f"/api/secrets/{_segment(namespace)}/{_segment(secret['name'])}"
        return await self._request("PATCH", path, secret)

    async def org_secret_delete(self, namespace: str, secret: str) -> None:
        path = f"/api/secrets/{_segment(namespace)}/{_segment(secret)}"
        await self._request("DELETE", path)
