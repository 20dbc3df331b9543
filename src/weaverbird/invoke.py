"""Remote function invocation.

States never talk to the network directly; they go through an ``Invoker``
that sends a JSON payload to a named remote function and returns the decoded
JSON response. ``HttpInvoker`` is the production implementation.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

import httpx

from weaverbird.config.backend import BackendConfig
from weaverbird.config.secrets import fetch_secret
from weaverbird.logging import TRACE, get_logger

log = get_logger("invoke")

API_TOKEN_SECRET = "WEAVERBIRD_API_TOKEN"


class InvocationError(Exception):
    """A remote call failed at the transport level."""

    def __init__(self, function_id: str, message: str) -> None:
        self.function_id = function_id
        super().__init__(f"{function_id}: {message}")


@runtime_checkable
class Invoker(Protocol):
    """Sends a request payload to a remote function."""

    async def invoke(self, function_id: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        """Invoke ``function_id`` and return its JSON response.

        Raises:
            InvocationError: On network or remote failure.
        """
        ...


class HttpInvoker:
    """Invoker that POSTs JSON payloads over HTTP.

    Each function is addressed as ``{endpoint}/functions/{function_id}/invocations``.

    Usage:
        async with HttpInvoker(backend.endpoint, token="...") as invoker:
            response = await invoker.invoke(arn, {"task": "..."})
    """

    def __init__(
        self,
        endpoint: str,
        *,
        token: str | None = None,
        timeout: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._endpoint = endpoint.rstrip("/")
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(timeout=timeout)
        self._headers = headers

    @classmethod
    def from_config(cls, backend: BackendConfig, **kwargs: Any) -> HttpInvoker:
        """Build an invoker for a backend, picking up the API token secret."""
        kwargs.setdefault("token", fetch_secret(API_TOKEN_SECRET))
        return cls(backend.endpoint, **kwargs)

    @property
    def endpoint(self) -> str:
        return self._endpoint

    def function_url(self, function_id: str) -> str:
        return f"{self._endpoint}/functions/{function_id}/invocations"

    async def invoke(self, function_id: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        try:
            response = await self._client.post(
                self.function_url(function_id),
                json=dict(payload),
                headers=self._headers,
            )
        except httpx.HTTPError as e:
            raise InvocationError(function_id, f"request failed: {e}") from e

        if response.status_code >= 400:
            raise InvocationError(
                function_id, f"HTTP {response.status_code}: {response.text[:200]}"
            )

        try:
            body = response.json()
        except json.JSONDecodeError as e:
            raise InvocationError(function_id, "response is not valid JSON") from e

        if not isinstance(body, dict):
            raise InvocationError(function_id, "response is not a JSON object")
        return body

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> HttpInvoker:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


async def invoke(
    client: Invoker, function_id: str, payload: Mapping[str, Any]
) -> dict[str, Any]:
    """Invoke a remote function through ``client``.

    Transport errors from the client are re-raised as InvocationError.
    """
    log.log(TRACE, "Invoking %s", function_id)
    try:
        return await client.invoke(function_id, payload)
    except InvocationError:
        raise
    except (OSError, httpx.HTTPError) as e:
        raise InvocationError(function_id, str(e)) from e
