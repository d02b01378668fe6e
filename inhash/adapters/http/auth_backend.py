"""
HTTP auth backend adapter.

Talks to the app account service:
- POST /auth/login  {email, password} -> {user_id}
- POST /auth/signup {email, password} -> {user_id}
"""

from __future__ import annotations

from typing import Any

import httpx

from inhash.ports.errors import BackendUnavailableError

from ._status import raise_for_backend_status


class HttpAuthBackend:
    def __init__(
        self,
        base_url: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def login(self, email: str, password: str) -> str:
        return await self._post("/auth/login", {"email": email, "password": password})

    async def signup(self, email: str, password: str) -> str:
        return await self._post("/auth/signup", {"email": email, "password": password})

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _post(self, path: str, payload: dict[str, Any]) -> str:
        try:
            response = await self._client.post(path, json=payload)
        except httpx.TransportError as e:
            raise BackendUnavailableError(str(e) or type(e).__name__) from e

        raise_for_backend_status(response)
        try:
            return str(response.json()["user_id"])
        except (ValueError, KeyError, TypeError) as e:
            raise BackendUnavailableError("Malformed auth response") from e
