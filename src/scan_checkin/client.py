"""aiohttp client for the remote recording service."""

from __future__ import annotations

import asyncio
import json
from typing import Any, List, Mapping, Optional

import aiohttp

from .core.errors import ServiceError, SubmissionTimeout, TransportError
from .core.records import CheckInRecord
from .utils.logger import get_logger

# Statuses that mean the request never reached the application.
GATEWAY_STATUSES = frozenset({502, 503, 504})

_log = get_logger("client")


class RecordingServiceClient:
    """POST check-in records and GET the directory of known names.

    The service takes a JSON body sent as ``text/plain`` and answers with JSON.
    Lost connections and truncated bodies raise :class:`TransportError`, a
    client-side timeout raises :class:`SubmissionTimeout`, and any other aiohttp
    failure is a :class:`ServiceError`.
    Use as an async context manager, or pass an existing
    :class:`aiohttp.ClientSession`.
    """

    def __init__(self, url: str, session: Optional[aiohttp.ClientSession] = None) -> None:
        if not url:
            raise ValueError("Recording service URL is required")
        self.url = url
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "RecordingServiceClient":
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise RuntimeError("RecordingServiceClient used outside its context")
        return self._session

    async def _request(self, method: str, *, data: Optional[str] = None, params: Optional[Mapping[str, str]] = None) -> Any:
        headers = {"Content-Type": "text/plain"}
        try:
            async with self.session.request(
                method, self.url, data=data, params=dict(params or {}), headers=headers
            ) as resp:
                if resp.status in GATEWAY_STATUSES:
                    _log.debug("%s %s -> %s", method, self.url, resp.status)
                    raise TransportError()
                if resp.status >= 400:
                    raise ServiceError(f"Service responded with HTTP {resp.status}", status=resp.status)
                body = await resp.text()
        except (aiohttp.ClientConnectionError, aiohttp.ClientPayloadError) as exc:
            _log.debug("%s %s failed: %s", method, self.url, exc)
            raise TransportError() from exc
        except asyncio.TimeoutError as exc:
            _log.debug("%s %s timed out", method, self.url)
            raise SubmissionTimeout() from exc
        except aiohttp.ClientError as exc:
            raise ServiceError(f"Request to the service failed: {exc}") from exc
        try:
            return json.loads(body)
        except json.JSONDecodeError as exc:
            raise ServiceError(f"Service reply is not JSON: {body[:200]!r}") from exc

    async def post_record(self, record: CheckInRecord, params: Optional[Mapping[str, str]] = None) -> Any:
        """Submit ``record``; ``params`` become query parameters (e.g. ``action=uncheck``)."""
        payload = json.dumps(record.to_dict(), ensure_ascii=False)
        return await self._request("POST", data=payload, params=params)

    async def list_names(self) -> List[str]:
        names = await self._request("GET")
        if not isinstance(names, list):
            raise ServiceError("Expected a list of names from the service")
        return [str(name) for name in names]

    __call__ = post_record


__all__ = ["GATEWAY_STATUSES", "RecordingServiceClient"]
