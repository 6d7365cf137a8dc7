"""HTTP transports for the signed request pipeline.

A transport sends exactly what it is given and reports status plus raw body
text, success or not. It never retries and never touches the headers.
"""
import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Mapping, Optional

import aiohttp
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from yarl import URL

from .errors import TransportError


@dataclass(frozen=True)
class RawResponse:
    status_code: int
    body_text: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class Transport(ABC):
    """Abstract async HTTP collaborator."""

    @abstractmethod
    async def send(
        self, method: str, url: str, headers: Mapping[str, str], body: Optional[str] = None
    ) -> RawResponse:
        """Send one request.

        Args:
            method: HTTP method
            url: Absolute URL including the query string
            headers: Headers to send unchanged
            body: Pre-serialized body, or None

        Returns:
            RawResponse, also for non-2xx statuses

        Raises:
            TransportError: On connection, TLS or timeout failures
        """
        pass

    async def close(self) -> None:
        pass


class AiohttpTransport(Transport):
    """aiohttp-backed transport.

    Usage:
        async with AiohttpTransport(timeout=10) as transport:
            resp = await transport.send("GET", url, headers)
    """

    def __init__(self, *, timeout: float = 10.0, session: Optional[aiohttp.ClientSession] = None):
        self.timeout = timeout
        self.session = session
        self._owns_session = session is None

    async def __aenter__(self):
        self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession()
            self._owns_session = True
        return self.session

    async def send(self, method, url, headers, body=None):
        session = self._ensure_session()
        try:
            # encoded=True stops yarl from re-quoting the signed query string
            async with session.request(
                method,
                URL(url, encoded=True),
                headers=dict(headers),
                data=body.encode("utf-8") if body else None,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                allow_redirects=False,
            ) as resp:
                # error pages from proxies are not always valid UTF-8
                text = await resp.text(errors="replace")
                return RawResponse(status_code=resp.status, body_text=text)
        except asyncio.TimeoutError as e:
            raise TransportError(f"{method} request timed out after {self.timeout}s") from e
        except aiohttp.ClientError as e:
            raise TransportError(f"{method} request failed: {e}") from e

    async def close(self) -> None:
        if self.session is not None and self._owns_session and not self.session.closed:
            await self.session.close()


class RequestsTransport(Transport):
    """requests-backed transport; the blocking call runs in a worker thread.

    A session created here gets adapters with retries disabled so a failed
    call is reported once, as-is. An injected session is used untouched.
    """

    def __init__(self, *, timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.timeout = timeout
        self._owns_session = session is None
        if session is None:
            session = requests.Session()
            no_retries = Retry(total=0, connect=0, read=0, status=0, raise_on_status=False)
            session.mount("https://", HTTPAdapter(max_retries=no_retries))
            session.mount("http://", HTTPAdapter(max_retries=no_retries))
        self.session = session

    def _send_blocking(self, method, url, headers, body) -> RawResponse:
        try:
            resp = self.session.request(
                method,
                url,
                headers=dict(headers),
                data=body.encode("utf-8") if body else None,
                timeout=self.timeout,
                allow_redirects=False,
            )
        except requests.exceptions.RequestException as e:
            raise TransportError(f"{method} request failed: {e}") from e
        return RawResponse(status_code=resp.status_code, body_text=resp.text)

    async def send(self, method, url, headers, body=None):
        return await asyncio.to_thread(self._send_blocking, method, url, headers, body)

    async def close(self) -> None:
        if self._owns_session:
            self.session.close()
