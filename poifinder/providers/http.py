# Shared httpx plumbing for the source adapters.
# poifinder/providers/http.py
from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from ..core.errors import AdapterNetworkError, AdapterParseError, AdapterTimeout
from .base import POISource

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "poifinder/0.1 (+https://github.com/poifinder/poifinder)"

TRANSIENT_STATUSES = (429, 500, 502, 503, 504)


def _safe_get(d: Dict[str, Any], path: List[str], default=None):
    cur: Any = d
    for key in path:
        if not isinstance(cur, dict) or key not in cur:
            return default
        cur = cur[key]
    return cur


def _safe_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (ValueError, TypeError):
        return None


@dataclass(frozen=True)
class HttpSourceConfig:
    user_agent: str = DEFAULT_USER_AGENT
    timeout_s: float = 15.0
    # Retries only cover transient HTTP statuses; a timeout is always terminal.
    max_retries: int = 0
    base_backoff_s: float = 0.6


class JsonHttpSource:
    """
    Base for adapters that talk JSON over HTTP.

    Owns an optional httpx.AsyncClient. Pass one in (tests, shared pools) or use
    the adapter as an async context manager and it creates and closes its own.
    Every transport/decode failure is mapped onto the adapter error taxonomy.
    """

    source: POISource

    def __init__(self, cfg: HttpSourceConfig, client: Optional[httpx.AsyncClient] = None):
        self.cfg = cfg
        self._client = client
        self._owns_client = False

    @property
    def timeout_s(self) -> float:
        return self.cfg.timeout_s

    async def __aenter__(self):
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.cfg.timeout_s)
            self._owns_client = True
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
            self._owns_client = False

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError(f"{type(self).__name__} must be used with 'async with' or provide a client.")
        return self._client

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        h = {"User-Agent": self.cfg.user_agent, "Accept": "application/json"}
        if extra:
            h.update(extra)
        return h

    async def _request_json(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Performs one request and returns the decoded JSON object.

        Transient statuses (429/5xx) are retried with exponential backoff + jitter
        up to cfg.max_retries times; everything else fails immediately.
        """
        attempt = 0
        while True:
            try:
                resp = await self.client.request(
                    method,
                    url,
                    headers=self._headers(headers),
                    params=params,
                    data=data,
                    timeout=self.cfg.timeout_s,
                )
            except httpx.TimeoutException as e:
                raise AdapterTimeout(self.source, f"request timed out after {self.cfg.timeout_s}s") from e
            except httpx.HTTPError as e:
                raise AdapterNetworkError(self.source, f"network error: {e}") from e

            if resp.status_code in TRANSIENT_STATUSES and attempt < self.cfg.max_retries:
                backoff = self.cfg.base_backoff_s * (2 ** attempt)
                jitter = random.random() * 0.25
                logger.info(
                    "%s returned %s, retrying in %.2fs (attempt %d/%d)",
                    self.source.value, resp.status_code, backoff + jitter, attempt + 1, self.cfg.max_retries,
                )
                attempt += 1
                await asyncio.sleep(backoff + jitter)
                continue

            if resp.status_code != 200:
                raise AdapterNetworkError(
                    self.source,
                    f"HTTP {resp.status_code} from {url}",
                    status_code=resp.status_code,
                )

            try:
                payload = resp.json()
            except ValueError as e:
                raise AdapterParseError(self.source, f"invalid JSON response: {e}") from e
            if not isinstance(payload, dict):
                raise AdapterParseError(self.source, "expected JSON object response")
            return payload
