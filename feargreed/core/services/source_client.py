"""HTTP client for the Fear & Greed index provider."""

from __future__ import annotations

import json
from datetime import date
from time import perf_counter
from typing import Any

import httpx
from pydantic import ValidationError

from feargreed.core.config import SourceConfig
from feargreed.core.exceptions import IncompleteSourceDataError, TransportError
from feargreed.core.logging import logger
from feargreed.core.models import RawSourceResponse
from feargreed.core.monitoring import MetricsCollector, get_metrics_collector
from feargreed.core.patterns import ExponentialBackoffRetry, RetryConfig


class SourceClient:
    """Issues GET requests against the provider's ``graphdata`` endpoints.

    The provider rejects requests lacking browser-like headers, so every request
    carries ``User-Agent``, ``Accept``, ``Accept-Language`` and ``Referer``.
    Transport problems surface as :class:`TransportError`; bodies that are not a
    usable JSON object surface as :class:`IncompleteSourceDataError`.
    """

    DAILY_PATH = "/graphdata/{day}"
    HISTORY_PATH = "/graphdata"

    def __init__(
        self,
        config: SourceConfig | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        retry: ExponentialBackoffRetry | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.config = config or SourceConfig()
        self._client = http_client
        self._owns_client = http_client is None
        self._retry = retry or ExponentialBackoffRetry(
            RetryConfig(max_attempts=self.config.max_attempts, base_delay=self.config.backoff_factor)
        )
        self._metrics = metrics or get_metrics_collector()

    async def __aenter__(self) -> SourceClient:
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    @property
    def headers(self) -> dict[str, str]:
        return {
            "User-Agent": self.config.user_agent,
            "Accept": "application/json",
            "Accept-Language": self.config.accept_language,
            "Referer": self.config.referer,
        }

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.timeout),
                follow_redirects=True,
            )
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""

        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def daily_url(self, day: date) -> str:
        return self.config.base_url.rstrip("/") + self.DAILY_PATH.format(day=day.isoformat())

    def history_url(self) -> str:
        return self.config.base_url.rstrip("/") + self.HISTORY_PATH

    async def fetch_daily(self, day: date) -> RawSourceResponse:
        """Fetch the single-day payload for ``day``."""

        return await self._fetch(self.daily_url(day), endpoint="daily")

    async def fetch_history(self) -> RawSourceResponse:
        """Fetch the bulk payload carrying the full historical series."""

        return await self._fetch(self.history_url(), endpoint="history")

    async def _fetch(self, url: str, *, endpoint: str) -> RawSourceResponse:
        payload = await self._retry.execute(self._get_json, url, endpoint)
        return self._parse(payload, url)

    async def _get_json(self, url: str, endpoint: str) -> Any:
        client = self._ensure_client()
        logger.bind(endpoint=endpoint).debug("GET {}", url)
        start = perf_counter()
        try:
            response = await client.get(url, headers=self.headers)
        except httpx.TimeoutException as exc:
            self._metrics.observe_request(endpoint, perf_counter() - start, success=False)
            raise TransportError(f"Request to {url} timed out after {self.config.timeout}s", url=url) from exc
        except httpx.HTTPError as exc:
            self._metrics.observe_request(endpoint, perf_counter() - start, success=False)
            raise TransportError(f"Request to {url} failed: {exc}", url=url) from exc

        elapsed = perf_counter() - start
        if not response.is_success:
            self._metrics.observe_request(endpoint, elapsed, success=False)
            raise TransportError(
                f"Provider answered {response.status_code} for {url}",
                url=url,
                status_code=response.status_code,
            )
        self._metrics.observe_request(endpoint, elapsed)

        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise IncompleteSourceDataError(
                f"Provider returned a non-JSON body for {url}",
                details={"url": url, "content_type": response.headers.get("content-type")},
            ) from exc

    @staticmethod
    def _parse(payload: Any, url: str) -> RawSourceResponse:
        if not isinstance(payload, dict) or not payload:
            raise IncompleteSourceDataError(
                f"Provider returned an empty or non-object payload for {url}",
                details={"url": url, "payload_type": type(payload).__name__},
            )
        try:
            response = RawSourceResponse.model_validate(payload)
        except ValidationError as exc:
            raise IncompleteSourceDataError(
                f"Provider payload for {url} failed validation",
                details={"url": url, "errors": exc.error_count()},
            ) from exc
        if response.is_empty():
            logger.warning("Payload from {} has none of the known sections (keys: {})", url, sorted(payload)[:10])
        return response


__all__ = ["SourceClient"]
