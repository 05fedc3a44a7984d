"""JSON-over-HTTP transport for engine RPC services.

Every method call is a POST of a proto3 JSON message to
``{endpoint}/{service}/{method}``; the reply body is the JSON response
message.
"""

from __future__ import annotations

import random
import time
from dataclasses import dataclass
from typing import Any, Final, Mapping, Optional

import requests

from QueryEngine.utils.log import log

RETRYABLE_STATUS: Final[set[int]] = {429, 500, 502, 503, 504}

HEADERS: Final[dict[str, str]] = {
    "User-Agent": "query-engine/0.1",
    "Accept": "application/json",
    "Content-Type": "application/json",
}


@dataclass(frozen=True, slots=True)
class Credentials:
    """Key id and secret pair sent with every call."""

    key_id: str
    secret: str

    def header(self) -> str:
        return f"keysecret {self.key_id} {self.secret}"


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """Connection options for a remote engine.

    Attributes:
        endpoint: Base URL of the engine, e.g. ``https://engine.example.com``.
        credentials: Optional key id/secret pair.
        timeout: Per-attempt request timeout in seconds.
        max_retries: Retries after the first attempt.
        retry_base_delay: Base delay for exponential backoff (seconds).
        retry_max_delay: Maximum delay between retries (seconds).
    """

    endpoint: str
    credentials: Optional[Credentials] = None
    timeout: float = 30.0
    max_retries: int = 3
    retry_base_delay: float = 1.0
    retry_max_delay: float = 10.0


class JsonRpcTransport:
    """Low-level HTTP transport with retry and exponential backoff.

    Responsible only for moving JSON messages; encoding and decoding of the
    engine messages is handled by ``QueryEngine.protocol.codec``.
    """

    def __init__(self, config: ClientConfig, session: requests.Session | None = None) -> None:
        if not config.endpoint:
            raise ValueError("endpoint cannot be empty")
        self.config = config
        self._session = session or requests.Session()
        log.debug(
            "JsonRpcTransport initialized: endpoint=%s timeout=%.1f max_retries=%d credentials=%s",
            config.endpoint,
            config.timeout,
            config.max_retries,
            "yes" if config.credentials else "no",
        )

    def close(self) -> None:
        """Close the underlying HTTP session and release pooled connections."""
        self._session.close()

    def __enter__(self) -> JsonRpcTransport:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def url(self, service: str, method: str) -> str:
        return f"{self.config.endpoint.rstrip('/')}/{service}/{method}"

    def call(self, service: str, method: str, message: Mapping[str, Any]) -> dict[str, Any]:
        """Invoke ``service.method`` with a JSON message.

        Args:
            service: Fully qualified service name, e.g. ``sajari.engine.query.Query``.
            method: Method name, e.g. ``Search``.
            message: Request message as proto3 JSON.

        Returns:
            Response message as a JSON object (empty for ``Empty`` replies).

        Raises:
            requests.HTTPError: On non-retryable statuses or once retries are exhausted.
            requests.Timeout: If the request times out after all retries.
            requests.ConnectionError: If connection fails after all retries.
            ValueError: If the reply body is not a JSON object.
        """
        headers = dict(HEADERS)
        if self.config.credentials is not None:
            headers["Authorization"] = self.config.credentials.header()

        response = self._post_with_retry(self.url(service, method), json=dict(message), headers=headers)
        if not response.content:
            return {}
        data = response.json()
        if not isinstance(data, dict):
            raise ValueError(f"{service}/{method} returned a non-object reply")
        return data

    def _post_with_retry(self, endpoint: str, *, json: dict, headers: dict) -> requests.Response:
        """Execute POST request with retry logic.

        Retries on timeouts, connection errors and ``RETRYABLE_STATUS``.

        Raises:
            Exception: Last observed error after all retries exhausted.
        """
        last_error: Exception | None = None
        attempts = self.config.max_retries + 1

        for attempt in range(attempts):
            try:
                log.debug("RPC attempt %d/%d: %s", attempt + 1, attempts, endpoint)
                response = self._session.post(endpoint, json=json, headers=headers, timeout=self.config.timeout)

                if response.status_code in RETRYABLE_STATUS:
                    raise requests.HTTPError(f"HTTP {response.status_code}", response=response)

                response.raise_for_status()
                return response

            except (requests.Timeout, requests.ConnectionError) as e:
                last_error = e
                log.debug("RPC request failed (network): %s", type(e).__name__)

            except requests.HTTPError as e:
                last_error = e
                status = getattr(e.response, "status_code", None)
                if status and status not in RETRYABLE_STATUS:
                    log.error("RPC request failed (non-retryable): HTTP %s", status)
                    raise
                log.debug("RPC request failed (retryable): HTTP %s", status)

            if attempt < self.config.max_retries:
                delay = self._calculate_backoff_delay(attempt)
                log.info("RPC retry %d/%d after %.1fs (error: %s)", attempt + 1, self.config.max_retries, delay, last_error)
                time.sleep(delay)

        log.error("RPC request failed after %d attempts: %s", attempts, last_error)
        assert last_error is not None
        raise last_error

    def _calculate_backoff_delay(self, attempt: int) -> float:
        """Exponential backoff capped at ``retry_max_delay`` with ±25% jitter."""
        capped_delay = min(self.config.retry_base_delay * (2**attempt), self.config.retry_max_delay)
        return capped_delay * random.uniform(0.75, 1.25)
