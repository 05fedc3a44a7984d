"""Remote engine client configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping

from QueryEngine.config.common import (
    expect_float,
    expect_int,
    expect_str,
    get_optional_value,
    get_required_value,
    get_section,
)


@dataclass(frozen=True, slots=True)
class RemoteConfig:
    """Store validated settings for talking to a remote engine.

    ``key_id`` and ``secret`` are read from the environment variables named
    by ``key_id_env`` and ``secret_env``; both empty means no credentials.
    """

    endpoint: str
    key_id_env: str
    secret_env: str
    key_id: str
    secret: str
    timeout: float
    max_retries: int
    retry_base_delay: float
    retry_max_delay: float


def load_remote(raw: Mapping[str, Any]) -> RemoteConfig:
    """Load the ``client`` section.

    Args:
        raw: Root configuration mapping.

    Returns:
        Parsed remote client configuration.

    Raises:
        TypeError: If config types are invalid.
        ValueError: If required keys are missing.
    """
    section = get_section(raw, "client", required=True)
    key_id_env = expect_str(get_optional_value(section, "key_id_env", "QUERY_ENGINE_KEY_ID"), "client.key_id_env")
    secret_env = expect_str(get_optional_value(section, "secret_env", "QUERY_ENGINE_SECRET"), "client.secret_env")
    return RemoteConfig(
        endpoint=expect_str(get_required_value(section, "endpoint", "client.endpoint"), "client.endpoint"),
        key_id_env=key_id_env,
        secret_env=secret_env,
        key_id=_load_from_env(key_id_env),
        secret=_load_from_env(secret_env),
        timeout=expect_float(get_required_value(section, "timeout", "client.timeout"), "client.timeout"),
        max_retries=expect_int(get_required_value(section, "max_retries", "client.max_retries"), "client.max_retries"),
        retry_base_delay=expect_float(
            get_required_value(section, "retry_base_delay", "client.retry_base_delay"),
            "client.retry_base_delay",
        ),
        retry_max_delay=expect_float(
            get_required_value(section, "retry_max_delay", "client.retry_max_delay"),
            "client.retry_max_delay",
        ),
    )


def check_remote(config: RemoteConfig) -> None:
    """Validate remote client constraints.

    Raises:
        ValueError: If values violate client constraints.
    """
    if config.endpoint and not config.endpoint.startswith(("http://", "https://")):
        raise ValueError("client.endpoint must be an http(s) URL")
    if bool(config.key_id) != bool(config.secret):
        raise ValueError(
            f"Credentials need both {config.key_id_env} and {config.secret_env} environment variables. "
            "Set them in your .env file or shell environment."
        )
    if config.timeout <= 0:
        raise ValueError("client.timeout must be positive")
    if config.max_retries < 0:
        raise ValueError("client.max_retries must be >= 0")
    if config.retry_base_delay < 0:
        raise ValueError("client.retry_base_delay must be >= 0")
    if config.retry_max_delay < config.retry_base_delay:
        raise ValueError("client.retry_max_delay must be >= client.retry_base_delay")


def _load_from_env(name: str) -> str:
    return os.getenv(name, "").strip() if name else ""
