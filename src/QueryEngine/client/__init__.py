"""Remote engine clients and their factories."""

from __future__ import annotations

from typing import TYPE_CHECKING

from QueryEngine.client.documents import DOCUMENT_SERVICE, DocumentClient
from QueryEngine.client.query import QUERY_SERVICE, QueryClient
from QueryEngine.client.transport import ClientConfig, Credentials, JsonRpcTransport

if TYPE_CHECKING:
    from QueryEngine.config import AppConfig


def client_config_from(config: AppConfig) -> ClientConfig:
    """Build connection options from the ``client`` config section.

    Raises:
        ValueError: If no endpoint is configured.
    """
    remote = config.client
    if not remote.endpoint:
        raise ValueError("client.endpoint is required for remote calls")
    credentials = Credentials(key_id=remote.key_id, secret=remote.secret) if remote.key_id else None
    return ClientConfig(
        endpoint=remote.endpoint,
        credentials=credentials,
        timeout=remote.timeout,
        max_retries=remote.max_retries,
        retry_base_delay=remote.retry_base_delay,
        retry_max_delay=remote.retry_max_delay,
    )


def create_query_client(config: AppConfig) -> QueryClient:
    return QueryClient(JsonRpcTransport(client_config_from(config)))


def create_document_client(config: AppConfig) -> DocumentClient:
    return DocumentClient(JsonRpcTransport(client_config_from(config)))


__all__ = [
    "ClientConfig",
    "Credentials",
    "DOCUMENT_SERVICE",
    "DocumentClient",
    "JsonRpcTransport",
    "QUERY_SERVICE",
    "QueryClient",
    "client_config_from",
    "create_document_client",
    "create_query_client",
]
