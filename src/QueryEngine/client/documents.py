"""Client for the ``sajari.engine.store.doc.Document`` service."""

from __future__ import annotations

from typing import Sequence

from QueryEngine.client.transport import JsonRpcTransport
from QueryEngine.core.models import Document, Key, KeyMeta
from QueryEngine.protocol.codec import (
    documents_from_wire,
    documents_to_wire,
    keys_from_wire,
    keys_metas_to_wire,
    keys_to_wire,
)
from QueryEngine.utils.log import log

DOCUMENT_SERVICE = "sajari.engine.store.doc.Document"


class DocumentClient:
    """Add, fetch, delete and patch documents in a remote collection."""

    def __init__(self, transport: JsonRpcTransport) -> None:
        self.transport = transport

    def close(self) -> None:
        self.transport.close()

    def __enter__(self) -> DocumentClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def add(self, documents: Sequence[Document]) -> list[Key]:
        """Add documents.

        Returns:
            One key per added document, in input order.
        """
        log.debug("Adding %d documents", len(documents))
        return keys_from_wire(self.transport.call(DOCUMENT_SERVICE, "Add", documents_to_wire(documents)))

    def get(self, keys: Sequence[Key]) -> list[dict[str, bytes]]:
        """Fetch the documents identified by ``keys``."""
        log.debug("Fetching %d documents", len(keys))
        return documents_from_wire(self.transport.call(DOCUMENT_SERVICE, "Get", keys_to_wire(keys)))

    def delete(self, keys: Sequence[Key]) -> None:
        log.debug("Deleting %d documents", len(keys))
        self.transport.call(DOCUMENT_SERVICE, "Delete", keys_to_wire(keys))

    def patch(self, keys_metas: Sequence[KeyMeta]) -> None:
        """Patch fields of existing documents; a JSON ``null`` value clears a field."""
        log.debug("Patching %d documents", len(keys_metas))
        self.transport.call(DOCUMENT_SERVICE, "Patch", keys_metas_to_wire(keys_metas))
