"""Read requests and document corpora from local files.

Supported layouts:

- ``.json``: one object, or a list of objects, or ``{"documents": [...]}``;
- ``.jsonl``/``.ndjson``: one object per line (blank lines skipped);
- ``.yml``/``.yaml``: same shapes as JSON.

Document values are plain JSON values; each is encoded to the engine's
JSON-bytes representation on load.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping

import yaml

from QueryEngine.core.models import encode_document
from QueryEngine.core.query import Request
from QueryEngine.protocol.codec import request_from_wire
from QueryEngine.utils.log import log

_JSONL_SUFFIXES = {".jsonl", ".ndjson"}
_YAML_SUFFIXES = {".yml", ".yaml"}


def read_structured(path: Path) -> Any:
    """Parse a JSON, JSONL or YAML file.

    JSONL files yield a list of parsed lines.

    Raises:
        ValueError: If the file cannot be parsed.
    """
    text = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    try:
        if suffix in _JSONL_SUFFIXES:
            return [json.loads(line) for line in text.splitlines() if line.strip()]
        if suffix in _YAML_SUFFIXES:
            return yaml.safe_load(text)
        return json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ValueError(f"{path}: cannot parse file: {e}") from e


def load_documents(path: Path) -> list[dict[str, bytes]]:
    """Load a corpus file into engine documents.

    Args:
        path: JSON, JSONL or YAML file.

    Returns:
        Documents in file order.

    Raises:
        ValueError: If the file is not a list of objects.
    """
    data = read_structured(path)
    if isinstance(data, Mapping):
        data = data["documents"] if "documents" in data else [data]
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a list of documents")

    documents: list[dict[str, bytes]] = []
    for idx, item in enumerate(data):
        if not isinstance(item, Mapping):
            raise ValueError(f"{path}: documents[{idx}] must be an object")
        documents.append(encode_document(item))
    log.debug("Loaded %d documents from %s", len(documents), path)
    return documents


def load_document(path: Path) -> dict[str, bytes]:
    """Load a file holding exactly one document."""
    documents = load_documents(path)
    if len(documents) != 1:
        raise ValueError(f"{path}: expected exactly one document, found {len(documents)}")
    return documents[0]


def load_request(path: Path) -> Request:
    """Load a request file; filter values are written as plain JSON values."""
    data = read_structured(path)
    return request_from_wire(data or {}, plain_values=True)
