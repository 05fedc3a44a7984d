"""Local file storage for requests and document corpora."""

from QueryEngine.storage.corpus import load_document, load_documents, load_request, read_structured

__all__ = ["load_document", "load_documents", "load_request", "read_structured"]
