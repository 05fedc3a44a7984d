"""QueryEngine: search request evaluation and engine RPC client."""

__version__ = "0.1.0"
