"""Core data model: query requests, responses and error types."""
