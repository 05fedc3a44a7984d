"""Wire formats for engine messages."""
