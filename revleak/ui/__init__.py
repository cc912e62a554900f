"""Customer-facing pages and their navigation helpers."""
