"""Download app: append-only download audit log."""
