"""Read-only analytics API."""
