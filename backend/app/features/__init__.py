"""Feature packages: one directory per bounded area of the backend."""
