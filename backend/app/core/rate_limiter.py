"""Rate limiting configuration for the application."""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Keyed per client address; game-server plugins each have their own
limiter = Limiter(key_func=get_remote_address)
