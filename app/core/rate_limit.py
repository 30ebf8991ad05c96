"""Rate limiting configuration using slowapi."""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Rate limiter instance, keyed by remote address
limiter = Limiter(key_func=get_remote_address)

# Polls fan out to (prompts × engines) upstream calls
POLL_RATE_LIMIT = "5/minute"
