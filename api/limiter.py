"""
api/limiter.py -- Shared slowapi rate limiter instance.

api/main.py attaches it to app.state and registers the 429 handler;
api/routes/auth.py applies the per-route login limit with @limiter.limit().

A single shared instance means every route shares one in-memory counter
store. Counters are per process; a multi-worker deployment should point
storage_uri at a shared backend.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")
