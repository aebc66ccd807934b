"""
api/limiter.py -- Shared slowapi rate limiter instance.

Import this in api/main.py (to mount as middleware) and api/routes/auth.py
(to limit password attempts on POST /api/verify with @limiter.limit()).

One shared instance means one in-memory counter store. A limiter created per
module would keep separate counters and the login limit would never trigger.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")
