"""
api/limiter.py -- The one slowapi Limiter shared by every route module.

api/main.py mounts it (app.state.limiter + SlowAPIMiddleware); the route
modules decorate handlers with @limiter.limit(). Budgets in use:
  POST /api/auth/login             LOGIN_RATE_LIMIT (default 10/minute)
  POST/PUT/DELETE /api/prg-sessions  30/minute

Counters are per client IP, kept in process memory, and counted over a moving
window. A second Limiter instance would keep separate counters, so import this
one.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://", strategy="moving-window")
