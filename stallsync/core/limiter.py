"""Rate limiter instance for SlowAPI.

Shared so both main (app.state.limiter) and route modules can use the same
instance without circular imports. Decorated routes must accept a
``request: Request`` argument.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)

ADMIN_LIMIT = "20/minute"
WRITE_ENDPOINT_LIMIT = "120/minute"
IMPORT_LIMIT = "10/minute"
OAUTH_LIMIT = "30/minute"

limit_admin = limiter.limit(ADMIN_LIMIT)
limit_writes = limiter.limit(WRITE_ENDPOINT_LIMIT)
limit_imports = limiter.limit(IMPORT_LIMIT)
limit_oauth = limiter.limit(OAUTH_LIMIT)
