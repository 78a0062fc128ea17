# privchat/core/rate_limit.py

from slowapi import Limiter
from slowapi.util import get_remote_address

# Rate limit constants
API_LIMIT = "100/15minutes"
AUTH_LIMIT = "5/15minutes"
# progressive lockout on top of AUTH_LIMIT
AUTH_HOURLY_LIMIT = "10/hour"
UPLOAD_LIMIT = "20/15minutes"
PUBLIC_KEY_LIMIT = "10/minute"

# Initialize limiter; API_LIMIT applies to every route through SlowAPIMiddleware
limiter = Limiter(key_func=get_remote_address, default_limits=[API_LIMIT])
