"""HTTP middleware: timeout, request size limit, request ID, correlation ID, security headers.

Applied in main app; order matters (first added = outermost).
"""

from stallsync.middleware.correlation_id import CorrelationIDMiddleware
from stallsync.middleware.request_id import RequestIDMiddleware
from stallsync.middleware.request_size_limit import RequestSizeLimitMiddleware
from stallsync.middleware.security_headers import SecurityHeadersMiddleware
from stallsync.middleware.timeout import TimeoutMiddleware

__all__ = [
    "CorrelationIDMiddleware",
    "RequestIDMiddleware",
    "RequestSizeLimitMiddleware",
    "SecurityHeadersMiddleware",
    "TimeoutMiddleware",
]
