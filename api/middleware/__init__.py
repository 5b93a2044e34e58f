from .request_id import RequestIDMiddleware, resolve_client_ip
from .logging import LoggingMiddleware
from .cors import PermissiveCORSMiddleware

__all__ = [
    "RequestIDMiddleware",
    "LoggingMiddleware",
    "PermissiveCORSMiddleware",
    "resolve_client_ip",
]
