"""
HTTP middleware: request ids and error handling.
"""
from .error_handler import ErrorDetail, error_handler_middleware, setup_error_handlers
from .request_id import RequestIDFilter, RequestIDMiddleware, get_request_id, set_request_id

__all__ = [
    "ErrorDetail",
    "RequestIDFilter",
    "RequestIDMiddleware",
    "error_handler_middleware",
    "get_request_id",
    "set_request_id",
    "setup_error_handlers",
]
