"""HTTP response envelope and error mapping.

The application factory lives in :mod:`honorer.http.app`.
"""

from .errors import error_response, handle_exception
from .response import ApiResponse, PaginationInfo, ResponseEnvelope, format_return, render_plain

__all__ = [
    "ApiResponse",
    "ResponseEnvelope",
    "PaginationInfo",
    "format_return",
    "render_plain",
    "error_response",
    "handle_exception",
]
