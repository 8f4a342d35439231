from .api_responses import APIResponse, api_route
from .timezone_utils import TimezoneUtils

__all__ = [
    "APIResponse",
    "api_route",
    "TimezoneUtils",
]
