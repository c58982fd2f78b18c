"""Rate limiting configuration for API endpoints."""

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from assistant_metrics.config import get_settings


def get_rate_limit_key(request: Request) -> str:
    """Get composite key: user_id + IP for user-scoped requests, IP otherwise."""
    ip = get_remote_address(request)

    user_id = request.query_params.get("user_id")
    if user_id:
        return f"user:{user_id}:{ip}"

    return ip


def default_rate_limit() -> str:
    """Per-minute limit taken from settings."""
    return f"{get_settings().rate_limit_per_minute}/minute"


limiter = Limiter(key_func=get_rate_limit_key)
