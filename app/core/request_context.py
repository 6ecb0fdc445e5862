# app/core/request_context.py
"""
Best-effort client address for a request.

The address is an advisory anti-abuse signal only: it is neither unique nor
unspoofable, and X-Forwarded-For is honoured only when TRUST_PROXY_HEADERS is on.
"""

from typing import Optional

from fastapi import Request

from app.core.config import settings


def get_client_address(request: Request) -> Optional[str]:
    if settings.TRUST_PROXY_HEADERS:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            # left-most entry is the original client
            return forwarded.split(",")[0].strip() or None
        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip.strip()
    if request.client:
        return request.client.host
    return None


def get_user_agent(request: Request) -> str:
    return request.headers.get("user-agent") or "Unknown User-Agent"


def rate_limit_key(request: Request) -> str:
    return get_client_address(request) or "unknown"
