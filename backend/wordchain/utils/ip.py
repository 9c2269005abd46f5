from __future__ import annotations

from flask import Request

_FORWARD_HEADERS = ("CF-Connecting-IP", "X-Real-IP")


def get_client_ip(request: Request, trust_headers: bool = True) -> str | None:
    """Best-effort client address for request logs."""
    if trust_headers:
        for header in _FORWARD_HEADERS:
            value = request.headers.get(header)
            if value:
                return value.strip()

        xff = request.headers.get("X-Forwarded-For", "")
        first = next((p.strip() for p in xff.split(",") if p.strip()), None)
        if first:
            return first

    return request.remote_addr or None
