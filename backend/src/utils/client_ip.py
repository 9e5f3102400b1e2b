"""
Client IP extraction utility.

Extracts the real client address from HTTP requests and WebSocket
connections, accounting for reverse proxies (e.g., nginx).
"""

from starlette.requests import HTTPConnection


def get_client_ip(conn: HTTPConnection) -> str:
    """
    Extract the real client IP address from a request or WebSocket.

    Checks X-Forwarded-For first (requests behind a reverse proxy), then
    falls back to the direct connection address.

    Returns:
        Client IP address string, or "unknown" if unavailable
    """
    forwarded = conn.headers.get("X-Forwarded-For")
    if forwarded:
        # First entry is the original client
        return forwarded.split(",")[0].strip()
    return conn.client.host if conn.client else "unknown"
