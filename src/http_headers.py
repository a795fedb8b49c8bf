"""HTTP header helpers for the dashboard notifier.

Builds the request headers sent with every dashboard event:

- Content-Type: application/json
- Accept: application/json
- Authorization: Bearer <token>, only when a token is configured

The token is read from the environment variable `DASHBOARD_TOKEN` unless
passed explicitly. A dashboard running locally usually needs none.
"""
from typing import Dict, Optional
import os


ENV_TOKEN_NAME = "DASHBOARD_TOKEN"


def get_common_headers(token: Optional[str] = None) -> Dict[str, str]:
    """Return the common headers used for dashboard requests.

    Args:
        token: Optional bearer token. If not provided, the function looks
            for it in the environment variable named by `ENV_TOKEN_NAME`.

    Returns:
        A dict containing Content-Type and Accept headers, plus
        Authorization when a token is available.
    """
    if token is None:
        token = os.getenv(ENV_TOKEN_NAME)

    headers = {
        "Content-Type": "application/json",
        "Accept": "application/json",
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


__all__ = ["get_common_headers", "ENV_TOKEN_NAME"]
