"""Endpoint helpers for the dashboard notifier.

This module centralizes how we build dashboard endpoints based on
environment configuration found in `.env`.

Current variables:
- DASHBOARD_URL: Base dashboard URL, e.g. http://localhost:3001

Notification is optional: when DASHBOARD_URL is unset the notifier is
not created at all.
"""
from typing import Optional
import os


ENV_BASE_URL_NAME = "DASHBOARD_URL"
EVENTS_PATH = "/api/events"


def get_dashboard_base_url(url: Optional[str] = None) -> Optional[str]:
    """Return the dashboard base URL from argument or environment.

    Args:
        url: Optional explicit base URL. If omitted, uses the env var defined
            by `ENV_BASE_URL_NAME`.

    Returns:
        The base URL without a trailing slash, or None when not configured.

    Raises:
        ValueError: if the URL doesn't look like an http(s) URL.
    """
    if url is None:
        url = os.getenv(ENV_BASE_URL_NAME)

    if not url:
        return None

    if not (url.startswith("http://") or url.startswith("https://")):
        raise ValueError(
            f"{ENV_BASE_URL_NAME} must start with http:// or https://; got: " + url
        )

    return url.rstrip("/")


def get_events_endpoint(base_url: str) -> str:
    """Return the /api/events endpoint URL for a dashboard base URL."""
    return f"{base_url.rstrip('/')}{EVENTS_PATH}"


__all__ = ["get_dashboard_base_url", "get_events_endpoint", "ENV_BASE_URL_NAME", "EVENTS_PATH"]
