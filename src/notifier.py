"""Report dispatched commands to the project dashboard."""

import os
import sys
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

import requests

from endpoints import get_dashboard_base_url, get_events_endpoint
from http_headers import get_common_headers
from slash_commands.base import DispatchResult

EVENT_TYPE = "command-execution"
REQUEST_TIMEOUT = 2.0


class DashboardNotifier:
    """Posts one ``command-execution`` event per dispatch.

    Failures are reported on stderr and never raised; a dashboard that is
    down must not change the outcome of a command.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        max_attempts: int = 3,
        retry_delay: float = 1.0,
        backoff_multiplier: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.events_url = get_events_endpoint(base_url)
        self.headers = get_common_headers(token)
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.backoff_multiplier = backoff_multiplier
        self._sleep = sleep

    @classmethod
    def from_env(cls, max_attempts: int = 3) -> Optional["DashboardNotifier"]:
        """Build a notifier from DASHBOARD_URL, or None when it is unset."""
        base_url = get_dashboard_base_url()
        if base_url is None:
            return None
        return cls(base_url, max_attempts=max_attempts)

    def build_event(self, command_line: str, result: DispatchResult) -> Dict[str, Any]:
        parts = command_line.split()
        return {
            "id": uuid.uuid4().hex,
            "type": EVENT_TYPE,
            "category": "command",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "data": {
                "command": parts[0] if parts else "",
                "args": parts[1:],
                "success": result.success,
                "error": result.error,
            },
            "metadata": {"processId": os.getpid()},
        }

    def notify(self, command_line: str, result: DispatchResult) -> bool:
        """Send the event, retrying on errors. Returns True once delivered."""
        event = self.build_event(command_line, result)
        for attempt in range(1, self.max_attempts + 1):
            try:
                response = requests.post(self.events_url, json=event, headers=self.headers, timeout=REQUEST_TIMEOUT)
                if 200 <= response.status_code < 300:
                    return True
                print(f"Dashboard notification attempt {attempt} failed with status {response.status_code}", file=sys.stderr)
            except requests.RequestException as exc:
                print(f"Dashboard notification attempt {attempt} failed: {exc}", file=sys.stderr)

            if attempt < self.max_attempts:
                self._sleep(self.retry_delay * self.backoff_multiplier ** (attempt - 1))

        print(f"Dashboard notification dropped after {self.max_attempts} attempts", file=sys.stderr)
        return False


__all__ = ["DashboardNotifier"]
