"""Environment-backed settings for slashctl.

Values come from the process environment after `load_dotenv()` has run in
the entry point. Current variables (see .env.example):
- SLASH_PROJECT_ROOT: workspace the state and backup commands operate on
- SLASH_BACKUP_DIR: where backups are kept
- SLASH_HISTORY_FILE: console history file
- DASHBOARD_RETRIES: attempts per dashboard notification
"""
from typing import Optional
import os


ENV_PROJECT_ROOT = "SLASH_PROJECT_ROOT"
ENV_BACKUP_DIR = "SLASH_BACKUP_DIR"
ENV_HISTORY_FILE = "SLASH_HISTORY_FILE"
ENV_DASHBOARD_RETRIES = "DASHBOARD_RETRIES"

DEFAULT_BACKUP_DIRNAME = ".backup"
DEFAULT_HISTORY_FILE = "~/.slashctl_history"
DEFAULT_DASHBOARD_RETRIES = 3


def _get_env(name: str, required: bool = False) -> Optional[str]:
    val = os.getenv(name)
    if required and not val:
        raise ValueError(f"Missing required environment variable: {name}")
    return val


def _parse_int_env(name: str, default: int) -> int:
    val = _get_env(name)
    if not val:
        return default
    try:
        n = int(val)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer; got: {val}")
    if n < 1:
        raise ValueError(f"Environment variable {name} must be at least 1; got: {val}")
    return n


def get_project_root() -> str:
    return os.path.abspath(_get_env(ENV_PROJECT_ROOT) or os.getcwd())


def get_backup_root(project_root: Optional[str] = None) -> str:
    path = _get_env(ENV_BACKUP_DIR)
    if path:
        return os.path.abspath(os.path.expanduser(path))
    return os.path.join(project_root or get_project_root(), DEFAULT_BACKUP_DIRNAME)


def get_history_file() -> str:
    return os.path.expanduser(_get_env(ENV_HISTORY_FILE) or DEFAULT_HISTORY_FILE)


def get_dashboard_retries() -> int:
    return _parse_int_env(ENV_DASHBOARD_RETRIES, DEFAULT_DASHBOARD_RETRIES)


__all__ = [
    "get_project_root",
    "get_backup_root",
    "get_history_file",
    "get_dashboard_retries",
]
