"""Runtime configuration helpers for the archive and artifact services."""
from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Dict, Optional

BACKEND_FIRESTORE = "firestore"
BACKEND_LOCAL = "local"

DEFAULT_WINDOW_DAYS = 7


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(name, default)


def get_firestore_project() -> Optional[str]:
    return _get_env("GCP_PROJECT_ID") or _get_env("GCP_PROJECT")


def get_archive_primary_backend() -> str:
    return (_get_env("ARCHIVE_PRIMARY_BACKEND") or BACKEND_FIRESTORE).lower()


def get_archive_read_backend() -> str:
    return (_get_env("ARCHIVE_READ_BACKEND") or BACKEND_LOCAL).lower()


def get_archive_local_dir() -> Path:
    raw = _get_env("ARCHIVE_LOCAL_DIR")
    return Path(raw) if raw else Path(tempfile.gettempdir()) / "noah_archive"


def get_default_window_days() -> int:
    raw = _get_env("ARCHIVE_DEFAULT_DAYS")
    try:
        value = int(raw) if raw else DEFAULT_WINDOW_DAYS
    except ValueError:
        return DEFAULT_WINDOW_DAYS
    return value if value > 0 else DEFAULT_WINDOW_DAYS


def config_snapshot() -> Dict[str, object]:
    return {
        "archive_primary_backend": get_archive_primary_backend(),
        "archive_read_backend": get_archive_read_backend(),
        "archive_local_dir": str(get_archive_local_dir()),
        "gcp_project": get_firestore_project(),
        "default_window_days": get_default_window_days(),
    }
