from __future__ import annotations

import os
from pathlib import Path

APP_ENV_HOME = "FACILITY_OS_HOME"
APP_ENV_DB = "FACILITY_OS_DB"


def project_root() -> Path:
    """
    Repository/project root directory.
    Contains facility/, api/, cli/, config/.
    """
    return Path(__file__).parent.parent.resolve()


def app_home() -> Path:
    """
    User-writable home for Facility OS.
    Override with FACILITY_OS_HOME.
    """
    if os.environ.get(APP_ENV_HOME):
        return Path(os.environ[APP_ENV_HOME]).expanduser().resolve()
    return (Path.home() / ".facility_os").resolve()


def data_dir() -> Path:
    d = app_home() / "data"
    d.mkdir(parents=True, exist_ok=True)
    return d


def capacity_config_path() -> Path:
    """Capacity policy file shipped with the repository."""
    return project_root() / "config" / "capacity.yaml"


def db_path() -> Path:
    """
    Canonical DB path.

    Resolution order:
    1. FACILITY_OS_DB env var (explicit override)
    2. ~/.facility_os/data/facility.db (default)
    """
    if os.environ.get(APP_ENV_DB):
        return Path(os.environ[APP_ENV_DB]).expanduser().resolve()
    return data_dir() / "facility.db"
