from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

PROJECT_ROOT = Path(__file__).resolve().parents[1]
PACKAGE_ROOT = Path(__file__).resolve().parent
DATA_ROOT = PACKAGE_ROOT / "data"

BASELINE_VERSION = "0.12.0"
DEFAULT_TARGET_VERSION = "0.13.1"
DEFAULT_CAMPAIGN_KEY = "campaign"
BACKUP_FILE_PREFIX = "kdm-campaign-backup"

CATALOG_PATH = DATA_ROOT / "monster_catalog.json"
SCHEMA_PATH = DATA_ROOT / "campaign.schema.json"

TARGET_VERSION: str = os.getenv("KDM_TRACKER_TARGET_VERSION", DEFAULT_TARGET_VERSION)
CAMPAIGN_KEY: str = os.getenv("KDM_TRACKER_CAMPAIGN_KEY", DEFAULT_CAMPAIGN_KEY)
STORE_ROOT: Path = Path(os.getenv("KDM_TRACKER_STORE_ROOT", PROJECT_ROOT / "store"))


def set_store_root(path: Path) -> None:
    global STORE_ROOT
    STORE_ROOT = path


def set_target_version(version: str) -> None:
    global TARGET_VERSION
    TARGET_VERSION = version


def read_json(path: Path) -> dict:
    if not path.exists():
        raise FileNotFoundError(f"Missing file: {path}")
    return json.loads(path.read_text(encoding="utf-8"))


def resolve_store_root(store_root: Optional[Path] = None) -> Path:
    return store_root or STORE_ROOT


def refresh_from_env() -> None:
    global TARGET_VERSION, CAMPAIGN_KEY, STORE_ROOT
    TARGET_VERSION = os.getenv("KDM_TRACKER_TARGET_VERSION", TARGET_VERSION)
    CAMPAIGN_KEY = os.getenv("KDM_TRACKER_CAMPAIGN_KEY", CAMPAIGN_KEY)
    STORE_ROOT = Path(os.getenv("KDM_TRACKER_STORE_ROOT", STORE_ROOT))
