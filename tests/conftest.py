from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Dict

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from kdm_tracker import config
from kdm_tracker.catalogs.loader import load_catalogs
from kdm_tracker.catalogs.models import ReferenceCatalogs
from kdm_tracker.migrations.engine import MigrationEngine

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture()
def catalogs() -> ReferenceCatalogs:
    return load_catalogs()


@pytest.fixture()
def engine(catalogs: ReferenceCatalogs) -> MigrationEngine:
    return MigrationEngine(catalogs=catalogs, target_version=config.DEFAULT_TARGET_VERSION)


@pytest.fixture()
def legacy_document() -> Dict[str, Any]:
    return json.loads((FIXTURES / "legacy_0_12_0.json").read_text(encoding="utf-8"))


@pytest.fixture()
def temp_store_root(tmp_path: Path) -> Path:
    dest = tmp_path / "store"
    original = config.STORE_ROOT
    config.set_store_root(dest)
    try:
        yield dest
    finally:
        config.set_store_root(original)
