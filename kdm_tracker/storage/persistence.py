from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Dict, Optional

from kdm_tracker import config
from kdm_tracker.migrations.engine import MigrationEngine, MigrationResult, detect_version
from kdm_tracker.storage.blob_store import BlobStore, safe_mkdir

logger = logging.getLogger(__name__)


class CampaignLoadError(Exception):
    pass


@dataclass
class LoadOutcome:
    document: Dict[str, Any]
    result: Optional[MigrationResult]
    written: bool
    created: bool = False

    @property
    def ok(self) -> bool:
        return self.result is None or self.result.ok


def encode_document(document: Dict[str, Any]) -> bytes:
    return json.dumps(document, indent=2, ensure_ascii=False).encode("utf-8")


def decode_document(data: bytes) -> Any:
    try:
        return json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise CampaignLoadError(f"Stored campaign is not valid JSON: {exc}") from exc


def load_campaign(
    store: BlobStore,
    engine: MigrationEngine,
    key: Optional[str] = None,
    *,
    persist: bool = True,
) -> LoadOutcome:
    """Read the stored campaign and bring it up to date.

    The migrated document is written back only when migration ran and
    succeeded. On failure the stored bytes are left alone and the outcome
    carries the last-known-good document.
    """
    key = key or config.CAMPAIGN_KEY
    raw = store.read(key)
    if raw is None:
        document = engine.new_document()
        if persist:
            store.write(key, encode_document(document))
        logger.info("Created new campaign at version %s", engine.target_version)
        return LoadOutcome(document=document, result=None, written=persist, created=True)

    document = decode_document(raw)
    result = engine.migrate(document)
    if not result.ok:
        logger.error("Keeping stored campaign unchanged: %s", result.error)
        return LoadOutcome(document=document, result=result, written=False)

    written = False
    if result.migrated and persist:
        store.write(key, encode_document(result.document))
        written = True
    return LoadOutcome(document=result.document, result=result, written=written)


def backup_filename(version: str, today: Optional[date] = None) -> str:
    stamp = (today or date.today()).isoformat()
    return f"{config.BACKUP_FILE_PREFIX}-{version}-{stamp}.json"


def export_backup(
    store: BlobStore,
    destination: Path,
    key: Optional[str] = None,
    *,
    today: Optional[date] = None,
) -> Path:
    key = key or config.CAMPAIGN_KEY
    raw = store.read(key)
    if raw is None:
        raise CampaignLoadError(f"No campaign stored under '{key}'")

    try:
        version = detect_version(decode_document(raw))
    except CampaignLoadError:
        version = None
    label = version if isinstance(version, str) else "unknown"

    safe_mkdir(destination)
    path = destination / backup_filename(label, today)
    path.write_bytes(raw)
    return path
