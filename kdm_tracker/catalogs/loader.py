from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from kdm_tracker import config
from kdm_tracker.catalogs.models import (
    NEMESIS_DOMAIN,
    QUARRY_DOMAIN,
    CatalogEntry,
    MonsterCatalog,
    ReferenceCatalogs,
)

_CATALOG_CACHE: Dict[str, ReferenceCatalogs] = {}


@dataclass
class CatalogLoadError(Exception):
    errors: List[str]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return "Catalog load failed: " + "; ".join(self.errors)


def _build_entries(raw_entries: Any, domain: str, errors: List[str]) -> List[CatalogEntry]:
    if not isinstance(raw_entries, list):
        errors.append(f"'{domain}' table must be a list")
        return []
    entries: List[CatalogEntry] = []
    for index, raw in enumerate(raw_entries):
        if not isinstance(raw, dict) or not raw.get("name") or not raw.get("node"):
            errors.append(f"{domain} entry {index} needs a name and a node")
            continue
        entries.append(
            CatalogEntry(
                key=str(raw.get("key", raw["name"])),
                name=str(raw["name"]),
                node=str(raw["node"]),
                levels=dict(raw.get("levels", {})),
                hunt_board=raw.get("huntBoard"),
            )
        )
    return entries


def build_catalogs(payload: Dict[str, Any]) -> ReferenceCatalogs:
    errors: List[str] = []
    default_nodes = payload.get("defaultNodes", {})
    nemeses = _build_entries(payload.get("nemeses"), NEMESIS_DOMAIN, errors)
    quarries = _build_entries(payload.get("quarries"), QUARRY_DOMAIN, errors)
    basic_board = payload.get("basicHuntBoard")
    if not isinstance(basic_board, dict):
        errors.append("'basicHuntBoard' must be an object")
    if errors:
        raise CatalogLoadError(errors)

    return ReferenceCatalogs(
        nemeses=MonsterCatalog(
            domain=NEMESIS_DOMAIN,
            default_node=str(default_nodes.get(NEMESIS_DOMAIN, "NN1")),
            entries=tuple(nemeses),
        ),
        quarries=MonsterCatalog(
            domain=QUARRY_DOMAIN,
            default_node=str(default_nodes.get(QUARRY_DOMAIN, "NQ1")),
            entries=tuple(quarries),
        ),
        basic_hunt_board=dict(basic_board),
    )


def load_catalogs(path: Optional[Path] = None) -> ReferenceCatalogs:
    catalog_path = path or config.CATALOG_PATH
    cache_key = str(catalog_path)
    if cache_key in _CATALOG_CACHE:
        return _CATALOG_CACHE[cache_key]
    catalogs = build_catalogs(config.read_json(catalog_path))
    _CATALOG_CACHE[cache_key] = catalogs
    return catalogs
