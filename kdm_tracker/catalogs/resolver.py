from __future__ import annotations

from dataclasses import dataclass

from kdm_tracker.catalogs.models import MonsterCatalog

UNRESOLVED_ID = -1


@dataclass(frozen=True)
class Resolution:
    id: int
    node: str
    matched: bool


def resolve_reference(legacy_name: str, catalog: MonsterCatalog) -> Resolution:
    # Exact, case-sensitive match; earliest entry wins on duplicate names.
    for monster_id, entry in catalog.ordered():
        if entry.name == legacy_name:
            return Resolution(id=monster_id, node=entry.node, matched=True)
    return Resolution(id=UNRESOLVED_ID, node=catalog.default_node, matched=False)
