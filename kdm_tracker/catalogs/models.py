from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional, Tuple

NEMESIS_DOMAIN = "nemesis"
QUARRY_DOMAIN = "quarry"


@dataclass(frozen=True)
class CatalogEntry:
    key: str
    name: str
    node: str
    levels: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    hunt_board: Optional[Dict[str, Optional[str]]] = None


@dataclass(frozen=True)
class MonsterCatalog:
    """Ordered, read-only table of monsters for one reference domain.

    An entry's id is its 1-based position in ``entries``. Documents persist
    those ids, so the order of a published catalog must never change: new
    monsters are appended at the end.
    """

    domain: str
    default_node: str
    entries: Tuple[CatalogEntry, ...]

    def __iter__(self) -> Iterator[CatalogEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def ordered(self) -> Iterator[Tuple[int, CatalogEntry]]:
        return enumerate(self.entries, start=1)

    def by_id(self, monster_id: int) -> Optional[CatalogEntry]:
        if 1 <= monster_id <= len(self.entries):
            return self.entries[monster_id - 1]
        return None


@dataclass(frozen=True)
class ReferenceCatalogs:
    nemeses: MonsterCatalog
    quarries: MonsterCatalog
    basic_hunt_board: Dict[str, Optional[str]]
