from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from kdm_tracker.catalogs.models import MonsterCatalog, ReferenceCatalogs
from kdm_tracker.catalogs.resolver import UNRESOLVED_ID, resolve_reference
from kdm_tracker.migrations.errors import StructuralTransformError, UnresolvedReference
from kdm_tracker.migrations.shapes import (
    AIDeckComposition,
    CampaignDocument,
    EncounterMonster,
    GlobalSettings,
    MonsterReference,
)

logger = logging.getLogger(__name__)

NEMESIS_REQUIRED_FLAGS = ("unlocked", "level1", "level2", "level3")
QUARRY_REQUIRED_FLAGS = ("unlocked",)
SELECTION_FIELDS = (
    "selectedHuntId",
    "selectedShowdownId",
    "selectedSettlementId",
    "selectedSurvivorId",
    "selectedTab",
)
UNLOCKABLE_MONSTERS = ("killeniumButcher", "screamingNukalope", "whiteGigalion")


def default_settings() -> GlobalSettings:
    return {
        "disableToasts": False,
        "unlockedMonsters": {name: False for name in UNLOCKABLE_MONSTERS},
    }


def new_campaign_document(version: str) -> CampaignDocument:
    document: CampaignDocument = {
        "version": version,
        "settlements": [],
        "survivors": [],
        "hunts": [],
        "showdowns": [],
        "customMonsters": {},
        "settings": default_settings(),
    }
    for name in SELECTION_FIELDS:
        document[name] = None
    return document


@dataclass
class TransformContext:
    catalogs: ReferenceCatalogs
    from_version: Optional[str] = None
    to_version: Optional[str] = None
    warnings: List[UnresolvedReference] = field(default_factory=list)

    def report_unresolved(self, domain: str, name: str, path: str) -> None:
        event = UnresolvedReference(
            domain=domain,
            name=name,
            path=path,
            from_version=self.from_version,
            to_version=self.to_version,
        )
        logger.warning("%s", event)
        self.warnings.append(event)


def require_object(value: Any, path: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise StructuralTransformError(
            f"expected an object, found {type(value).__name__}", path=path
        )
    return value


def require_list(value: Any, path: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise StructuralTransformError(
            f"expected a list, found {type(value).__name__}", path=path
        )
    return value


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _backfill_flags(record: Dict[str, Any], flags: Sequence[str]) -> None:
    for flag in flags:
        if record.get(flag) is None:
            record[flag] = False


def transform_monster_reference(
    legacy: Any,
    catalog: MonsterCatalog,
    ctx: TransformContext,
    path: str,
    required_flags: Sequence[str] = QUARRY_REQUIRED_FLAGS,
) -> MonsterReference:
    record = require_object(legacy, path)

    if "name" not in record and _is_int(record.get("id")):
        migrated = dict(record)
        entry = catalog.by_id(migrated["id"])
        if entry is None and migrated["id"] != UNRESOLVED_ID:
            # Ids outside the catalog are treated like unknown names.
            ctx.report_unresolved(catalog.domain, f"#{migrated['id']}", path)
            migrated["id"] = UNRESOLVED_ID
        if not migrated.get("node"):
            migrated["node"] = entry.node if entry else catalog.default_node
        _backfill_flags(migrated, required_flags)
        return migrated

    name = record.get("name")
    if name is None:
        name = ""
    if not isinstance(name, str):
        raise StructuralTransformError(
            f"monster name must be a string, found {type(name).__name__}",
            path=f"{path}.name",
        )

    resolution = resolve_reference(name, catalog)
    if not resolution.matched:
        ctx.report_unresolved(catalog.domain, name, path)

    migrated = {key: value for key, value in record.items() if key != "name"}
    migrated["id"] = resolution.id
    migrated["node"] = resolution.node
    _backfill_flags(migrated, required_flags)
    return migrated


def transform_ai_deck(legacy_size: Any, path: str = "aiDeckSize") -> Tuple[AIDeckComposition, int]:
    # Legacy decks carry no tier breakdown: every card counts as basic and
    # the whole deck is treated as unplayed.
    size = 0 if legacy_size is None else legacy_size
    if not _is_int(size) or size < 0:
        raise StructuralTransformError(
            f"AI deck size must be a non-negative integer, found {legacy_size!r}",
            path=path,
        )
    return {"basic": size, "advanced": 0, "legendary": 0}, size


def transform_encounter_monster(legacy: Any, path: str) -> EncounterMonster:
    monster = dict(require_object(legacy, path))
    if isinstance(monster.get("aiDeck"), dict):
        if monster.get("aiDeckRemaining") is None:
            deck = monster["aiDeck"]
            monster["aiDeckRemaining"] = sum(
                deck.get(tier, 0) or 0 for tier in ("basic", "advanced", "legendary")
            )
        monster.pop("aiDeckSize", None)
        return monster

    ai_deck, remaining = transform_ai_deck(monster.pop("aiDeckSize", None), f"{path}.aiDeckSize")
    monster["aiDeck"] = ai_deck
    monster["aiDeckRemaining"] = remaining
    return monster


def transform_hunt_or_showdown(legacy: Any, path: str) -> Dict[str, Any]:
    encounter = dict(require_object(legacy, path))
    if "monster" in encounter:
        encounter["monster"] = transform_encounter_monster(
            encounter["monster"], f"{path}.monster"
        )
    if "monsters" in encounter:
        monsters = require_list(encounter["monsters"], f"{path}.monsters")
        encounter["monsters"] = [
            transform_encounter_monster(monster, f"{path}.monsters[{index}]")
            for index, monster in enumerate(monsters)
        ]
    return encounter


def transform_settlement(legacy: Any, ctx: TransformContext, path: str) -> Dict[str, Any]:
    settlement = dict(require_object(legacy, path))
    nemeses = require_list(settlement.get("nemeses"), f"{path}.nemeses")
    quarries = require_list(settlement.get("quarries"), f"{path}.quarries")
    settlement["nemeses"] = [
        transform_monster_reference(
            nemesis,
            ctx.catalogs.nemeses,
            ctx,
            f"{path}.nemeses[{index}]",
            NEMESIS_REQUIRED_FLAGS,
        )
        for index, nemesis in enumerate(nemeses)
    ]
    settlement["quarries"] = [
        transform_monster_reference(
            quarry,
            ctx.catalogs.quarries,
            ctx,
            f"{path}.quarries[{index}]",
            QUARRY_REQUIRED_FLAGS,
        )
        for index, quarry in enumerate(quarries)
    ]
    return settlement


def _coalesce_settings(existing: Any) -> GlobalSettings:
    settings = {} if existing is None else require_object(existing, "settings")
    unlocked = settings.get("unlockedMonsters")
    unlocked = {} if unlocked is None else require_object(unlocked, "settings.unlockedMonsters")

    merged: Dict[str, Any] = dict(settings)
    disable_toasts = settings.get("disableToasts")
    merged["disableToasts"] = False if disable_toasts is None else disable_toasts
    merged_unlocked = dict(unlocked)
    for name in UNLOCKABLE_MONSTERS:
        if merged_unlocked.get(name) is None:
            merged_unlocked[name] = False
    merged["unlockedMonsters"] = merged_unlocked
    return merged


def transform_top_level_defaults(legacy: Any) -> CampaignDocument:
    document = dict(require_object(legacy, "$"))
    for name in SELECTION_FIELDS:
        if name not in document:
            document[name] = None
    if document.get("customMonsters") is None:
        document["customMonsters"] = {}
    else:
        require_object(document["customMonsters"], "customMonsters")
    document["survivors"] = require_list(document.get("survivors"), "survivors")
    document["settings"] = _coalesce_settings(document.get("settings"))
    return document


def _custom_hunt_board(custom_monsters: Dict[str, Any], name: str) -> Optional[Dict[str, Any]]:
    for custom in custom_monsters.values():
        main = custom.get("main") if isinstance(custom, dict) else None
        if not isinstance(main, dict):
            continue
        custom_name = main.get("name")
        if isinstance(custom_name, str) and custom_name.lower() == name and "huntBoard" in main:
            return main["huntBoard"]
    return None


def transform_hunt_board(
    monster: Any,
    ctx: TransformContext,
    custom_monsters: Dict[str, Any],
    path: str,
) -> EncounterMonster:
    record = dict(require_object(monster, path))
    if record.get("huntBoard"):
        return record

    raw_name = record.get("name")
    name = raw_name.lower() if isinstance(raw_name, str) else ""
    board: Optional[Dict[str, Any]] = None
    if name:
        for entry in ctx.catalogs.quarries:
            if entry.hunt_board is not None and entry.name.lower() == name:
                board = entry.hunt_board
                break
        if board is None:
            board = _custom_hunt_board(custom_monsters, name)
    if board is None:
        board = ctx.catalogs.basic_hunt_board

    record["huntBoard"] = copy.deepcopy(board)
    return record
