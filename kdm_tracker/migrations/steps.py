from __future__ import annotations

import logging
from typing import Any, Dict

from kdm_tracker.migrations.registry import MigrationRegistry, MigrationStep
from kdm_tracker.migrations.transformers import (
    TransformContext,
    require_list,
    require_object,
    transform_hunt_board,
    transform_hunt_or_showdown,
    transform_settlement,
    transform_top_level_defaults,
)

logger = logging.getLogger(__name__)


def migrate_to_0_13_0(document: Dict[str, Any], ctx: TransformContext) -> Dict[str, Any]:
    # Settlement monsters switch from names to catalog ids and encounter
    # monsters switch from a deck size to a deck composition.
    migrated = dict(transform_top_level_defaults(document))
    migrated["hunts"] = [
        transform_hunt_or_showdown(hunt, f"hunts[{index}]")
        for index, hunt in enumerate(require_list(migrated.get("hunts"), "hunts"))
    ]
    migrated["showdowns"] = [
        transform_hunt_or_showdown(showdown, f"showdowns[{index}]")
        for index, showdown in enumerate(require_list(migrated.get("showdowns"), "showdowns"))
    ]
    migrated["settlements"] = [
        transform_settlement(settlement, ctx, f"settlements[{index}]")
        for index, settlement in enumerate(
            require_list(migrated.get("settlements"), "settlements")
        )
    ]
    return migrated


def migrate_to_0_13_1(document: Dict[str, Any], ctx: TransformContext) -> Dict[str, Any]:
    migrated = dict(document)
    custom_monsters = migrated.get("customMonsters") or {}
    hunts = []
    for index, hunt in enumerate(require_list(migrated.get("hunts"), "hunts")):
        path = f"hunts[{index}]"
        updated = dict(require_object(hunt, path))
        if "monster" in updated:
            updated["monster"] = transform_hunt_board(
                updated["monster"], ctx, custom_monsters, f"{path}.monster"
            )
        if "monsters" in updated:
            updated["monsters"] = [
                transform_hunt_board(monster, ctx, custom_monsters, f"{path}.monsters[{position}]")
                for position, monster in enumerate(
                    require_list(updated["monsters"], f"{path}.monsters")
                )
            ]
        hunts.append(updated)
    migrated["hunts"] = hunts
    logger.debug("Hunt boards set on %d hunts", len(hunts))
    return migrated


DEFAULT_STEPS = (
    MigrationStep(
        from_version="0.12.0",
        to_version="0.13.0",
        apply=migrate_to_0_13_0,
        description="Monster references by catalog id; AI deck composition; top-level defaults",
    ),
    MigrationStep(
        from_version="0.13.0",
        to_version="0.13.1",
        apply=migrate_to_0_13_1,
        description="Hunt board layout on hunt monsters",
    ),
)


def default_registry() -> MigrationRegistry:
    return MigrationRegistry(DEFAULT_STEPS)
