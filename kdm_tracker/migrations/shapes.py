"""Document shapes per schema version.

These describe what each step reads and writes. Stored documents are plain
JSON objects, so the shapes are ``TypedDict``s with ``total=False``: any key may
be missing from a legacy document and unknown keys are carried along.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, TypedDict


class LegacyNemesisV0_12(TypedDict, total=False):
    name: str
    unlocked: bool
    level1: bool
    level2: bool
    level3: bool
    level4: bool
    ccLevel1: bool
    ccLevel2: bool
    ccLevel3: bool


class LegacyQuarryV0_12(TypedDict, total=False):
    name: str
    unlocked: bool
    ccPrologue: bool
    ccLevel1: bool
    ccLevel2: bool
    ccLevel3: bool


class MonsterReference(TypedDict, total=False):
    id: int
    node: str
    unlocked: bool
    level1: bool
    level2: bool
    level3: bool
    level4: bool
    ccPrologue: bool
    ccLevel1: bool
    ccLevel2: bool
    ccLevel3: bool


class AIDeckComposition(TypedDict, total=False):
    basic: int
    advanced: int
    legendary: int
    overtone: int


class LegacyEncounterMonsterV0_12(TypedDict, total=False):
    name: str
    aiDeckSize: int


class EncounterMonster(TypedDict, total=False):
    name: str
    aiDeck: AIDeckComposition
    aiDeckRemaining: int
    huntBoard: Dict[str, Optional[str]]


class UnlockedMonsters(TypedDict):
    killeniumButcher: bool
    screamingNukalope: bool
    whiteGigalion: bool


class GlobalSettings(TypedDict):
    disableToasts: bool
    unlockedMonsters: UnlockedMonsters


class CampaignDocument(TypedDict, total=False):
    version: str
    settlements: List[Dict[str, Any]]
    survivors: List[Dict[str, Any]]
    hunts: List[Dict[str, Any]]
    showdowns: List[Dict[str, Any]]
    customMonsters: Dict[str, Any]
    settings: GlobalSettings
    selectedSettlementId: Optional[int]
    selectedSurvivorId: Optional[int]
    selectedHuntId: Optional[int]
    selectedShowdownId: Optional[int]
    selectedTab: Optional[str]
