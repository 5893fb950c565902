from __future__ import annotations

import copy
import json
from typing import Any, Dict, List

from kdm_tracker import config
from kdm_tracker.catalogs.models import ReferenceCatalogs
from kdm_tracker.migrations.engine import MigrationEngine
from kdm_tracker.migrations.errors import (
    PostMigrationValidationError,
    StructuralTransformError,
    UnresolvedReference,
    UnsupportedVersion,
)
from kdm_tracker.migrations.registry import MigrationRegistry, MigrationStep
from kdm_tracker.migrations.steps import DEFAULT_STEPS
from kdm_tracker.migrations.validator import ValidationReport, validate_campaign

TARGET = config.DEFAULT_TARGET_VERSION


def _butcher_document() -> Dict[str, Any]:
    return {
        "settlements": [
            {"nemeses": [{"name": "Butcher", "level1": True, "unlocked": True}], "quarries": []}
        ],
        "hunts": [{"monster": {"aiDeckSize": 12}}],
    }


def test_unversioned_document_migrates_to_target(engine: MigrationEngine) -> None:
    result = engine.migrate(_butcher_document())

    assert result.ok
    document = result.document
    assert document["version"] == TARGET
    nemesis = document["settlements"][0]["nemeses"][0]
    assert nemesis["id"] == 3
    assert {k: nemesis[k] for k in ("level1", "level2", "level3", "unlocked")} == {
        "level1": True,
        "level2": False,
        "level3": False,
        "unlocked": True,
    }
    assert "name" not in nemesis

    monster = document["hunts"][0]["monster"]
    assert monster["aiDeck"] == {"basic": 12, "advanced": 0, "legendary": 0}
    assert monster["aiDeckRemaining"] == 12
    assert "aiDeckSize" not in monster
    assert result.applied_steps == [("0.12.0", "0.13.0"), ("0.13.0", "0.13.1")]


def test_unknown_nemesis_gets_sentinel_and_warning(catalogs: ReferenceCatalogs) -> None:
    seen: List[UnresolvedReference] = []
    engine = MigrationEngine(catalogs=catalogs, target_version=TARGET, on_warning=seen.append)
    document = {
        "settlements": [
            {
                "nemeses": [{"name": "Some Homebrew Monster", "level1": True, "unlocked": True}],
                "quarries": [],
            }
        ]
    }

    result = engine.migrate(document)

    assert result.ok
    nemesis = result.document["settlements"][0]["nemeses"][0]
    assert nemesis["id"] == -1
    assert nemesis["level1"] is True
    assert nemesis["unlocked"] is True
    assert len(seen) == 1
    assert seen[0].name == "Some Homebrew Monster"
    assert seen[0].domain == "nemesis"
    assert seen[0].path == "settlements[0].nemeses[0]"
    assert result.warnings == seen


def test_current_document_takes_fast_path(catalogs: ReferenceCatalogs) -> None:
    calls: List[str] = []

    def _step(document: Dict[str, Any], ctx: Any) -> Dict[str, Any]:
        calls.append(ctx.to_version)
        return document

    registry = MigrationRegistry([MigrationStep("0.13.1", "0.14.0", _step)])
    engine = MigrationEngine(catalogs=catalogs, registry=registry, target_version=TARGET)
    current = engine.new_document()

    result = engine.migrate(current)

    assert result.ok
    assert result.document is current
    assert result.applied_steps == []
    assert not result.migrated
    assert calls == []


def test_unknown_version_is_unsupported(engine: MigrationEngine) -> None:
    document = {"version": "0.1.0", "settlements": []}
    before = copy.deepcopy(document)

    result = engine.migrate(document)

    assert isinstance(result.error, UnsupportedVersion)
    assert result.error.version == "0.1.0"
    assert str(result.error).startswith("This data is from an unsupported version")
    assert result.document is document
    assert document == before


def test_missing_settings_are_backfilled(engine: MigrationEngine) -> None:
    result = engine.migrate({"version": "0.12.0"})

    assert result.ok
    assert result.document["settings"] == {
        "disableToasts": False,
        "unlockedMonsters": {
            "killeniumButcher": False,
            "screamingNukalope": False,
            "whiteGigalion": False,
        },
    }


def test_bare_legacy_document_passes_validation(engine: MigrationEngine) -> None:
    result = engine.migrate({})

    assert result.ok
    report = validate_campaign(result.document, target_version=TARGET)
    assert report.ok, report.messages
    for name in ("selectedSettlementId", "selectedSurvivorId", "selectedHuntId", "selectedShowdownId"):
        assert result.document[name] is None
    assert result.document["customMonsters"] == {}


def test_full_legacy_fixture(engine: MigrationEngine, legacy_document: Dict[str, Any]) -> None:
    result = engine.migrate(legacy_document)

    assert result.ok, result.error
    document = result.document
    settlement = document["settlements"][0]
    assert [n["id"] for n in settlement["nemeses"]] == [3, 8, -1]
    assert [q["id"] for q in settlement["quarries"]] == [14, 10, 6]
    assert settlement["lanternResearchLevel"] == 2
    assert settlement["nemeses"][0]["ccLevel1"] is True
    assert settlement["quarries"][0]["ccPrologue"] is True
    assert settlement["quarries"][2]["unlocked"] is False
    assert document["settings"]["disableToasts"] is True
    assert document["settings"]["unlockedMonsters"]["whiteGigalion"] is True
    assert document["settings"]["unlockedMonsters"]["killeniumButcher"] is False
    assert document["selectedSettlementId"] == 1
    assert document["selectedHuntId"] is None
    assert len(result.warnings) == 1


def test_ai_deck_sizes_are_conserved(
    engine: MigrationEngine, legacy_document: Dict[str, Any]
) -> None:
    sizes = [hunt["monster"]["aiDeckSize"] for hunt in legacy_document["hunts"]]
    sizes += [showdown["monster"]["aiDeckSize"] for showdown in legacy_document["showdowns"]]

    result = engine.migrate(legacy_document)

    monsters = [hunt["monster"] for hunt in result.document["hunts"]]
    monsters += [showdown["monster"] for showdown in result.document["showdowns"]]
    for size, monster in zip(sizes, monsters):
        deck = monster["aiDeck"]
        assert deck["basic"] + deck["advanced"] + deck["legendary"] == size
        assert monster["aiDeckRemaining"] == size


def test_migration_does_not_touch_input(
    engine: MigrationEngine, legacy_document: Dict[str, Any]
) -> None:
    before = copy.deepcopy(legacy_document)

    engine.migrate(legacy_document)

    assert legacy_document == before


def test_migrating_twice_matches_once(
    engine: MigrationEngine, legacy_document: Dict[str, Any]
) -> None:
    first = engine.migrate(legacy_document)
    second = engine.migrate(first.document)

    assert second.ok
    assert second.applied_steps == []
    assert second.document == first.document


def test_repeated_runs_are_byte_identical(
    engine: MigrationEngine, legacy_document: Dict[str, Any]
) -> None:
    runs = [
        json.dumps(engine.migrate(copy.deepcopy(legacy_document)).document)
        for _ in range(3)
    ]

    assert len(set(runs)) == 1


def test_structural_error_returns_original(engine: MigrationEngine) -> None:
    document = {"version": "0.12.0", "settlements": [{"nemeses": "Butcher", "quarries": []}]}

    result = engine.migrate(document)

    assert isinstance(result.error, StructuralTransformError)
    assert result.error.path == "settlements[0].nemeses"
    assert result.error.from_version == "0.12.0"
    assert result.error.to_version == "0.13.0"
    assert result.document is document
    assert result.applied_steps == []


def test_failure_in_later_step_discards_earlier_steps(catalogs: ReferenceCatalogs) -> None:
    def _explode(document: Dict[str, Any], ctx: Any) -> Dict[str, Any]:
        raise KeyError("boom")

    registry = MigrationRegistry([DEFAULT_STEPS[0], MigrationStep("0.13.0", "0.13.1", _explode)])
    engine = MigrationEngine(catalogs=catalogs, registry=registry, target_version=TARGET)
    document = _butcher_document()

    result = engine.migrate(document)

    assert isinstance(result.error, StructuralTransformError)
    assert result.error.from_version == "0.13.0"
    assert result.applied_steps == [("0.12.0", "0.13.0")]
    assert result.document is document
    assert "version" not in document


def test_validation_failure_is_reported(catalogs: ReferenceCatalogs) -> None:
    def _reject(document: Dict[str, Any]) -> ValidationReport:
        return ValidationReport(paths=["settlements[0].nemeses[0].id"], messages=["bad id"])

    engine = MigrationEngine(catalogs=catalogs, target_version=TARGET, validator=_reject)
    document = _butcher_document()

    result = engine.migrate(document)

    assert isinstance(result.error, PostMigrationValidationError)
    assert result.error.paths == ["settlements[0].nemeses[0].id"]
    assert result.document is document


def test_step_leaving_invalid_shape_fails_validation(catalogs: ReferenceCatalogs) -> None:
    def _drop_settings(document: Dict[str, Any], ctx: Any) -> Dict[str, Any]:
        document.pop("settings", None)
        return document

    registry = MigrationRegistry([DEFAULT_STEPS[0], MigrationStep("0.13.0", "0.13.1", _drop_settings)])
    engine = MigrationEngine(catalogs=catalogs, registry=registry, target_version=TARGET)

    result = engine.migrate({"version": "0.12.0"})

    assert isinstance(result.error, PostMigrationValidationError)
    assert "$" in result.error.paths


def test_non_object_document_is_unsupported(engine: MigrationEngine) -> None:
    result = engine.migrate(["not", "a", "campaign"])

    assert isinstance(result.error, UnsupportedVersion)
    assert result.error.version is None


def test_unexpected_step_exception_is_contained(catalogs: ReferenceCatalogs) -> None:
    def _boom(document: Dict[str, Any], ctx: Any) -> Dict[str, Any]:
        raise RuntimeError("boom")

    registry = MigrationRegistry([MigrationStep("0.12.0", "0.13.1", _boom)])
    engine = MigrationEngine(catalogs=catalogs, registry=registry, target_version=TARGET)
    document = {"version": "0.12.0"}

    result = engine.migrate(document)

    assert isinstance(result.error, StructuralTransformError)
    assert "RuntimeError: boom" in str(result.error)
    assert (result.error.from_version, result.error.to_version) == ("0.12.0", "0.13.1")
    assert result.document is document


def test_deeply_nested_document_is_contained(engine: MigrationEngine) -> None:
    nested: List[Any] = []
    for _ in range(5000):
        nested = [nested]
    document = {"version": "0.12.0", "notes": nested}

    result = engine.migrate(document)

    assert isinstance(result.error, StructuralTransformError)
    assert "RecursionError" in result.error.message
    assert result.document is document


def test_failing_validator_is_contained(catalogs: ReferenceCatalogs) -> None:
    def _crash(document: Dict[str, Any]) -> ValidationReport:
        raise RuntimeError("schema unavailable")

    engine = MigrationEngine(catalogs=catalogs, target_version=TARGET, validator=_crash)

    result = engine.migrate(_butcher_document())

    assert isinstance(result.error, PostMigrationValidationError)
    assert result.error.paths == ["$"]


def test_failing_warning_sink_does_not_break_migration(catalogs: ReferenceCatalogs) -> None:
    def _sink(event: UnresolvedReference) -> None:
        raise RuntimeError("sink down")

    engine = MigrationEngine(catalogs=catalogs, target_version=TARGET, on_warning=_sink)
    document = {
        "settlements": [{"nemeses": [{"name": "Some Homebrew Monster"}], "quarries": []}]
    }

    result = engine.migrate(document)

    assert result.ok
    assert len(result.warnings) == 1


def test_warning_sink_skipped_when_migration_fails(catalogs: ReferenceCatalogs) -> None:
    def _reject(document: Dict[str, Any]) -> ValidationReport:
        return ValidationReport(paths=["version"], messages=["rejected"])

    seen: List[UnresolvedReference] = []
    engine = MigrationEngine(
        catalogs=catalogs, target_version=TARGET, validator=_reject, on_warning=seen.append
    )
    document = {
        "settlements": [{"nemeses": [{"name": "Some Homebrew Monster"}], "quarries": []}]
    }

    result = engine.migrate(document)

    assert not result.ok
    assert seen == []
    assert [event.name for event in result.warnings] == ["Some Homebrew Monster"]


def test_unknown_catalog_id_becomes_sentinel(engine: MigrationEngine) -> None:
    document = {"settlements": [{"nemeses": [{"id": 99, "unlocked": True}], "quarries": []}]}

    result = engine.migrate(document)

    assert result.ok
    assert result.document["settlements"][0]["nemeses"][0]["id"] == -1
    assert [event.path for event in result.warnings] == ["settlements[0].nemeses[0]"]
