from __future__ import annotations

from typing import Any, Dict

import pytest

from kdm_tracker.migrations.registry import MigrationRegistry, MigrationStep
from kdm_tracker.migrations.steps import default_registry


def _noop(document: Dict[str, Any], ctx: Any) -> Dict[str, Any]:
    return document


def _registry(*pairs: tuple) -> MigrationRegistry:
    return MigrationRegistry(MigrationStep(a, b, _noop) for a, b in pairs)


def test_same_version_needs_no_steps() -> None:
    assert _registry(("1.0", "1.1")).steps_from("1.1", "1.1") == []


def test_chain_is_ordered() -> None:
    registry = _registry(("1.1", "1.2"), ("1.0", "1.1"), ("1.2", "1.3"))

    chain = registry.steps_from("1.0", "1.3")

    assert [(step.from_version, step.to_version) for step in chain] == [
        ("1.0", "1.1"),
        ("1.1", "1.2"),
        ("1.2", "1.3"),
    ]


def test_chain_can_start_midway() -> None:
    registry = _registry(("1.0", "1.1"), ("1.1", "1.2"))

    assert len(registry.steps_from("1.1", "1.2")) == 1


def test_unknown_version_has_no_path() -> None:
    assert _registry(("1.0", "1.1")).steps_from("0.9", "1.1") is None


def test_gap_in_chain_has_no_path() -> None:
    assert _registry(("1.0", "1.1"), ("1.2", "1.3")).steps_from("1.0", "1.3") is None


def test_overshooting_target_has_no_path() -> None:
    assert _registry(("1.0", "1.1"), ("1.1", "1.2")).steps_from("1.1", "1.0") is None


def test_cycle_has_no_path() -> None:
    assert _registry(("1.0", "1.1"), ("1.1", "1.0")).steps_from("1.0", "2.0") is None


def test_duplicate_source_version_is_rejected() -> None:
    registry = _registry(("1.0", "1.1"))

    with pytest.raises(ValueError):
        registry.register(MigrationStep("1.0", "1.2", _noop))
    assert len(registry.steps) == 1


def test_step_must_change_version() -> None:
    with pytest.raises(ValueError):
        _registry(("1.0", "1.0"))


def test_default_registry_reaches_current_version() -> None:
    chain = default_registry().steps_from("0.12.0", "0.13.1")

    assert [step.to_version for step in chain] == ["0.13.0", "0.13.1"]
