from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from kdm_tracker import config
from kdm_tracker.catalogs.models import ReferenceCatalogs
from kdm_tracker.migrations.errors import (
    MigrationError,
    PostMigrationValidationError,
    StructuralTransformError,
    UnresolvedReference,
    UnsupportedVersion,
)
from kdm_tracker.migrations.registry import MigrationRegistry
from kdm_tracker.migrations.steps import default_registry
from kdm_tracker.migrations.transformers import TransformContext, new_campaign_document
from kdm_tracker.migrations.validator import ValidationReport, validate_campaign

logger = logging.getLogger(__name__)

Validator = Callable[[Dict[str, Any]], ValidationReport]
WarningSink = Callable[[UnresolvedReference], None]


@dataclass
class MigrationResult:
    document: Any
    error: Optional[MigrationError] = None
    warnings: List[UnresolvedReference] = field(default_factory=list)
    applied_steps: List[Tuple[str, str]] = field(default_factory=list)
    from_version: Optional[str] = None
    to_version: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def migrated(self) -> bool:
        return self.ok and bool(self.applied_steps)


def detect_version(document: Any, baseline_version: str = config.BASELINE_VERSION) -> Any:
    if not isinstance(document, dict):
        return None
    version = document.get("version")
    return baseline_version if version is None else version


def migrate(
    raw_document: Any,
    registry: MigrationRegistry,
    target_version: str,
    catalogs: ReferenceCatalogs,
    *,
    baseline_version: str = config.BASELINE_VERSION,
    validator: Optional[Validator] = None,
    on_warning: Optional[WarningSink] = None,
) -> MigrationResult:
    """Bring ``raw_document`` up to ``target_version``.

    Never raises and never mutates ``raw_document``. On any failure the
    result carries the error and the original document, so the caller can
    keep the stored bytes as they are. Unresolved-reference events are kept
    on the result either way, but ``on_warning`` only sees them once the
    migrated document has passed validation.
    """
    version = detect_version(raw_document, baseline_version)
    if not isinstance(version, str):
        logger.error("Campaign has no usable version: %r", version)
        return MigrationResult(
            document=raw_document,
            error=UnsupportedVersion(version=None, target_version=target_version),
            to_version=target_version,
        )

    if version == target_version:
        return MigrationResult(document=raw_document, from_version=version, to_version=target_version)

    chain = registry.steps_from(version, target_version)
    if chain is None:
        logger.error("No migration path from %s to %s", version, target_version)
        return MigrationResult(
            document=raw_document,
            error=UnsupportedVersion(version=version, target_version=target_version),
            from_version=version,
            to_version=target_version,
        )

    logger.info("Migrating campaign (%s -> %s)", version, target_version)
    warnings: List[UnresolvedReference] = []
    applied: List[Tuple[str, str]] = []
    snapshot: Dict[str, Any] = raw_document
    for step in chain:
        logger.info("Migrating to %s", step.to_version)
        ctx = TransformContext(
            catalogs=catalogs,
            from_version=step.from_version,
            to_version=step.to_version,
            warnings=warnings,
        )
        try:
            migrated = step.apply(copy.deepcopy(snapshot), ctx)
            migrated["version"] = step.to_version
        except StructuralTransformError as exc:
            exc.from_version = exc.from_version or step.from_version
            exc.to_version = exc.to_version or step.to_version
            return _failed(raw_document, exc, warnings, applied, version, target_version)
        except Exception as exc:
            error = StructuralTransformError(
                message=f"{type(exc).__name__}: {exc}",
                from_version=step.from_version,
                to_version=step.to_version,
            )
            return _failed(raw_document, error, warnings, applied, version, target_version)
        snapshot = migrated
        applied.append((step.from_version, step.to_version))

    check = validator or (lambda doc: validate_campaign(doc, target_version=target_version))
    try:
        report = check(snapshot)
    except Exception as exc:
        report = ValidationReport(paths=["$"], messages=[f"validator failed: {type(exc).__name__}: {exc}"])
    if not report.ok:
        error = PostMigrationValidationError(paths=list(report.paths), messages=list(report.messages))
        return _failed(raw_document, error, warnings, applied, version, target_version)

    logger.info("Campaign migrated to %s (%d steps)", target_version, len(applied))
    if on_warning is not None:
        _flush_warnings(warnings, on_warning)
    return MigrationResult(
        document=snapshot,
        warnings=warnings,
        applied_steps=applied,
        from_version=version,
        to_version=target_version,
    )


def _flush_warnings(warnings: List[UnresolvedReference], on_warning: WarningSink) -> None:
    for event in warnings:
        try:
            on_warning(event)
        except Exception:
            logger.exception("Warning sink failed for %s", event.path)


def _failed(
    raw_document: Any,
    error: MigrationError,
    warnings: List[UnresolvedReference],
    applied: List[Tuple[str, str]],
    from_version: str,
    target_version: str,
) -> MigrationResult:
    logger.error("Campaign migration failed: %s", error)
    return MigrationResult(
        document=raw_document,
        error=error,
        warnings=warnings,
        applied_steps=list(applied),
        from_version=from_version,
        to_version=target_version,
    )


@dataclass
class MigrationEngine:
    catalogs: ReferenceCatalogs
    registry: MigrationRegistry = field(default_factory=default_registry)
    target_version: str = field(default_factory=lambda: config.TARGET_VERSION)
    baseline_version: str = config.BASELINE_VERSION
    validator: Optional[Validator] = None
    on_warning: Optional[WarningSink] = None

    def detect_version(self, document: Any) -> Any:
        return detect_version(document, self.baseline_version)

    def needs_migration(self, document: Any) -> bool:
        return self.detect_version(document) != self.target_version

    def new_document(self) -> Dict[str, Any]:
        return dict(new_campaign_document(self.target_version))

    def migrate(self, document: Any) -> MigrationResult:
        return migrate(
            document,
            self.registry,
            self.target_version,
            self.catalogs,
            baseline_version=self.baseline_version,
            validator=self.validator,
            on_warning=self.on_warning,
        )
