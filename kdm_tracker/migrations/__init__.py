from kdm_tracker.migrations.engine import MigrationEngine, MigrationResult, migrate
from kdm_tracker.migrations.errors import (
    MigrationError,
    PostMigrationValidationError,
    StructuralTransformError,
    UnresolvedReference,
    UnsupportedVersion,
)
from kdm_tracker.migrations.registry import MigrationRegistry, MigrationStep
from kdm_tracker.migrations.steps import default_registry

__all__ = [
    "MigrationEngine",
    "MigrationResult",
    "migrate",
    "MigrationError",
    "PostMigrationValidationError",
    "StructuralTransformError",
    "UnresolvedReference",
    "UnsupportedVersion",
    "MigrationRegistry",
    "MigrationStep",
    "default_registry",
]
