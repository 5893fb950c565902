from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


class MigrationError(Exception):
    kind = "migration_error"


@dataclass
class UnsupportedVersion(MigrationError):
    version: Optional[str]
    target_version: str
    kind = "unsupported_version"

    def __str__(self) -> str:
        return (
            f"This data is from an unsupported version ({self.version!r}); "
            f"no migration path to {self.target_version}"
        )


@dataclass
class StructuralTransformError(MigrationError):
    message: str
    path: str = ""
    from_version: Optional[str] = None
    to_version: Optional[str] = None
    kind = "structural_transform_error"

    def __str__(self) -> str:
        where = f" at {self.path}" if self.path else ""
        step = (
            f" (step {self.from_version} -> {self.to_version})"
            if self.from_version or self.to_version
            else ""
        )
        return f"Cannot transform campaign{step}: {self.message}{where}"


@dataclass
class PostMigrationValidationError(MigrationError):
    paths: List[str]
    messages: List[str] = field(default_factory=list)
    kind = "post_migration_validation_error"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return "Migrated campaign failed validation: " + "; ".join(
            self.messages or self.paths
        )


@dataclass(frozen=True)
class UnresolvedReference:
    domain: str
    name: str
    path: str
    from_version: Optional[str] = None
    to_version: Optional[str] = None

    def __str__(self) -> str:
        return f"Unknown {self.domain} '{self.name}' at {self.path}; using id -1"
