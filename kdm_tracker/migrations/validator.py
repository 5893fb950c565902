from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from jsonschema import Draft202012Validator

from kdm_tracker import config

_VALIDATOR_CACHE: Dict[str, Draft202012Validator] = {}


def campaign_validator(path: Optional[Path] = None) -> Draft202012Validator:
    schema_path = path or config.SCHEMA_PATH
    cache_key = str(schema_path)
    if cache_key not in _VALIDATOR_CACHE:
        schema = config.read_json(schema_path)
        Draft202012Validator.check_schema(schema)
        _VALIDATOR_CACHE[cache_key] = Draft202012Validator(schema)
    return _VALIDATOR_CACHE[cache_key]


def format_path(parts: Iterable[Any]) -> str:
    path = ""
    for part in parts:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path or "$"


@dataclass(frozen=True)
class ValidationReport:
    paths: List[str] = field(default_factory=list)
    messages: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.paths


def validate_campaign(
    document: Any,
    *,
    target_version: Optional[str] = None,
    schema: Optional[dict] = None,
) -> ValidationReport:
    validator = Draft202012Validator(schema) if schema is not None else campaign_validator()
    errors = sorted(validator.iter_errors(document), key=lambda e: list(map(str, e.absolute_path)))

    paths: List[str] = []
    messages: List[str] = []
    for error in errors:
        path = format_path(error.absolute_path)
        paths.append(path)
        messages.append(f"{error.message} at {path}")

    if target_version is not None and isinstance(document, dict):
        version = document.get("version")
        if isinstance(version, str) and version != target_version:
            paths.append("version")
            messages.append(f"expected version {target_version!r}, found {version!r}")

    return ValidationReport(paths=paths, messages=messages)
