from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Protocol

from kdm_tracker import config

_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class BlobStore(Protocol):
    def read(self, key: str) -> Optional[bytes]:
        ...

    def write(self, key: str, data: bytes) -> None:
        ...


def safe_mkdir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


@dataclass
class FileBlobStore:
    root: Optional[Path] = None

    def path_for(self, key: str) -> Path:
        if not _KEY_RE.match(key) or key in {".", ".."}:
            raise ValueError(f"Invalid storage key: {key!r}")
        return config.resolve_store_root(self.root) / f"{key}.json"

    def read(self, key: str) -> Optional[bytes]:
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_bytes()

    def write(self, key: str, data: bytes) -> None:
        path = self.path_for(key)
        safe_mkdir(path.parent)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        tmp_path.write_bytes(data)
        os.replace(tmp_path, path)


@dataclass
class InMemoryBlobStore:
    blobs: Dict[str, bytes] = field(default_factory=dict)

    def read(self, key: str) -> Optional[bytes]:
        return self.blobs.get(key)

    def write(self, key: str, data: bytes) -> None:
        self.blobs[key] = bytes(data)
