"""File-based persistence helpers for generated route artifacts."""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

from ..config import settings

TIMESTAMP_FORMAT = "%Y%m%dT%H%M%SZ"


class ArtifactSink(Protocol):
    """Destination for JSON artifacts addressed by a stable key."""

    def write_json(self, key: str, data: Any) -> None:
        ...


class FileStorage:
    """Thin wrapper around the data root for storing JSON outputs."""

    def __init__(self, root: Path | None = None) -> None:
        self.root = (root or settings.data_root).resolve()
        self.output_root = self.root / "outputs"
        self.output_root.mkdir(parents=True, exist_ok=True)

    def make_run_directory(self, prefix: str = "routes") -> Path:
        timestamp = datetime.now(timezone.utc).strftime(TIMESTAMP_FORMAT)
        path = self.output_root / f"{prefix}_{timestamp}_{uuid.uuid4().hex[:6]}"
        path.mkdir(parents=True, exist_ok=False)
        return path

    def write_json(self, path: Path, data: Any, *, indent: int = 2) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as handle:
            json.dump(data, handle, ensure_ascii=False, indent=indent)

    def sink_for(self, run_dir: Path) -> "DirectorySink":
        return DirectorySink(self, run_dir)


class DirectorySink:
    """ArtifactSink writing `<run_dir>/<key>` through a FileStorage."""

    def __init__(self, storage: FileStorage, run_dir: Path) -> None:
        self.storage = storage
        self.run_dir = run_dir

    def write_json(self, key: str, data: Any) -> None:
        self.storage.write_json(self.run_dir / key, data)
