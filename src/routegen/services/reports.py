"""Run manifest helpers."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional

from ..config import settings
from .storage.store import INDEX_KEY, SUMMARY_KEY

logger = logging.getLogger(__name__)


def _output_root(root: Path | None) -> Path:
    return ((root or settings.data_root) / "outputs").resolve()


def _read_summary(run_dir: Path) -> Optional[dict]:
    summary_path = run_dir / SUMMARY_KEY
    if not summary_path.exists():
        return None
    try:
        summary = json.loads(summary_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning(f"Skipping unreadable summary {summary_path}: {exc}")
        return None
    summary["id"] = run_dir.name
    summary["has_index"] = (run_dir / INDEX_KEY).exists()
    summary["artifact_count"] = sum(1 for _ in run_dir.glob("route_*.json"))
    return summary


def list_runs(*, root: Path | None = None, method: Optional[str] = None, limit: Optional[int] = None) -> List[dict]:
    """Return persisted run summaries, newest first."""
    output_root = _output_root(root)
    if not output_root.exists():
        return []

    runs: List[dict] = []
    run_dirs = sorted((p for p in output_root.iterdir() if p.is_dir()), key=lambda p: p.stat().st_mtime, reverse=True)
    for run_dir in run_dirs:
        summary = _read_summary(run_dir)
        if not summary:
            continue
        if method and summary.get("method") != method:
            continue
        runs.append(summary)
        if limit and len(runs) >= limit:
            break
    return runs
