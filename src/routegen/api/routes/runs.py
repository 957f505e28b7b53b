"""Generated run listing endpoints."""

from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, Query, status

from ...services.reports import list_runs

router = APIRouter(prefix="/runs", tags=["runs"])


@router.get("", status_code=status.HTTP_200_OK)
def get_runs(
    method: Optional[Literal["random", "permutation"]] = Query(default=None),
    limit: Optional[int] = Query(default=None, ge=1, le=500),
) -> dict:
    runs = list_runs(method=method, limit=limit)
    return {"items": runs, "total": len(runs)}
