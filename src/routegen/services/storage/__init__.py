"""Result persistence and aggregation."""

from .store import ResultStore, compute_success_rate

__all__ = ["ResultStore", "compute_success_rate"]
