from __future__ import annotations

import threading
import uuid
from datetime import datetime
from typing import Dict, Protocol

from .models.estimate import Estimate


class EstimateRepository(Protocol):
    def get(self, estimate_id: str) -> Estimate | None:
        ...

    def save(self, estimate: Estimate) -> Estimate:
        ...

    def delete(self, estimate_id: str) -> bool:
        ...

    def find_by_estimate_number(self, estimate_number: str) -> Estimate | None:
        ...

    def list_estimates(self) -> list[Estimate]:
        ...


def stamp_for_save(estimate: Estimate, now: datetime) -> Estimate:
    """Assign id and creation time on first save and always refresh ``updated_at``."""
    update: dict[str, object] = {"updated_at": now}
    if not estimate.id:
        update["id"] = uuid.uuid4().hex
        update["created_at"] = now
    elif estimate.created_at is None:
        update["created_at"] = now
    return estimate.model_copy(update=update)


class InMemoryEstimateStore:
    def __init__(self) -> None:
        self._estimates: Dict[str, Estimate] = {}
        self._lock = threading.Lock()

    def get(self, estimate_id: str) -> Estimate | None:
        with self._lock:
            estimate = self._estimates.get(estimate_id)
            return estimate.model_copy(deep=True) if estimate else None

    def save(self, estimate: Estimate) -> Estimate:
        with self._lock:
            saved = stamp_for_save(estimate, datetime.utcnow())
            self._estimates[saved.id] = saved.model_copy(deep=True)
            return saved

    def delete(self, estimate_id: str) -> bool:
        with self._lock:
            return self._estimates.pop(estimate_id, None) is not None

    def find_by_estimate_number(self, estimate_number: str) -> Estimate | None:
        with self._lock:
            for estimate in self._estimates.values():
                if estimate.project_info.estimate_number == estimate_number:
                    return estimate.model_copy(deep=True)
            return None

    def list_estimates(self) -> list[Estimate]:
        with self._lock:
            return [estimate.model_copy(deep=True) for estimate in self._estimates.values()]


__all__ = ["EstimateRepository", "InMemoryEstimateStore", "stamp_for_save"]
