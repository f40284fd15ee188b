"""External key-value sink for transform snapshots."""
from __future__ import annotations

from typing import Dict, List, Optional, Protocol, Tuple

from arcomposer.common.geometry import Transform


class TransformStore(Protocol):
    def save(self, object_id: str, transform: Transform) -> None:
        ...

    def get(self, object_id: str) -> Optional[Transform]:
        ...


class InMemoryTransformStore:
    def __init__(self) -> None:
        self._latest: Dict[str, Transform] = {}
        self.writes: List[Tuple[str, Transform]] = []

    def save(self, object_id: str, transform: Transform) -> None:
        copy = transform.model_copy(deep=True)
        self._latest[object_id] = copy
        self.writes.append((object_id, copy))

    def get(self, object_id: str) -> Optional[Transform]:
        return self._latest.get(object_id)

    def writes_for(self, object_id: str) -> List[Transform]:
        return [tf for oid, tf in self.writes if oid == object_id]
