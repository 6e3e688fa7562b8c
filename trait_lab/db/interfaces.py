from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Protocol, Sequence

from ..items import GeneratedItem


class CollectionNotFoundError(KeyError):
    """Raised when a collection id is not present in the store."""

    def __init__(self, collection_id: str) -> None:
        super().__init__(collection_id)
        self.collection_id = collection_id

    def __str__(self) -> str:
        return f"Collection not found: {self.collection_id}"


@dataclass(frozen=True)
class CollectionSummary:
    id: str
    name: str
    canvas_width: int
    canvas_height: int
    item_count: int
    created_at: int


@dataclass(frozen=True)
class CollectionRecord:
    id: str
    name: str
    canvas_width: int
    canvas_height: int
    categories: List[Mapping[str, Any]]
    items: List[GeneratedItem]
    created_at: int
    updated_at: int


class CollectionStoreProtocol(Protocol):
    def save(
        self,
        name: str,
        canvas_width: int,
        canvas_height: int,
        categories: Sequence[Mapping[str, Any]],
        items: Sequence[GeneratedItem],
    ) -> str:
        ...

    def list(self) -> List[CollectionSummary]:
        ...

    def get(self, collection_id: str) -> CollectionRecord:
        ...

    def delete(self, collection_id: str) -> None:
        ...
