"""
Live document database seam.

Sources are plain values (a document path or a query description) so entity
specs can be declared without touching the SDK. A backend implementation must
deliver listener callbacks on the asyncio loop thread that called listen().
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple, Union


class _ServerTimestamp:
    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


# placeholder replaced by the backend's own server-time sentinel on write
SERVER_TIMESTAMP = _ServerTimestamp()

ASC = "asc"
DESC = "desc"


@dataclass(frozen=True)
class Document:
    id: str
    data: Dict[str, Any]


@dataclass(frozen=True)
class DocumentRef:
    path: str  # "collection/doc_id"


@dataclass(frozen=True)
class QueryRef:
    collection: str  # may be a subcollection path "conversations/x/messages"
    filters: Tuple[Tuple[str, str, Any], ...] = ()
    order_by: Optional[Tuple[str, str]] = None


Source = Union[DocumentRef, QueryRef]
OnNext = Callable[[List[Document]], None]
OnError = Callable[[Exception], None]
Unsubscribe = Callable[[], None]


class LiveBackend(Protocol):
    def listen(self, source: Source, on_next: OnNext, on_error: OnError) -> Unsubscribe:
        """
        Attach a listener. A DocumentRef yields [] when the document does not
        exist and [doc] otherwise; a QueryRef yields the matching documents.
        """
        ...

    async def get(self, path: str) -> Optional[Document]: ...

    async def add(self, collection: str, data: Dict[str, Any]) -> str: ...

    async def set(self, path: str, data: Dict[str, Any], merge: bool = False) -> None: ...

    async def update(self, path: str, fields: Dict[str, Any]) -> None: ...

    async def append_to_array(self, path: str, field: str, item: Dict[str, Any]) -> None:
        """Union item into an array field, creating the document if missing."""
        ...

    async def delete(self, path: str) -> None: ...
