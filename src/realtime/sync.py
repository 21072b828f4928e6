"""
Generic live-sync primitive.

An EntitySpec describes one kind of live data (where it lives for a given
owner, how documents become records, their canonical order, which records are
visible, and how unread records are marked read). A LiveCollection binds a
spec to an owner id for as long as a screen needs it:

    orders = LiveCollection(backend, BUYER_ORDERS, on_change=self.render)
    orders.bind(user_id)      # exactly one listener
    ...
    orders.close()            # on unmount; rebinding closes the old one too

Every push replaces the whole list. Errors keep the last good list.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Generic,
    Iterable,
    List,
    Optional,
    TypeVar,
)

from realtime.backend import Document, LiveBackend, Source, Unsubscribe
from utils import config
from utils.logger import get_logger

_logger = get_logger(__name__)

T = TypeVar("T")

ALL = "all"


@dataclass(frozen=True)
class EntitySpec(Generic[T]):
    kind: str
    source: Callable[[str], Source]
    normalize: Callable[[List[Document], str], List[T]]
    sort_key: Optional[Callable[[T], Any]] = None
    descending: bool = True
    visible: Optional[Callable[[T], bool]] = None
    is_unread: Optional[Callable[[T], bool]] = None
    mark_read: Optional[Callable[[LiveBackend, str, List[T]], Awaitable[None]]] = None


class LiveCollection(Generic[T]):
    def __init__(
        self,
        backend: LiveBackend,
        spec: EntitySpec[T],
        on_change: Optional[Callable[["LiveCollection[T]"], None]] = None,
        mark_read_delay: float = config.MARK_READ_DELAY,
    ):
        self.backend = backend
        self.spec = spec
        self.on_change = on_change
        self.mark_read_delay = mark_read_delay

        self.owner_id: Optional[str] = None
        self.items: List[T] = []
        self.loading = False
        self.refreshing = False
        self.error: Optional[Exception] = None

        self._unsubscribe: Optional[Unsubscribe] = None
        self._generation = 0
        self._read_latched = False
        self._read_timer: Optional[asyncio.TimerHandle] = None
        self._read_task: Optional[asyncio.Task] = None

    def __repr__(self) -> str:
        return f"<LiveCollection {self.spec.kind} owner={self.owner_id} items={len(self.items)}>"

    @property
    def active(self) -> bool:
        return self._unsubscribe is not None

    # ---------------------------
    # Lifecycle
    # ---------------------------

    def bind(self, owner_id: Optional[str]) -> None:
        """Follow owner_id; None releases the subscription."""
        if owner_id == self.owner_id and (self.active or owner_id is None):
            return
        self.close()
        self.owner_id = owner_id
        self.items = []
        self.error = None
        self._read_latched = False
        if owner_id is None:
            self.loading = False
            self._notify()
            return
        self._open()
        self._notify()

    def refresh(self) -> None:
        """Re-open the listener; the next push clears the refreshing flag."""
        if self.owner_id is None:
            return
        self.refreshing = True
        self._detach()
        self._open()
        self._notify()

    def close(self) -> None:
        self._detach()
        if self._read_timer is not None:
            self._read_timer.cancel()
            self._read_timer = None
        self.loading = False
        self.refreshing = False

    def _open(self) -> None:
        self._generation += 1
        generation = self._generation
        self.loading = True
        source = self.spec.source(self.owner_id)

        def on_next(docs: List[Document]) -> None:
            if generation == self._generation:
                self._on_push(docs)

        def on_error(exc: Exception) -> None:
            if generation == self._generation:
                self._on_error(exc)

        try:
            self._unsubscribe = self.backend.listen(source, on_next, on_error)
        except Exception as e:
            self._on_error(e)
            return
        _logger.debug(f"Subscribed {self.spec.kind} for {self.owner_id}")

    def _detach(self) -> None:
        # bumping the generation drops callbacks still queued for the old listener
        self._generation += 1
        if self._unsubscribe is not None:
            unsubscribe, self._unsubscribe = self._unsubscribe, None
            unsubscribe()
            _logger.debug(f"Unsubscribed {self.spec.kind} for {self.owner_id}")

    # ---------------------------
    # Push handling
    # ---------------------------

    def _on_push(self, docs: List[Document]) -> None:
        try:
            items = self.spec.normalize(docs, self.owner_id)
        except Exception as e:
            self._on_error(e)
            return
        if self.spec.visible is not None:
            items = [i for i in items if self.spec.visible(i)]
        if self.spec.sort_key is not None:
            items = sorted(items, key=self.spec.sort_key, reverse=self.spec.descending)

        self.items = items
        self.loading = False
        self.refreshing = False
        self.error = None
        self._schedule_mark_read()
        self._notify()

    def _on_error(self, exc: Exception) -> None:
        _logger.warning(
            f"Live {self.spec.kind} for {self.owner_id} failed, keeping "
            f"{len(self.items)} cached item(s): {exc!r}"
        )
        self.error = exc
        self.loading = False
        self.refreshing = False
        self._notify()

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self)

    # ---------------------------
    # Delayed mark-as-read
    # ---------------------------

    def _schedule_mark_read(self) -> None:
        spec = self.spec
        if spec.mark_read is None or spec.is_unread is None:
            return
        if self._read_latched or not self.items:
            return
        # decided once per bind, on the first non-empty push
        self._read_latched = True
        if not any(spec.is_unread(i) for i in self.items):
            return
        loop = asyncio.get_running_loop()
        self._read_timer = loop.call_later(self.mark_read_delay, self._fire_mark_read)

    def _fire_mark_read(self) -> None:
        self._read_timer = None
        unread = [i for i in self.items if self.spec.is_unread(i)]
        if not unread:
            return
        self._read_task = asyncio.ensure_future(
            self._run_mark_read(self.owner_id, list(self.items), len(unread))
        )

    async def _run_mark_read(self, owner_id: str, items: List[T], unread: int) -> None:
        try:
            await self.spec.mark_read(self.backend, owner_id, items)
        except Exception as e:
            _logger.warning(f"Marking {unread} {self.spec.kind} read for {owner_id} failed: {e!r}")
            return
        _logger.debug(f"Marked {unread} {self.spec.kind} read for {owner_id}")

    # ---------------------------
    # Derived views
    # ---------------------------

    def by_status(self, status: str = ALL) -> List[T]:
        if status == ALL:
            return list(self.items)
        return [i for i in self.items if getattr(i, "status", None) == status]

    def counts(self, statuses: Iterable[str]) -> Dict[str, int]:
        result = {ALL: len(self.items)}
        for status in statuses:
            result[status] = len(self.by_status(status))
        return result

    @property
    def unread_count(self) -> int:
        if self.spec.is_unread is None:
            return 0
        return sum(1 for i in self.items if self.spec.is_unread(i))
