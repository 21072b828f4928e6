"""
One buyer/seller conversation with optimistic sends.

A sent message shows immediately as PENDING, becomes CONFIRMED once the write
succeeds and is replaced by the server copy (matched on clientId) when the
snapshot carrying it arrives. A failed write marks the entry FAILED and rolls
it back out of the view.
"""

from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, List, Optional

from db.models import ChatMessage, MessageState
from realtime.backend import LiveBackend
from realtime.entities import MESSAGES
from realtime.mutations import mark_conversation_read
from realtime.sync import LiveCollection
from utils.errors import AppError
from utils.logger import get_logger
from utils.pure import conversation_id, epoch_key

_logger = get_logger(__name__)


class Conversation:
    def __init__(
        self,
        backend: LiveBackend,
        me: str,
        other: str,
        on_change: Optional[Callable[["Conversation"], None]] = None,
    ):
        self.backend = backend
        self.me = me
        self.other = other
        self.id = conversation_id(me, other)
        self.on_change = on_change
        self.sending = False
        self.last_failed: Optional[ChatMessage] = None
        self._pending: List[ChatMessage] = []
        self.live = LiveCollection(backend, MESSAGES, on_change=lambda _: self._on_live_change())

    @property
    def loading(self) -> bool:
        return self.live.loading

    @property
    def messages(self) -> List[ChatMessage]:
        confirmed_ids = {m.client_id for m in self.live.items if m.client_id}
        local = [p for p in self._pending if p.client_id not in confirmed_ids]
        return sorted(self.live.items + local, key=lambda m: epoch_key(m.created_at))

    @property
    def pending(self) -> List[ChatMessage]:
        return list(self._pending)

    async def open(self) -> None:
        self.live.bind(self.id)
        try:
            await mark_conversation_read(self.backend, self.id, self.me)
        except AppError as e:
            _logger.warning(f"Could not reset unread count on {self.id}: {e.user_message}")

    def close(self) -> None:
        self.live.close()

    def _on_live_change(self) -> None:
        server_ids = {m.client_id for m in self.live.items if m.client_id}
        self._pending = [
            p
            for p in self._pending
            if not (p.state == MessageState.CONFIRMED and p.client_id in server_ids)
        ]
        self._notify()

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self)

    def _set_state(self, client_id: str, state: MessageState) -> Optional[ChatMessage]:
        for idx, entry in enumerate(self._pending):
            if entry.client_id == client_id:
                self._pending[idx] = replace(entry, state=state)
                return self._pending[idx]
        return None

    async def send(self, text: str = "", image_url: str = "") -> Optional[ChatMessage]:
        text = (text or "").strip()
        if (not text and not image_url) or self.sending:
            return None

        client_id = uuid.uuid4().hex
        created_at = datetime.now(timezone.utc)
        entry = ChatMessage(
            id=client_id,
            sender_id=self.me,
            receiver_id=self.other,
            created_at=created_at,
            text=text,
            image_url=image_url,
            client_id=client_id,
            state=MessageState.PENDING,
        )
        self._pending.append(entry)
        self.sending = True
        self._notify()

        try:
            await self.backend.add(
                f"conversations/{self.id}/messages",
                {
                    "senderId": self.me,
                    "receiverId": self.other,
                    "text": text,
                    "imageUrl": image_url,
                    "isRead": False,
                    "createdAt": created_at,
                    "clientId": client_id,
                },
            )
        except Exception:
            self.last_failed = self._set_state(client_id, MessageState.FAILED)
            self._pending = [p for p in self._pending if p.client_id != client_id]
            self.sending = False
            self._notify()
            _logger.warning(f"Message to {self.other} failed, rolled back")
            raise

        confirmed = self._set_state(client_id, MessageState.CONFIRMED)
        self.sending = False
        self._notify()
        await self._touch_metadata(text, created_at)
        return confirmed

    async def _touch_metadata(self, text: str, sent_at: datetime) -> None:
        path = f"conversations/{self.id}"
        try:
            current = await self.backend.get(path)
            unread = 1
            if current is not None:
                unread = int(current.data.get(f"unreadCount_{self.other}") or 0) + 1
            await self.backend.set(
                path,
                {
                    "participants": [self.me, self.other],
                    "lastMessage": text or "Sent an image",
                    "lastMessageSender": self.me,
                    "lastMessageAt": sent_at,
                    f"unreadCount_{self.other}": unread,
                    f"unreadCount_{self.me}": 0,
                },
                merge=True,
            )
        except AppError as e:
            _logger.warning(f"Conversation {self.id} metadata not updated: {e.user_message}")
