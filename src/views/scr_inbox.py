from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, DataTable, Label

from db.models import ConversationPreview
from realtime.entities import CONVERSATIONS
from realtime.sync import LiveCollection
from utils.pure import format_date
from views.base_screen import BaseScreen
from views.modal_conversation import ConversationModal
from views.modal_dialog import InputDialogModal


class InboxScreen(BaseScreen):
    BINDINGS = [
        Binding("n", "new_chat", "New Chat", show=True),
    ]

    def __init__(self) -> None:
        super().__init__()
        self.conversations = self.live(CONVERSATIONS)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield Label("", id="label-inbox")
            yield DataTable(id="table-conversations")
        with Horizontal(id="hort-table-control"):
            yield Button("Refresh", id="btn-refresh")
            yield Button("New Chat", id="btn-new-chat")
            yield Button("Open", id="btn-open", variant="primary")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("With", "Last Message", "When", "Unread")

    def _other(self, conversation: ConversationPreview) -> str:
        me = self.app.store.user_id
        others = [p for p in conversation.participants if p != me]
        return others[0] if others else me

    def update_view(self, collection: LiveCollection) -> None:
        me = self.app.store.user_id
        table = self.query_one(DataTable)
        table.clear()
        for c in collection.items:
            prefix = "You: " if c.last_message_sender == me else ""
            table.add_row(
                self._other(c),
                prefix + c.last_message,
                format_date(c.last_message_at),
                str(c.unread_count) if c.unread_count else "",
                key=c.id,
            )

        unread = sum(c.unread_count for c in collection.items)
        label = self.query_one("#label-inbox", Label)
        if collection.loading:
            label.update("Loading conversations...")
        elif not collection.items:
            label.update("No conversations yet.")
        else:
            label.update(f"{len(collection.items)} conversation(s), {unread} unread message(s)")

    def selected_conversation(self) -> Optional[ConversationPreview]:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return None
        key = table.coordinate_to_cell_key(table.cursor_coordinate).row_key.value
        return next((c for c in self.conversations.items if c.id == key), None)

    def open_chat(self, other: str) -> None:
        me = self.app.store.user_id
        if me is None:
            return
        if other == me:
            self.notify("You cannot message yourself.", severity="warning")
            return
        self.app.push_screen(ConversationModal(self.app.backend, me, other))

    @on(DataTable.RowSelected)
    @on(Button.Pressed, "#btn-open")
    def handle_open(self) -> None:
        conversation = self.selected_conversation()
        if conversation is not None:
            self.open_chat(self._other(conversation))

    @on(Button.Pressed, "#btn-new-chat")
    @work(exclusive=True)
    async def action_new_chat(self) -> None:
        other = await self.app.push_screen_wait(
            InputDialogModal("Start a conversation with user ID", confirm_text="Open")
        )
        if other:
            self.open_chat(other)

    @on(Button.Pressed, "#btn-refresh")
    def handle_refresh(self) -> None:
        self.conversations.refresh()
