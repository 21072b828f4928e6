from rich.text import Text
from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Static

from db.models import MessageState
from realtime.backend import LiveBackend
from realtime.chat import Conversation
from utils.errors import AppError
from utils.pure import format_date


class ConversationModal(ModalScreen[None]):
    """
    Chat with one other user. Sent messages show right away and are
    dropped again if the write fails.
    """

    BINDINGS = [
        Binding("escape", "close", "Close", show=True),
    ]

    def __init__(self, backend: LiveBackend, me: str, other: str, title: str = ""):
        super().__init__()
        self.me = me
        self.title_text = title or other
        self.conversation = Conversation(backend, me, other, on_change=self._handle_change)

    def compose(self) -> ComposeResult:
        with Container(id="div-conversation"):
            yield Label(self.title_text, id="caption")
            with VerticalScroll(id="scroll-messages"):
                yield Static("", id="static-messages")
            with Horizontal(id="hort-compose"):
                yield Input(placeholder="Type a message...", id="input-message")
                yield Button("Send", id="btn-send", variant="primary")
                yield Button("Close", id="btn-close")

    def on_mount(self) -> None:
        self.query_one("#input-message").focus()
        self.open_conversation()

    def on_unmount(self) -> None:
        self.conversation.close()

    @work
    async def open_conversation(self) -> None:
        await self.conversation.open()

    def _handle_change(self, conversation: Conversation) -> None:
        if not self.is_mounted:
            return
        body = Text()
        if conversation.loading and not conversation.messages:
            body.append("Loading messages...", style="dim")
        for m in conversation.messages:
            mine = m.sender_id == self.me
            body.append("You" if mine else self.title_text, style="bold cyan" if mine else "bold")
            body.append(f"  {format_date(m.created_at)}", style="dim")
            if m.state == MessageState.PENDING:
                body.append("  sending...", style="dim italic")
            body.append("\n")
            body.append(m.text or "[image]")
            if m.image_url:
                body.append(f"\n{m.image_url}", style="underline")
            body.append("\n\n")
        self.query_one("#static-messages", Static).update(body)
        self.query_one("#scroll-messages", VerticalScroll).scroll_end(animate=False)

    @on(Input.Submitted, "#input-message")
    @on(Button.Pressed, "#btn-send")
    @work(exclusive=True, group="send")
    async def handle_send(self) -> None:
        field = self.query_one("#input-message", Input)
        text = field.value.strip()
        if not text:
            return
        field.value = ""
        try:
            await self.conversation.send(text)
        except AppError as e:
            field.value = text
            self.notify(f"Message not sent. {e.user_message}", severity="error")

    @on(Button.Pressed, "#btn-close")
    def action_close(self) -> None:
        self.dismiss(None)
