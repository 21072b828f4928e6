from typing import Any, Dict, Optional

from textual import on
from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label

from db.models import Profile

# (profile attribute, label)
EDITABLE = [
    ("first_name", "First Name"),
    ("middle_name", "Middle Name"),
    ("last_name", "Last Name"),
    ("username", "Username"),
    ("contact_number", "Contact Number"),
    ("address", "Address"),
]


class ProfileModal(ModalScreen[Optional[Dict[str, Any]]]):
    """
    Edit the buyer profile. Dismisses with only the changed fields,
    or None when cancelled or nothing changed.
    """

    def __init__(self, profile: Profile):
        super().__init__()
        self.profile = profile

    def compose(self) -> ComposeResult:
        with Container(id="div-profile"):
            yield Label("Edit Profile", id="caption")
            for attr, label in EDITABLE:
                yield Label(label)
                yield Input(getattr(self.profile, attr) or "", id=f"input-{attr}")
            with Horizontal(id="dialog"):
                yield Button("Cancel", id="btn-secondary")
                yield Button("Save", variant="primary", id="btn-primary")

    def on_mount(self):
        self.query_one("#input-first_name").focus()

    @on(Button.Pressed, "#btn-primary")
    def handle_save(self) -> None:
        changed = {}
        for attr, _ in EDITABLE:
            field = self.query_one(f"#input-{attr}", Input)
            field.remove_class("-invalid")
            value = field.value.strip()
            if value != (getattr(self.profile, attr) or ""):
                changed[attr] = value
        self.dismiss(changed or None)

    @on(Button.Pressed, "#btn-secondary")
    def handle_cancel(self) -> None:
        self.dismiss(None)
