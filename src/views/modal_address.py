from typing import Dict, Optional

from textual import on
from textual.app import ComposeResult
from textual.containers import Horizontal, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Checkbox, Input, Label

FIELDS = [
    ("full_name", "Full Name", "Juan Dela Cruz"),
    ("phone_number", "Phone Number", "09XXXXXXXXX"),
    ("region", "Region", "Region IV-A"),
    ("province", "Province", "Batangas"),
    ("city", "City / Municipality", "Taal"),
    ("barangay", "Barangay", "Poblacion"),
    ("street_address", "Street Address", "123 Rizal St."),
]


class AddressModal(ModalScreen[Optional[Dict]]):
    """
    Collects a new address; the values are validated by add_address.
    """

    def compose(self) -> ComposeResult:
        with VerticalScroll(id="div-address"):
            yield Label("New Address", id="caption")
            for name, label, placeholder in FIELDS:
                yield Label(label)
                yield Input(placeholder=placeholder, id=f"input-{name}")
            yield Checkbox("Set as default", id="chk-default")
            with Horizontal(id="dialog"):
                yield Button("Cancel", id="btn-secondary")
                yield Button("Save", variant="primary", id="btn-primary")

    def on_mount(self):
        self.query_one("#input-full_name").focus()

    @on(Button.Pressed, "#btn-primary")
    def handle_save(self) -> None:
        values = {
            name: self.query_one(f"#input-{name}", Input).value for name, _, _ in FIELDS
        }
        values["is_default"] = self.query_one("#chk-default", Checkbox).value
        self.dismiss(values)

    @on(Button.Pressed, "#btn-secondary")
    def handle_cancel(self) -> None:
        self.dismiss(None)
