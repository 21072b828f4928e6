from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, DataTable, Label

from core.roles import Variant
from db.models import Address
from realtime.entities import ADDRESSES
from realtime.mutations import add_address, delete_address, select_default_address
from realtime.sync import LiveCollection
from views.base_screen import BaseScreen
from views.modal_address import AddressModal


class AddressesScreen(BaseScreen):
    """
    Buyer delivery addresses. The list lives on the user document and every
    change rewrites it as a whole.
    """

    def __init__(self) -> None:
        super().__init__()
        self.addresses = self.live(ADDRESSES, Variant.BUYER)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield Label("", id="label-addresses")
            yield DataTable(id="table-addresses")
        with Horizontal(id="hort-table-control"):
            yield Button("Add Address", id="btn-add", variant="primary")
            yield Button("Set Default", id="btn-default", disabled=True)
            yield Button("Delete", id="btn-delete", variant="error", disabled=True)

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("", "Name", "Phone", "Address", "Region")

    def update_view(self, collection: LiveCollection) -> None:
        table = self.query_one(DataTable)
        table.clear()
        for a in collection.items:
            table.add_row(
                "★" if a.is_default else "",
                a.full_name,
                a.phone_number,
                a.one_line,
                a.region,
                key=a.id,
            )
        label = self.query_one("#label-addresses", Label)
        if collection.loading:
            label.update("Loading addresses...")
        elif not collection.items:
            label.update("No saved addresses. Add one to check out faster.")
        else:
            label.update(f"{len(collection.items)} saved address(es)")
        self._refresh_buttons()

    def selected_address(self) -> Optional[Address]:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return None
        key = table.coordinate_to_cell_key(table.cursor_coordinate).row_key.value
        return next((a for a in self.addresses.items if a.id == key), None)

    @on(DataTable.RowHighlighted)
    def _refresh_buttons(self) -> None:
        address = self.selected_address()
        self.query_one("#btn-default", Button).disabled = address is None or address.is_default
        self.query_one("#btn-delete", Button).disabled = address is None

    @on(Button.Pressed, "#btn-add")
    @work(exclusive=True)
    async def handle_add(self) -> None:
        values = await self.app.push_screen_wait(AddressModal())
        if values is None:
            return
        await self.attempt(
            add_address(self.app.backend, self.app.store.user_id, self.addresses.items, **values),
            success="Address added.",
        )

    @on(Button.Pressed, "#btn-default")
    @work(exclusive=True)
    async def handle_default(self) -> None:
        address = self.selected_address()
        if address is None:
            return
        await self.attempt(
            select_default_address(
                self.app.backend, self.app.store.user_id, self.addresses.items, address.id
            ),
            success="Default address updated.",
        )

    @on(Button.Pressed, "#btn-delete")
    @work(exclusive=True)
    async def handle_delete(self) -> None:
        address = self.selected_address()
        if address is None:
            return
        if not await self.confirm(f"Delete the address of {address.full_name}?", tone="error"):
            return
        await self.attempt(
            delete_address(self.app.backend, self.app.store.user_id, self.addresses.items, address.id),
            success="Address deleted.",
        )
