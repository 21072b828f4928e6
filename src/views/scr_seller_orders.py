from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, DataTable, MarkdownViewer, Tab, Tabs

from core.roles import Variant
from db.models import Order
from realtime.entities import ORDER_STATUSES, SELLER_ORDERS
from realtime.mutations import can_transition, confirm_order, ship_order
from realtime.sync import ALL, LiveCollection
from utils.pure import short_order_id
from views.base_screen import BaseScreen
from views.modal_dialog import InputDialogModal
from views.scr_orders import OrderTable, order_markdown, status_tabs


class SellerOrdersScreen(BaseScreen):
    """
    Orders placed with the seller's shop. Pending orders can be confirmed,
    confirmed ones shipped with a tracking link.
    """

    BINDINGS = [
        Binding("r", "refresh_list", "Refresh", show=True),
    ]

    def __init__(self) -> None:
        super().__init__()
        self.orders = self.live(SELLER_ORDERS, Variant.SELLER)
        self.status = ALL

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield status_tabs()
            yield OrderTable(id="table-orders")
            yield MarkdownViewer(id="md-order-detail", show_table_of_contents=False)
        with Horizontal(id="hort-table-control"):
            yield Button("Refresh", id="btn-refresh")
            yield Button("Confirm", id="btn-confirm", variant="success", disabled=True)
            yield Button("Ship", id="btn-ship", variant="primary", disabled=True)

    def update_view(self, collection: LiveCollection) -> None:
        for status, count in collection.counts(ORDER_STATUSES).items():
            self.query_one(f"#tab-{status}", Tab).label = f"{status.title()} ({count})"
        self.query_one(OrderTable).show(collection.by_status(self.status))
        self._show_selected()

    @on(Tabs.TabActivated, "#tabs-status")
    def handle_status(self, event: Tabs.TabActivated) -> None:
        self.status = event.tab.id.removeprefix("tab-")
        self.update_view(self.orders)

    def selected_order(self) -> Optional[Order]:
        order_id = self.query_one(OrderTable).selected_id
        return next((o for o in self.orders.items if o.id == order_id), None)

    @on(DataTable.RowHighlighted)
    def _show_selected(self) -> None:
        order = self.selected_order()
        self.query_one("#md-order-detail", MarkdownViewer).document.update(order_markdown(order))
        self.query_one("#btn-confirm", Button).disabled = not (
            order and can_transition(order.status, "confirmed")
        )
        self.query_one("#btn-ship", Button).disabled = not (
            order and can_transition(order.status, "shipped")
        )

    @on(Button.Pressed, "#btn-confirm")
    @work(exclusive=True)
    async def handle_confirm(self) -> None:
        order = self.selected_order()
        if order is None:
            return
        await self.attempt(confirm_order(self.app.backend, order), success="Order confirmed.")

    @on(Button.Pressed, "#btn-ship")
    @work(exclusive=True)
    async def handle_ship(self) -> None:
        order = self.selected_order()
        if order is None:
            return
        link = await self.app.push_screen_wait(
            InputDialogModal(
                f"Tracking link for order #{short_order_id(order.id)}",
                placeholder="https://",
                confirm_text="Ship",
            )
        )
        if link is None:
            return
        await self.attempt(ship_order(self.app.backend, order, link), success="Order shipped.")

    @on(Button.Pressed, "#btn-refresh")
    def action_refresh_list(self) -> None:
        self.orders.refresh()
