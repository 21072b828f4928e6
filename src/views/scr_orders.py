from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, DataTable, Label, MarkdownViewer, Tab, TabbedContent, TabPane, Tabs

from db.models import Order
from realtime.entities import BUYER_ORDERS, ORDER_STATUSES, TO_RECEIVE_ORDERS, TO_SHIP_ORDERS
from realtime.mutations import can_transition, cancel_order, mark_order_received
from realtime.sync import ALL, LiveCollection
from utils.pure import format_date, generate_markdown_table, short_order_id
from views.base_screen import BaseScreen


def order_markdown(order: Optional[Order]) -> str:
    if order is None:
        return "### Select an order to view its details."

    header = (
        f"### Order #{short_order_id(order.id)}\n"
        f"Shop: {order.shop_name}  \n"
        f"Placed: {format_date(order.created_at)}  \n"
        f"Status: **{order.status.title()}** ({order.payment_status})\n\n"
    )
    rows = [
        [
            item.product_name,
            item.variant_text or "-",
            item.quantity,
            f"{item.price:.2f}",
            f"{item.price * item.quantity:.2f}",
        ]
        for item in order.items
    ]
    items = generate_markdown_table(
        ["Product", "Variant", "Qty", "Unit Price", "Line Total"],
        rows,
        ["l", "l", "r", "r", "r"],
    )
    footer = ""
    if order.shipping_fee:
        footer += f"\n\nShipping fee: ₱{order.shipping_fee:.2f}"
    footer += f"\n\n**Total:** ₱{order.total_payment:.2f}"
    if order.shipping_link:
        footer += f"\n\nTracking: {order.shipping_link}"
    if order.order_received_at:
        footer += f"\n\nReceived: {format_date(order.order_received_at)}"
    return header + items + footer


def status_tabs() -> Tabs:
    return Tabs(
        *[Tab(s.title(), id=f"tab-{s}") for s in (ALL,) + ORDER_STATUSES],
        id="tabs-status",
    )


class OrderTable(DataTable):
    """Orders keyed by id, cursor kept on the same order across pushes."""

    def __init__(self, **kwargs) -> None:
        super().__init__(cursor_type="row", zebra_stripes=True, **kwargs)

    def show(self, orders: List[Order]) -> None:
        if not self.columns:
            self.add_columns("Order", "Shop", "Date", "Status", "Total (₱)")
        selected = self.selected_id
        self.clear()
        for o in orders:
            self.add_row(
                short_order_id(o.id),
                o.shop_name,
                format_date(o.created_at),
                o.status.title(),
                f"{o.total_payment:.2f}",
                key=o.id,
            )
        if selected is not None and selected in self.rows:
            self.move_cursor(row=self.get_row_index(selected))

    @property
    def selected_id(self) -> Optional[str]:
        if self.row_count == 0 or not self.is_valid_row_index(self.cursor_row):
            return None
        return self.coordinate_to_cell_key(self.cursor_coordinate).row_key.value


class OrdersScreen(BaseScreen):
    """
    Buyer orders by status with counts; pending orders can be cancelled.
    """

    BINDINGS = [
        Binding("r", "refresh_list", "Refresh", show=True),
    ]

    def __init__(self) -> None:
        super().__init__()
        self.orders = self.live(BUYER_ORDERS)
        self.status = ALL

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield status_tabs()
            yield OrderTable(id="table-orders")
            yield MarkdownViewer(id="md-order-detail", show_table_of_contents=False)
        with Horizontal(id="hort-table-control"):
            yield Button("Refresh", id="btn-refresh")
            yield Button("Cancel Order", id="btn-cancel", variant="error", disabled=True)

    def update_view(self, collection: LiveCollection) -> None:
        counts = collection.counts(ORDER_STATUSES)
        for status, count in counts.items():
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
        self.query_one("#btn-cancel", Button).disabled = not (
            order and can_transition(order.status, "cancelled")
        )

    @on(Button.Pressed, "#btn-cancel")
    @work(exclusive=True)
    async def handle_cancel(self) -> None:
        order = self.selected_order()
        if order is None:
            return
        if not await self.confirm(f"Cancel order #{short_order_id(order.id)}?", tone="error"):
            return
        await self.attempt(cancel_order(self.app.backend, order), success="Order cancelled.")

    @on(Button.Pressed, "#btn-refresh")
    def action_refresh_list(self) -> None:
        self.orders.refresh()


class ToReceiveScreen(BaseScreen):
    """
    Orders on their way: confirmed/shipped ("to ship") and shipped or
    recently received ("to receive").
    """

    BINDINGS = [
        Binding("r", "refresh_list", "Refresh", show=True),
    ]

    def __init__(self) -> None:
        super().__init__()
        self.to_ship = self.live(TO_SHIP_ORDERS)
        self.to_receive = self.live(TO_RECEIVE_ORDERS)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with TabbedContent(id="tabs-deliveries", initial="tab-to-receive"):
            with TabPane("To Receive", id="tab-to-receive"):
                yield Label("", id="label-to-receive")
                yield OrderTable(id="table-to-receive")
            with TabPane("To Ship", id="tab-to-ship"):
                yield Label("", id="label-to-ship")
                yield OrderTable(id="table-to-ship")
        yield MarkdownViewer(id="md-order-detail", show_table_of_contents=False)
        with Horizontal(id="hort-table-control"):
            yield Button("Refresh", id="btn-refresh")
            yield Button("Order Received", id="btn-received", variant="success", disabled=True)

    def update_view(self, collection: LiveCollection) -> None:
        suffix = "to-receive" if collection is self.to_receive else "to-ship"
        label = self.query_one(f"#label-{suffix}", Label)
        if collection.loading:
            label.update("Loading...")
        elif not collection.items:
            label.update("Nothing here right now.")
        else:
            label.update(f"{len(collection.items)} order(s)")
        self.query_one(f"#table-{suffix}", OrderTable).show(collection.items)
        self._show_selected()

    def _active(self):
        if self.query_one(TabbedContent).active == "tab-to-ship":
            return self.to_ship, self.query_one("#table-to-ship", OrderTable)
        return self.to_receive, self.query_one("#table-to-receive", OrderTable)

    def selected_order(self) -> Optional[Order]:
        collection, table = self._active()
        order_id = table.selected_id
        return next((o for o in collection.items if o.id == order_id), None)

    @on(TabbedContent.TabActivated)
    @on(DataTable.RowHighlighted)
    def _show_selected(self) -> None:
        order = self.selected_order()
        self.query_one("#md-order-detail", MarkdownViewer).document.update(order_markdown(order))
        self.query_one("#btn-received", Button).disabled = not (
            order and can_transition(order.status, "delivered")
        )

    @on(Button.Pressed, "#btn-received")
    @work(exclusive=True)
    async def handle_received(self) -> None:
        order = self.selected_order()
        if order is None:
            return
        if not await self.confirm(f"Confirm you received order #{short_order_id(order.id)}?"):
            return
        await self.attempt(
            mark_order_received(self.app.backend, order), success="Thanks! Order marked as received."
        )

    @on(Button.Pressed, "#btn-refresh")
    def action_refresh_list(self) -> None:
        self.to_ship.refresh()
        self.to_receive.refresh()
