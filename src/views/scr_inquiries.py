from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, DataTable, MarkdownViewer, Tab, Tabs

from core.roles import Variant
from db.models import Inquiry
from realtime.entities import INQUIRY_STATUSES, SELLER_INQUIRIES
from realtime.mutations import delete_inquiry
from realtime.sync import ALL, LiveCollection
from utils.pure import format_date, generate_markdown_table
from views.base_screen import BaseScreen


class InquiriesScreen(BaseScreen):
    """
    Service inquiries addressed to the seller.
    """

    BINDINGS = [
        Binding("r", "refresh_list", "Refresh", show=True),
        Binding("delete", "delete_inquiry", "Delete", show=True),
    ]

    def __init__(self) -> None:
        super().__init__()
        self.inquiries = self.live(SELLER_INQUIRIES, Variant.SELLER)
        self.status = ALL

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield Tabs(
                *[Tab(s.title(), id=f"tab-{s}") for s in (ALL,) + INQUIRY_STATUSES],
                id="tabs-status",
            )
            yield DataTable(id="table-inquiries")
            yield MarkdownViewer(id="md-inquiry", show_table_of_contents=False)
        with Horizontal(id="hort-table-control"):
            yield Button("Refresh", id="btn-refresh")
            yield Button("Delete", id="btn-delete", variant="error", disabled=True)

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Customer", "Service", "Date", "Status")

    def update_view(self, collection: LiveCollection) -> None:
        for status, count in collection.counts(INQUIRY_STATUSES).items():
            self.query_one(f"#tab-{status}", Tab).label = f"{status.title()} ({count})"

        table = self.query_one(DataTable)
        table.clear()
        for i in collection.by_status(self.status):
            table.add_row(
                i.customer_name,
                i.service_name,
                format_date(i.created_at),
                i.status.title(),
                key=i.id,
            )
        self._show_selected()

    @on(Tabs.TabActivated, "#tabs-status")
    def handle_status(self, event: Tabs.TabActivated) -> None:
        self.status = event.tab.id.removeprefix("tab-")
        self.update_view(self.inquiries)

    def selected_inquiry(self) -> Optional[Inquiry]:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return None
        key = table.coordinate_to_cell_key(table.cursor_coordinate).row_key.value
        return next((i for i in self.inquiries.items if i.id == key), None)

    @on(DataTable.RowHighlighted)
    def _show_selected(self) -> None:
        inquiry = self.selected_inquiry()
        self.query_one("#btn-delete", Button).disabled = inquiry is None
        viewer = self.query_one("#md-inquiry", MarkdownViewer)
        if inquiry is None:
            viewer.document.update("### Select an inquiry to view it.")
            return
        details = generate_markdown_table(
            ["Field", "Value"],
            [
                ["Service", inquiry.service_name],
                ["Business", inquiry.business_name],
                ["Customer", inquiry.customer_name],
                ["Phone", inquiry.customer_phone],
                ["Email", inquiry.customer_email],
                ["Received", format_date(inquiry.created_at)],
                ["Status", inquiry.status.title()],
            ],
        )
        viewer.document.update(f"### Inquiry\n\n{details}\n\n> {inquiry.message}")

    @on(Button.Pressed, "#btn-delete")
    @work(exclusive=True)
    async def action_delete_inquiry(self) -> None:
        inquiry = self.selected_inquiry()
        if inquiry is None:
            return
        if not await self.confirm(f"Delete the inquiry from {inquiry.customer_name}?", tone="error"):
            return
        await self.attempt(delete_inquiry(self.app.backend, inquiry.id), success="Inquiry deleted.")

    @on(Button.Pressed, "#btn-refresh")
    def action_refresh_list(self) -> None:
        self.inquiries.refresh()
