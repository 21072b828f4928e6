from textual import on
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, DataTable, Label, MarkdownViewer

from realtime.entities import NOTIFICATIONS
from realtime.sync import LiveCollection
from utils.pure import format_date, short_order_id
from views.base_screen import BaseScreen


class NotificationsScreen(BaseScreen):
    """
    Newest first. Unread entries are marked read shortly after the list
    first loads; the table keeps showing what arrived as unread until then.
    """

    BINDINGS = [
        Binding("r", "refresh_list", "Refresh", show=True),
    ]

    def __init__(self) -> None:
        super().__init__()
        self.notifications = self.live(NOTIFICATIONS)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield Label("", id="label-unread")
            yield DataTable(id="table-notifications")
            yield MarkdownViewer(id="md-notification", show_table_of_contents=False)
        with Horizontal(id="hort-table-control"):
            yield Button("Refresh", id="btn-refresh")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("", "Title", "Message", "Date")

    def update_view(self, collection: LiveCollection) -> None:
        table = self.query_one(DataTable)
        table.clear()
        for n in collection.items:
            table.add_row(
                "●" if n.status == "unread" else "",
                n.title,
                n.message,
                format_date(n.created_at),
                key=n.id,
            )

        label = self.query_one("#label-unread", Label)
        if collection.loading:
            label.update("Loading notifications...")
        elif collection.error is not None and not collection.items:
            label.update("Could not load notifications.")
        elif not collection.items:
            label.update("No notifications yet.")
        else:
            label.update(f"{collection.unread_count} unread of {len(collection.items)}")
        self._show_detail()

    @on(DataTable.RowHighlighted)
    def _show_detail(self) -> None:
        table = self.query_one(DataTable)
        viewer = self.query_one("#md-notification", MarkdownViewer)
        if table.row_count == 0:
            viewer.document.update("")
            return
        key = table.coordinate_to_cell_key(table.cursor_coordinate).row_key.value
        n = next((n for n in self.notifications.items if n.id == key), None)
        if n is None:
            return
        md = f"### {n.title}\n\n{n.message}\n\n{format_date(n.created_at)}"
        if n.order_id:
            md += f"\n\nOrder #{short_order_id(n.order_id)}"
        viewer.document.update(md)

    @on(Button.Pressed, "#btn-refresh")
    def action_refresh_list(self) -> None:
        self.notifications.refresh()
