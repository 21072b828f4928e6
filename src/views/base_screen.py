from typing import Awaitable, Callable, List, Optional, Tuple

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.events import Mount, Unmount
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Label, ListItem, ListView, Markdown

from core.roles import Variant, resolve_variant
from core.session import LoggedIn, Session
from realtime.sync import EntitySpec, LiveCollection
from utils.errors import AppError
from utils.logger import get_logger
from utils.messages import ModeSwitchedMessage, RoleSwitchRequestedMessage, UserLogoutMessage
from utils.pure import generate_markdown_table
from views.modal_dialog import DialogModal, QuitDialogModal

_logger = get_logger(__name__)


class Sidebar(Container):
    init_mode = ""

    def compose(self) -> ComposeResult:
        yield Label("User Info", id="label-info-1")
        yield Markdown("", id="md-userinfo")
        yield Button("Switch to Seller", id="btn-switch-role", classes="hidden")
        yield Button("Log out", id="btn-logout", variant="error")
        yield Label("Menu", id="label-info-2")
        yield ListView(id="list-menu")

    def on_mount(self):
        self.init_mode = self.app.current_mode

    @work(exclusive=True, group="sidebar")
    async def show_session(self, session: Session) -> None:
        list_menu: ListView = self.query_one("#list-menu", ListView)
        if not isinstance(session, LoggedIn):
            await self.query_one(Markdown).update("")
            await list_menu.clear()
            return

        profile = session.profile
        variant = resolve_variant(session)
        table_rows = [
            ["Name", profile.display_name],
            ["Email", profile.email],
            ["Mode", "Seller" if variant == Variant.SELLER else "Buyer"],
        ]
        if variant == Variant.SELLER and profile.seller_profile:
            table_rows.append(["Shop", profile.seller_profile.shop_name])
        await self.query_one(Markdown).update(
            generate_markdown_table(None, [["", ""]] + table_rows, ["l", "l"])
        )

        switch_btn = self.query_one("#btn-switch-role", Button)
        switch_btn.set_class(not profile.is_seller, "hidden")
        switch_btn.label = "Switch to Buyer" if variant == Variant.SELLER else "Switch to Seller"

        await list_menu.clear()
        await list_menu.extend(
            [
                ListItem(Label(v), id="list-menu-item-" + k)
                for k, v in self.app.menu_for(variant).items()
            ]
        )
        self.highlight_item(self.init_mode)

    async def on_list_view_selected(self, event: ListView.Selected):
        selected_mode = event.item.id.removeprefix("list-menu-item-")
        self.highlight_item(self.init_mode)
        if self.app.current_mode != selected_mode:
            self.app.post_message(ModeSwitchedMessage(self.app.current_mode, selected_mode))
            await self.app.switch_mode(selected_mode)

    @on(Button.Pressed, "#btn-switch-role")
    def handle_switch_role(self):
        to_seller = resolve_variant(self.app.store.session) == Variant.BUYER
        self.app.post_message(RoleSwitchRequestedMessage(to_seller))

    @on(Button.Pressed, "#btn-logout")
    @work
    async def handle_logout(self):
        if not await self.app.push_screen_wait(
            DialogModal(
                "Are you sure you want to log out?",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        ):
            return

        self.app.post_message(UserLogoutMessage())

    def highlight_item(self, mode_str: str):
        list_menu = self.query_one("#list-menu")
        for item in list_menu.children:
            item.highlighted = item.id == "list-menu-item-" + mode_str


class BaseScreen(Screen):
    """
    Inherited by all screens, contains common elements like
    headers, footers, sidebar, and keybindings.

    Screens declare their live data with ``self.live(spec)`` in __init__;
    the collections follow the logged-in user for as long as the screen is
    mounted and are released on unmount.
    """

    BINDINGS = [
        Binding("ctrl+z", "quit", "Quit App", show=True),
    ]

    def __init__(self):
        super().__init__()
        self._collections: List[Tuple[LiveCollection, Optional[Variant]]] = []
        self._unsubscribe_session: Optional[Callable[[], None]] = None
        self.configure()

    def configure(
        self,
        header_sub_title: str = "",
        show_sidebar: bool = True,
    ) -> None:
        """
        configure behavior of the base screen
        """
        self.app.title = "E-Taas"
        self.sub_title = header_sub_title
        for k, v in self.app.MODES.items():
            if isinstance(self, v):
                self.sub_title = (
                    self.app.SELLER_MODES.get(k) or self.app.BUYER_MODES.get(k) or header_sub_title
                )

        self._show_sidebar = show_sidebar

    def compose(self) -> ComposeResult:
        if self._show_sidebar:
            yield Sidebar()
        yield Header()
        yield Footer(show_command_palette=False)

    # ---------------------------
    # Live data
    # ---------------------------

    def live(self, spec: EntitySpec, variant: Optional[Variant] = None) -> LiveCollection:
        """
        Register a collection for this screen. With ``variant`` set it is only
        bound while the session resolves to that variant.
        """
        collection = LiveCollection(self.app.backend, spec, on_change=self._handle_live_change)
        self._collections.append((collection, variant))
        return collection

    def _handle_live_change(self, collection: LiveCollection) -> None:
        if self.is_mounted:
            self.update_view(collection)

    def update_view(self, collection: LiveCollection) -> None:
        """Called whenever one of this screen's collections changes."""

    # ---------------------------
    # Session
    # ---------------------------

    @on(Mount)
    def _attach_session(self) -> None:
        self._unsubscribe_session = self.app.store.subscribe(self._handle_session)
        self._handle_session(self.app.store.session)

    @on(Unmount)
    def _detach_session(self) -> None:
        if self._unsubscribe_session is not None:
            self._unsubscribe_session()
            self._unsubscribe_session = None
        for collection, _ in self._collections:
            collection.close()

    def _handle_session(self, session: Session) -> None:
        variant = resolve_variant(session)
        user_id = self.app.store.user_id
        for collection, only in self._collections:
            collection.bind(user_id if only in (None, variant) else None)
        if self._show_sidebar:
            self.query_one(Sidebar).show_session(session)
        self.session_changed(session, variant)

    def session_changed(self, session: Session, variant: Variant) -> None:
        """Hook for screens whose layout depends on the variant."""

    # ---------------------------
    # Helpers
    # ---------------------------

    async def attempt(self, action: Awaitable, success: Optional[str] = None) -> bool:
        """Await a backend action, turning AppError into an error toast."""
        try:
            await action
        except AppError as e:
            _logger.info(f"{type(self).__name__}: {type(e).__name__}: {e.user_message}")
            self.notify(e.user_message, severity="error")
            return False
        if success:
            self.notify(success)
        return True

    async def confirm(self, caption: str, tone: str = "warning") -> bool:
        return await self.app.push_screen_wait(
            DialogModal(caption, primary_text="Yes", secondary_text="No", tone=tone)
        )

    @work()
    async def action_quit(self):
        await self.app.push_screen_wait(QuitDialogModal())
