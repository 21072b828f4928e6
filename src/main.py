from typing import Dict, Optional

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

from api.client import ApiClient
from core.gate import AuthGate, GateState
from core.roles import Variant, resolve_variant
from core.session import LoggedIn, Session, SessionStore
from realtime.backend import LiveBackend
from realtime.firestore import FirestoreBackend
from utils.errors import AppError
from utils.logger import get_logger
from utils.messages import (
    ModeSwitchedMessage,
    QuitRequestedMessage,
    RoleSwitchRequestedMessage,
    UserLogoutMessage,
)
from views.scr_addresses import AddressesScreen
from views.scr_home import HomeScreen
from views.scr_inbox import InboxScreen
from views.scr_inquiries import InquiriesScreen
from views.scr_login import LoginScreen, ResetPasswordScreen
from views.scr_notifications import NotificationsScreen
from views.scr_orders import OrdersScreen, ToReceiveScreen
from views.scr_seller_orders import SellerOrdersScreen

_logger = get_logger(__name__)


class EtaasApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "login": LoginScreen,
        "reset_password": ResetPasswordScreen,
        "home": HomeScreen,
        "orders": OrdersScreen,
        "to_receive": ToReceiveScreen,
        "notifications": NotificationsScreen,
        "inbox": InboxScreen,
        "addresses": AddressesScreen,
        "seller_orders": SellerOrdersScreen,
        "inquiries": InquiriesScreen,
    }

    BUYER_MODES = {
        "home": "Home",
        "orders": "My Orders",
        "to_receive": "Deliveries",
        "notifications": "Notifications",
        "inbox": "Inbox",
        "addresses": "Addresses",
    }
    SELLER_MODES = {
        "home": "Dashboard",
        "seller_orders": "Shop Orders",
        "inquiries": "Inquiries",
        "notifications": "Notifications",
        "inbox": "Inbox",
    }

    CSS_PATH = "styles/app.tcss"

    def __init__(
        self,
        api: Optional[ApiClient] = None,
        store: Optional[SessionStore] = None,
        backend: Optional[LiveBackend] = None,
    ):
        super().__init__()
        self.api = api or ApiClient()
        self.store = store or SessionStore(self.api)
        self.gate = AuthGate()
        self._backend = backend
        self._unsubscribe_session = None

    @property
    def backend(self) -> LiveBackend:
        # first authenticated screen pays for the firebase init
        if self._backend is None:
            self._backend = FirestoreBackend()
        return self._backend

    def menu_for(self, variant: Variant) -> Dict[str, str]:
        return self.SELLER_MODES if variant == Variant.SELLER else self.BUYER_MODES

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    def on_mount(self) -> None:
        self._unsubscribe_session = self.store.subscribe(self.handle_session_change)
        self.restore_session()

    async def on_unmount(self) -> None:
        if self._unsubscribe_session is not None:
            self._unsubscribe_session()
        await self.api.aclose()

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    # ---------------------------
    # Session & routing
    # ---------------------------

    @work
    async def restore_session(self) -> None:
        await self.store.fetch_current_user()

    def route_for(self, session: Session, mode: str) -> Optional[str]:
        """Mode to switch to after a session change, or None to stay."""
        if not self.gate.initialized:
            return None
        if mode not in self.MODES:
            # still on the loading screen
            if self.gate.state == GateState.AUTHENTICATED:
                return self.gate.authenticated_entry
            return self.gate.public_entry

        target = self.gate.redirect_for(mode)
        if target is not None:
            return target
        if isinstance(session, LoggedIn) and mode not in self.menu_for(resolve_variant(session)):
            # role switched away from a mode the new variant does not have
            return self.gate.authenticated_entry
        return None

    def handle_session_change(self, session: Session) -> None:
        self.gate.on_session(session)
        target = self.route_for(session, self.current_mode)
        if target is not None and target != self.current_mode:
            _logger.debug(f"Redirect {self.current_mode} -> {target} ({self.gate.state.value})")
            self.goto_mode(target)

    @work(exclusive=True, group="routing")
    async def goto_mode(self, mode: str) -> None:
        self.post_message(ModeSwitchedMessage(self.current_mode, mode))
        await self.switch_mode(mode)

    # ---------------------------
    # App level messages
    # ---------------------------

    @on(ModeSwitchedMessage)
    def handle_mode_switched(self, message: ModeSwitchedMessage):
        _logger.debug(f"Mode {message.old_mode} -> {message.new_mode}")

    @on(UserLogoutMessage)
    @work
    async def handle_user_logout(self):
        if await self.store.clear_user():
            self.notify("Logout successful.")
        else:
            self.notify(
                "Logged out, but the saved login could not be removed from this device.",
                severity="warning",
            )

    @on(RoleSwitchRequestedMessage)
    @work(exclusive=True, group="role")
    async def handle_role_switch(self, message: RoleSwitchRequestedMessage):
        try:
            await self.store.switch_role(message.is_seller_mode)
        except AppError as e:
            self.notify(e.user_message, severity="error")
            return
        self.notify("Switched to seller mode." if message.is_seller_mode else "Switched to buyer mode.")

    @on(QuitRequestedMessage)
    def handle_quit(self):
        # the credential stays, the next start resumes the session
        self.exit()


def main() -> None:
    app = EtaasApp()
    app.run()


if __name__ == "__main__":
    main()
