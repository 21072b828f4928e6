from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, MarkdownViewer

from core.roles import Variant, pick_variant
from core.session import LoggedIn, Session
from realtime.entities import (
    BUYER_ORDERS,
    INQUIRY_STATUSES,
    NOTIFICATION_BADGE,
    ORDER_STATUSES,
    SELLER_INQUIRIES,
    SELLER_ORDERS,
)
from realtime.sync import ALL, LiveCollection
from utils.pure import generate_markdown_table
from views.base_screen import BaseScreen
from views.modal_profile import ProfileModal


class HomeScreen(BaseScreen):
    """
    Landing screen. Buyers get their profile and order summary,
    sellers a shop dashboard; the variant is re-resolved on every session change.
    """

    def __init__(self) -> None:
        super().__init__()
        self.notifications = self.live(NOTIFICATION_BADGE)
        self.buyer_orders = self.live(BUYER_ORDERS, Variant.BUYER)
        self.seller_orders = self.live(SELLER_ORDERS, Variant.SELLER)
        self.inquiries = self.live(SELLER_INQUIRIES, Variant.SELLER)
        self._session: Optional[Session] = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-home", show_table_of_contents=False)
            with Horizontal(id="hort-home-controls"):
                yield Button("Edit Profile", id="btn-edit-profile")

    def session_changed(self, session: Session, variant: Variant) -> None:
        self._session = session
        self.query_one("#btn-edit-profile").set_class(variant == Variant.SELLER, "hidden")
        self.render_home()

    def update_view(self, collection: LiveCollection) -> None:
        self.render_home()

    @work(exclusive=True, group="home")
    async def render_home(self) -> None:
        if not isinstance(self._session, LoggedIn):
            md = "### Loading..."
        else:
            md = pick_variant(
                self._session,
                {Variant.BUYER: self._buyer_markdown, Variant.SELLER: self._seller_markdown},
            )()
        await self.query_one("#md-home", MarkdownViewer).document.update(md)

    def _buyer_markdown(self) -> str:
        profile = self._session.profile
        header = f"### Welcome, {profile.display_name}\n\n"
        if not profile.profile_complete:
            header += "> Your profile is incomplete. Add your name, contact number and address.\n\n"

        details = generate_markdown_table(
            ["Field", "Value"],
            [
                ["Email", profile.email],
                ["Username", profile.username],
                ["Contact Number", profile.contact_number],
                ["Address", profile.address],
            ],
        )
        counts = self.buyer_orders.counts(ORDER_STATUSES)
        orders = generate_markdown_table(
            ["Status", "Orders"],
            [[s.title(), counts[s]] for s in (ALL,) + ORDER_STATUSES],
            ["l", "r"],
        )
        unread = self.notifications.unread_count
        return (
            header
            + details
            + "\n\n#### My Orders\n\n"
            + (orders if not self.buyer_orders.loading else "Loading orders...")
            + f"\n\n**Unread notifications:** {unread}"
        )

    def _seller_markdown(self) -> str:
        profile = self._session.profile
        shop = profile.seller_profile
        name = (shop and (shop.shop_name or shop.business_name)) or profile.display_name
        header = f"### {name} Dashboard\n\n"

        order_counts = self.seller_orders.counts(ORDER_STATUSES)
        orders = generate_markdown_table(
            ["Status", "Orders"],
            [[s.title(), order_counts[s]] for s in (ALL,) + ORDER_STATUSES],
            ["l", "r"],
        )
        inquiry_counts = self.inquiries.counts(INQUIRY_STATUSES)
        inquiries = generate_markdown_table(
            ["Status", "Inquiries"],
            [[s.title(), inquiry_counts[s]] for s in (ALL,) + INQUIRY_STATUSES],
            ["l", "r"],
        )
        revenue = sum(o.total_payment for o in self.seller_orders.by_status("delivered"))
        return (
            header
            + "#### Orders\n\n"
            + orders
            + "\n\n#### Inquiries\n\n"
            + inquiries
            + f"\n\n**Delivered revenue:** ₱{revenue:,.2f}"
            + f"\n\n**Unread notifications:** {self.notifications.unread_count}"
        )

    @on(Button.Pressed, "#btn-edit-profile")
    @work(exclusive=True)
    async def handle_edit_profile(self) -> None:
        profile = self.app.store.profile
        if profile is None:
            return
        changed = await self.app.push_screen_wait(ProfileModal(profile))
        if not changed:
            return
        await self.attempt(self.app.store.update_profile(**changed), success="Profile updated.")
