"""
Entity specs for every live view in the client, plus the document → record
normalizers they use. Normalizers skip (and log) documents they cannot parse
instead of failing the whole snapshot.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, TypeVar

from db.models import (
    Address,
    ChatMessage,
    ConversationPreview,
    Inquiry,
    Notification,
    Order,
    OrderItem,
)
from realtime.backend import ASC, DESC, Document, DocumentRef, LiveBackend, QueryRef
from realtime.sync import EntitySpec
from utils import config
from utils.logger import get_logger
from utils.pure import epoch_key, to_datetime

_logger = get_logger(__name__)

T = TypeVar("T")

ORDER_STATUSES = ("pending", "confirmed", "shipped", "delivered", "cancelled")
INQUIRY_STATUSES = ("pending", "approved", "rejected")


def _parse_each(
    raw_items: List[Dict[str, Any]], parser: Callable[[Dict[str, Any]], T], kind: str
) -> List[T]:
    parsed = []
    for raw in raw_items:
        try:
            parsed.append(parser(raw))
        except (KeyError, TypeError, ValueError) as e:
            _logger.warning(f"Skipping malformed {kind} {raw.get('id', '?')}: {e!r}")
    return parsed


def _with_id(doc: Document) -> Dict[str, Any]:
    return {**doc.data, "id": doc.id}


def _str(value: Any) -> str:
    return "" if value is None else str(value)


# ---------------------------
# Notifications (one document per user, array field)
# ---------------------------


def parse_notification(raw: Dict[str, Any]) -> Notification:
    return Notification(
        id=str(raw["id"]),
        type=raw.get("type", "buyer"),
        title=_str(raw.get("title")),
        message=_str(raw.get("message")),
        status=raw.get("status", "unread"),
        created_at=to_datetime(raw.get("createdAt")),
        order_id=raw.get("orderId"),
        direct_id=raw.get("directId"),
    )


def notification_to_dict(n: Notification) -> Dict[str, Any]:
    return {
        "id": n.id,
        "type": n.type,
        "title": n.title,
        "message": n.message,
        "orderId": n.order_id,
        "status": n.status,
        "createdAt": n.created_at.isoformat() if n.created_at else None,
        "directId": n.direct_id,
    }


def normalize_notifications(docs: List[Document], owner_id: str) -> List[Notification]:
    if not docs:
        return []
    raw = docs[0].data.get("notifications") or []
    return _parse_each([r for r in raw if isinstance(r, dict)], parse_notification, "notification")


async def mark_notifications_read(backend: LiveBackend, owner_id: str, items: List[Notification]) -> None:
    """
    Flip the loaded notifications to read.

    The array is replaced as a whole, so it is rebuilt from the stored raw
    entries: server order, unmodelled fields and entries the client could not
    parse all survive. Only ``status`` changes, and only for loaded ids.
    """
    path = f"notifications/{owner_id}"
    current = await backend.get(path)
    if current is None:
        return
    loaded = {n.id for n in items}
    changed = False
    stored = []
    for raw in current.data.get("notifications") or []:
        if (
            isinstance(raw, dict)
            and raw.get("id") is not None
            and str(raw["id"]) in loaded
            and raw.get("status") != "read"
        ):
            raw = {**raw, "status": "read"}
            changed = True
        stored.append(raw)
    if changed:
        await backend.update(path, {"notifications": stored})


NOTIFICATIONS = EntitySpec(
    kind="notifications",
    source=lambda uid: DocumentRef(f"notifications/{uid}"),
    normalize=normalize_notifications,
    sort_key=lambda n: epoch_key(n.created_at),
    is_unread=lambda n: n.status == "unread",
    mark_read=mark_notifications_read,
)

# same source for unread badges on other screens; never marks anything read
NOTIFICATION_BADGE = replace(NOTIFICATIONS, kind="notification_badge", mark_read=None)


# ---------------------------
# Orders
# ---------------------------


def parse_order_item(raw: Dict[str, Any]) -> OrderItem:
    return OrderItem(
        product_id=_str(raw.get("productId")),
        product_name=_str(raw.get("productName")),
        price=float(raw.get("price") or 0),
        quantity=int(raw.get("quantity") or 0),
        variant_id=raw.get("variantId"),
        variant_text=_str(raw.get("variantText")),
        image=_str(raw.get("image")),
    )


def parse_order(raw: Dict[str, Any]) -> Order:
    items = tuple(parse_order_item(i) for i in raw.get("items") or [] if isinstance(i, dict))
    total = raw.get("totalPayment")
    if total is None:
        total = raw.get("totalAmount")
    if total is None:
        total = sum(i.price * i.quantity for i in items)
    return Order(
        id=str(raw["id"]),
        user_id=_str(raw.get("userId")),
        seller_id=_str(raw.get("sellerId")),
        shop_name=_str(raw.get("shopName")),
        status=raw.get("status", "pending"),
        total_payment=float(total),
        created_at=to_datetime(raw.get("createdAt")),
        items=items,
        payment_status=raw.get("paymentStatus", "unpaid"),
        shipping_fee=float(raw.get("shippingFee") or 0),
        shipping_link=raw.get("shippingLink"),
        confirmed_at=to_datetime(raw.get("confirmedAt")),
        shipped_at=to_datetime(raw.get("shippedAt")),
        order_received_at=to_datetime(raw.get("orderReceivedAt")),
    )


def normalize_orders(docs: List[Document], owner_id: str) -> List[Order]:
    return _parse_each([_with_id(d) for d in docs], parse_order, "order")


def _within(days: int, moment: Optional[datetime]) -> bool:
    if moment is None:
        return False
    return moment >= datetime.now(timezone.utc) - timedelta(days=days)


BUYER_ORDERS = EntitySpec(
    kind="orders",
    source=lambda uid: QueryRef("orders", (("userId", "==", uid),), ("createdAt", DESC)),
    normalize=normalize_orders,
    sort_key=lambda o: epoch_key(o.created_at),
)

SELLER_ORDERS = EntitySpec(
    kind="seller_orders",
    source=lambda uid: QueryRef("orders", (("sellerId", "==", uid),), ("createdAt", DESC)),
    normalize=normalize_orders,
    sort_key=lambda o: epoch_key(o.created_at),
)


def to_receive_spec(days: int = config.ORDER_VISIBILITY_DAYS) -> EntitySpec[Order]:
    """Shipped orders; once received they stay visible for `days`."""

    def visible(order: Order) -> bool:
        if order.order_received_at is None:
            return True
        return _within(days, order.order_received_at)

    return EntitySpec(
        kind="to_receive",
        source=lambda uid: QueryRef(
            "orders", (("userId", "==", uid), ("status", "==", "shipped"))
        ),
        normalize=normalize_orders,
        sort_key=lambda o: epoch_key(o.shipped_at or o.created_at),
        visible=visible,
    )


def to_ship_spec(days: int = config.ORDER_VISIBILITY_DAYS) -> EntitySpec[Order]:
    """Shipped orders, and confirmed ones confirmed within the last `days`."""

    def visible(order: Order) -> bool:
        if order.status == "shipped":
            return True
        return order.status == "confirmed" and _within(days, order.confirmed_at)

    return EntitySpec(
        kind="to_ship",
        source=lambda uid: QueryRef(
            "orders",
            (("userId", "==", uid), ("status", "in", ("confirmed", "shipped"))),
        ),
        normalize=normalize_orders,
        sort_key=lambda o: epoch_key(o.confirmed_at or o.created_at),
        visible=visible,
    )


TO_RECEIVE_ORDERS = to_receive_spec()
TO_SHIP_ORDERS = to_ship_spec()


# ---------------------------
# Inquiries
# ---------------------------


def parse_inquiry(raw: Dict[str, Any]) -> Inquiry:
    return Inquiry(
        id=str(raw["id"]),
        service_id=_str(raw.get("serviceId")),
        service_name=_str(raw.get("serviceName")),
        business_name=_str(raw.get("businessName")),
        service_owner_id=_str(raw.get("serviceOwnerId")),
        customer_name=_str(raw.get("customerName")),
        customer_phone=_str(raw.get("customerPhone")),
        message=_str(raw.get("message")),
        status=raw.get("status", "pending"),
        created_at=to_datetime(raw.get("createdAt")),
        customer_id=raw.get("customerId"),
        customer_email=raw.get("customerEmail"),
    )


def normalize_inquiries(docs: List[Document], owner_id: str) -> List[Inquiry]:
    return _parse_each([_with_id(d) for d in docs], parse_inquiry, "inquiry")


SELLER_INQUIRIES = EntitySpec(
    kind="inquiries",
    source=lambda uid: QueryRef("inquiries", (("serviceOwnerId", "==", uid),)),
    normalize=normalize_inquiries,
    sort_key=lambda i: epoch_key(i.created_at),
)


# ---------------------------
# Conversations and messages
# ---------------------------


def normalize_conversations(docs: List[Document], owner_id: str) -> List[ConversationPreview]:
    def parse(raw: Dict[str, Any]) -> ConversationPreview:
        return ConversationPreview(
            id=str(raw["id"]),
            participants=tuple(str(p) for p in raw.get("participants") or ()),
            last_message=_str(raw.get("lastMessage")),
            last_message_at=to_datetime(raw.get("lastMessageAt")),
            unread_count=int(raw.get(f"unreadCount_{owner_id}") or 0),
            last_message_sender=raw.get("lastMessageSender"),
        )

    return _parse_each([_with_id(d) for d in docs], parse, "conversation")


CONVERSATIONS = EntitySpec(
    kind="conversations",
    source=lambda uid: QueryRef(
        "conversations",
        (("participants", "array-contains", uid),),
        ("lastMessageAt", DESC),
    ),
    normalize=normalize_conversations,
    sort_key=lambda c: epoch_key(c.last_message_at),
)


def parse_message(raw: Dict[str, Any]) -> ChatMessage:
    return ChatMessage(
        id=str(raw["id"]),
        sender_id=_str(raw.get("senderId")),
        receiver_id=_str(raw.get("receiverId")),
        created_at=to_datetime(raw.get("createdAt")),
        text=_str(raw.get("text")),
        image_url=_str(raw.get("imageUrl")),
        is_read=bool(raw.get("isRead", False)),
        client_id=raw.get("clientId"),
    )


def normalize_messages(docs: List[Document], owner_id: str) -> List[ChatMessage]:
    return _parse_each([_with_id(d) for d in docs], parse_message, "message")


# owner id is the conversation id (see utils.pure.conversation_id)
MESSAGES = EntitySpec(
    kind="messages",
    source=lambda cid: QueryRef(f"conversations/{cid}/messages", (), ("createdAt", ASC)),
    normalize=normalize_messages,
    sort_key=lambda m: epoch_key(m.created_at),
    descending=False,
)


# ---------------------------
# Addresses (array on the user document)
# ---------------------------


def parse_address(raw: Dict[str, Any]) -> Address:
    return Address(
        id=str(raw["id"]),
        full_name=_str(raw.get("fullName")),
        phone_number=_str(raw.get("phoneNumber")),
        region=_str(raw.get("region")),
        province=_str(raw.get("province")),
        city=_str(raw.get("city")),
        barangay=_str(raw.get("barangay")),
        street_address=_str(raw.get("streetAddress")),
        is_default=bool(raw.get("isDefault", False)),
        created_at=raw.get("createdAt"),
        updated_at=raw.get("updatedAt"),
    )


def address_to_dict(a: Address) -> Dict[str, Any]:
    return {
        "id": a.id,
        "fullName": a.full_name,
        "phoneNumber": a.phone_number,
        "region": a.region,
        "province": a.province,
        "city": a.city,
        "barangay": a.barangay,
        "streetAddress": a.street_address,
        "isDefault": a.is_default,
        "createdAt": a.created_at,
        "updatedAt": a.updated_at,
    }


def normalize_addresses(docs: List[Document], owner_id: str) -> List[Address]:
    if not docs:
        return []
    raw = docs[0].data.get("addressesList") or []
    return _parse_each([r for r in raw if isinstance(r, dict)], parse_address, "address")


# server order is kept, the list is user-arranged
ADDRESSES = EntitySpec(
    kind="addresses",
    source=lambda uid: DocumentRef(f"users/{uid}"),
    normalize=normalize_addresses,
)
