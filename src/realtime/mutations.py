"""
Writes against the live backend.

Order status changes are requests: the allowed-transition table only stops
obviously invalid ones before they hit the network, the backend stays
authoritative and the new state arrives through the live listeners.
"""

from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, FrozenSet, List, Optional

from db.models import Address, Notification, Order
from realtime.backend import SERVER_TIMESTAMP, LiveBackend
from realtime.entities import address_to_dict, notification_to_dict
from utils.errors import AppError, NotFoundError, ValidationError
from utils.logger import get_logger
from utils.pure import short_order_id
from utils.validation import (
    ensure_valid,
    validate_barangay,
    validate_city,
    validate_contact_number,
    validate_full_name,
    validate_province,
    validate_street,
)

_logger = get_logger(__name__)

ALLOWED_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    "pending": frozenset({"confirmed", "cancelled"}),
    "confirmed": frozenset({"shipped"}),
    "shipped": frozenset({"delivered"}),
    "delivered": frozenset(),
    "cancelled": frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------
# Notifications
# ---------------------------


async def send_notification(
    backend: LiveBackend,
    user_id: str,
    type: str,
    title: str,
    message: str,
    order_id: Optional[str] = None,
    direct_id: Optional[str] = None,
) -> Notification:
    notification = Notification(
        id=uuid.uuid4().hex,
        type=type,
        title=title,
        message=message,
        status="unread",
        created_at=datetime.now(timezone.utc),
        order_id=order_id,
        direct_id=direct_id,
    )
    await backend.append_to_array(
        f"notifications/{user_id}", "notifications", notification_to_dict(notification)
    )
    _logger.info(f"Notification '{title}' sent to {user_id}")
    return notification


async def _notify_quietly(backend: LiveBackend, *args, **kwargs) -> None:
    # the order change already landed; a lost notification must not undo it
    try:
        await send_notification(backend, *args, **kwargs)
    except AppError as e:
        _logger.warning(f"Notification not delivered: {e.user_message}")


# ---------------------------
# Orders
# ---------------------------


async def request_order_status(backend: LiveBackend, order: Order, target: str, **extra) -> None:
    if not can_transition(order.status, target):
        raise ValidationError(f"An order that is {order.status} cannot be marked {target}.")
    await backend.update(f"orders/{order.id}", {"status": target, **extra})
    _logger.info(f"Order {order.id}: {order.status} -> {target} requested")


async def cancel_order(backend: LiveBackend, order: Order) -> None:
    await request_order_status(backend, order, "cancelled")
    await _notify_quietly(
        backend,
        order.seller_id,
        "seller",
        "Order Cancelled",
        "An order from a buyer has been cancelled.",
        order_id=order.id,
    )


async def confirm_order(backend: LiveBackend, order: Order) -> None:
    await request_order_status(backend, order, "confirmed", confirmedAt=SERVER_TIMESTAMP)
    await _notify_quietly(
        backend,
        order.user_id,
        "buyer",
        "Order Confirmed",
        f"Your order from {order.shop_name} has been confirmed and is being prepared for shipment.",
        order_id=order.id,
    )


async def ship_order(backend: LiveBackend, order: Order, tracking_link: str) -> None:
    link = (tracking_link or "").strip()
    if not link:
        raise ValidationError("Please enter a tracking link", field="tracking_link")
    await request_order_status(
        backend, order, "shipped", shippingLink=link, shippedAt=SERVER_TIMESTAMP
    )
    await _notify_quietly(
        backend,
        order.user_id,
        "buyer",
        "Order Shipped",
        f"Your order has been shipped! Track here: {link}",
        order_id=order.id,
    )


async def mark_order_received(backend: LiveBackend, order: Order) -> None:
    await request_order_status(backend, order, "delivered", orderReceivedAt=SERVER_TIMESTAMP)
    await _notify_quietly(
        backend,
        order.seller_id,
        "seller",
        "Order Delivered",
        f"Your order #{short_order_id(order.id)} has been received by the customer.",
        order_id=order.id,
    )


# ---------------------------
# Inquiries
# ---------------------------


async def delete_inquiry(backend: LiveBackend, inquiry_id: str) -> None:
    await backend.delete(f"inquiries/{inquiry_id}")


# ---------------------------
# Conversations
# ---------------------------


async def mark_conversation_read(backend: LiveBackend, conversation_id: str, user_id: str) -> None:
    path = f"conversations/{conversation_id}"
    if await backend.get(path) is None:
        return
    await backend.update(path, {f"unreadCount_{user_id}": 0})


# ---------------------------
# Addresses (full-array replace on users/{uid})
# ---------------------------


async def _write_addresses(backend: LiveBackend, user_id: str, addresses: List[Address]) -> None:
    await backend.update(
        f"users/{user_id}", {"addressesList": [address_to_dict(a) for a in addresses]}
    )


async def add_address(
    backend: LiveBackend,
    user_id: str,
    current: List[Address],
    full_name: str,
    phone_number: str,
    region: str,
    province: str,
    city: str,
    barangay: str,
    street_address: str,
    is_default: bool = False,
) -> List[Address]:
    ensure_valid(
        {
            "full_name": lambda: validate_full_name(full_name),
            "phone_number": lambda: validate_contact_number(phone_number),
            "region": lambda: None if (region or "").strip() else "Region is required.",
            "province": lambda: validate_province(province),
            "city": lambda: validate_city(city),
            "barangay": lambda: validate_barangay(barangay),
            "street_address": lambda: validate_street(street_address),
        }
    )
    now = _now_iso()
    make_default = is_default or not current
    address = Address(
        id=uuid.uuid4().hex,
        full_name=full_name.strip(),
        phone_number=phone_number.strip(),
        region=region.strip(),
        province=province.strip(),
        city=city.strip(),
        barangay=barangay.strip(),
        street_address=street_address.strip(),
        is_default=make_default,
        created_at=now,
        updated_at=now,
    )
    others = [replace(a, is_default=False) if make_default else a for a in current]
    updated = others + [address]
    await _write_addresses(backend, user_id, updated)
    return updated


async def select_default_address(
    backend: LiveBackend, user_id: str, addresses: List[Address], address_id: str
) -> List[Address]:
    if not any(a.id == address_id for a in addresses):
        raise NotFoundError("That address no longer exists.")
    now = _now_iso()
    updated = [replace(a, is_default=a.id == address_id, updated_at=now) for a in addresses]
    await _write_addresses(backend, user_id, updated)
    return updated


async def delete_address(
    backend: LiveBackend, user_id: str, addresses: List[Address], address_id: str
) -> List[Address]:
    if not any(a.id == address_id for a in addresses):
        raise NotFoundError("That address no longer exists.")
    updated = [a for a in addresses if a.id != address_id]
    await _write_addresses(backend, user_id, updated)
    return updated
