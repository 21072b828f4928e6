# provide dataclass models

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

# ---------------------------
# Identity
# ---------------------------


@dataclass(frozen=True)
class SellerProfile:
    shop_name: Optional[str] = None
    business_name: Optional[str] = None
    contact_number: Optional[str] = None
    email: Optional[str] = None
    address_location: Optional[str] = None
    owner_name: Optional[str] = None
    seller_id: Optional[int] = None
    registered_at: Optional[str] = None
    is_seller_mode: bool = False


@dataclass(frozen=True)
class Profile:
    id: str
    email: str
    auth_token: str
    is_seller: bool = False
    is_admin: bool = False
    profile_complete: bool = False
    first_name: Optional[str] = None
    middle_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None
    contact_number: Optional[str] = None
    address: Optional[str] = None
    seller_profile: Optional[SellerProfile] = None

    @property
    def display_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) or self.username or self.email


# ---------------------------
# Live records
# ---------------------------


@dataclass(frozen=True)
class Notification:
    id: str
    type: str  # "buyer" or "seller"
    title: str
    message: str
    status: str  # "unread" or "read"
    created_at: Optional[datetime]
    order_id: Optional[str] = None
    direct_id: Optional[str] = None


@dataclass(frozen=True)
class OrderItem:
    product_id: str
    product_name: str
    price: float
    quantity: int
    variant_id: Optional[str] = None
    variant_text: str = ""
    image: str = ""


@dataclass(frozen=True)
class Order:
    id: str
    user_id: str
    seller_id: str
    shop_name: str
    status: str  # pending / confirmed / shipped / delivered / cancelled
    total_payment: float
    created_at: Optional[datetime]
    items: Tuple[OrderItem, ...] = ()
    payment_status: str = "unpaid"
    shipping_fee: float = 0.0
    shipping_link: Optional[str] = None
    confirmed_at: Optional[datetime] = None
    shipped_at: Optional[datetime] = None
    order_received_at: Optional[datetime] = None


@dataclass(frozen=True)
class Inquiry:
    id: str
    service_id: str
    service_name: str
    business_name: str
    service_owner_id: str
    customer_name: str
    customer_phone: str
    message: str
    status: str  # pending / approved / rejected
    created_at: Optional[datetime]
    customer_id: Optional[str] = None
    customer_email: Optional[str] = None


@dataclass(frozen=True)
class ConversationPreview:
    id: str
    participants: Tuple[str, ...]
    last_message: str
    last_message_at: Optional[datetime]
    unread_count: int = 0
    last_message_sender: Optional[str] = None


class MessageState(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass(frozen=True)
class ChatMessage:
    id: str
    sender_id: str
    receiver_id: str
    created_at: Optional[datetime]
    text: str = ""
    image_url: str = ""
    is_read: bool = False
    client_id: Optional[str] = None
    state: MessageState = MessageState.CONFIRMED


@dataclass(frozen=True)
class Address:
    id: str
    full_name: str
    phone_number: str
    region: str
    province: str
    city: str
    barangay: str
    street_address: str
    is_default: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def one_line(self) -> str:
        return ", ".join(
            p
            for p in (self.street_address, self.barangay, self.city, self.province)
            if p
        )
