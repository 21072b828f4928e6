from enum import Enum
from typing import Mapping, TypeVar

from core.session import LoggedIn, Session

T = TypeVar("T")


class Variant(str, Enum):
    BUYER = "buyer"
    SELLER = "seller"


def resolve_variant(session: Session) -> Variant:
    """
    Seller only for a registered seller with seller mode switched on.
    Evaluate on every render; the mode can flip without a new login.
    """
    if not isinstance(session, LoggedIn):
        return Variant.BUYER
    profile = session.profile
    seller = profile.seller_profile
    if profile.is_seller and seller is not None and seller.is_seller_mode:
        return Variant.SELLER
    return Variant.BUYER


def pick_variant(session: Session, choices: Mapping[Variant, T]) -> T:
    return choices[resolve_variant(session)]
