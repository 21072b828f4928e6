"""
Session store: the single source of truth for who is logged in and as what.

The session is a sum type so "still loading" and "logged out" can never be
confused:

    Unknown    before the first fetch resolves
    LoggedOut  no usable credential
    LoggedIn   a Profile obtained from the backend

All writes go through SessionStore; listeners registered with subscribe()
are called synchronously after each write.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Optional, Union

import db.crud as crud
from api.client import ApiClient
from db.models import Profile, SellerProfile
from utils.errors import AppError, AuthError, ValidationError
from utils.logger import get_logger
from utils.validation import (
    ensure_valid,
    validate_contact_number,
    validate_email,
    validate_login_password,
    validate_name_part,
    validate_new_password,
)

_logger = get_logger(__name__)


@dataclass(frozen=True)
class Unknown:
    pass


@dataclass(frozen=True)
class LoggedOut:
    pass


@dataclass(frozen=True)
class LoggedIn:
    profile: Profile


Session = Union[Unknown, LoggedOut, LoggedIn]
Listener = Callable[[Session], None]

# profile fields a user may edit, with their backend names
PROFILE_FIELDS = {
    "first_name": "firstName",
    "middle_name": "middleName",
    "last_name": "lastName",
    "username": "username",
    "contact_number": "contactNumber",
    "address": "address",
}


class SessionStore:
    def __init__(self, api: ApiClient, credentials=crud):
        """
        :param api: REST client used for the token exchange and profile calls
        :param credentials: object exposing get_access_token / save_access_token /
            clear_access_token coroutines; defaults to the sqlite store
        """
        self._api = api
        self._credentials = credentials
        self._session: Session = Unknown()
        self._listeners: List[Listener] = []

    # ---------------------------
    # Reads
    # ---------------------------

    @property
    def session(self) -> Session:
        return self._session

    @property
    def loading(self) -> bool:
        return isinstance(self._session, Unknown)

    @property
    def profile(self) -> Optional[Profile]:
        if isinstance(self._session, LoggedIn):
            return self._session.profile
        return None

    @property
    def user_id(self) -> Optional[str]:
        profile = self.profile
        return profile.id if profile else None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, session: Session) -> None:
        self._session = session
        for listener in list(self._listeners):
            try:
                listener(session)
            except Exception:
                _logger.exception("Session listener failed")

    # ---------------------------
    # Core operations
    # ---------------------------

    async def fetch_current_user(self) -> Session:
        """
        Resolve the session from the persisted credential.

        Never raises: any failure clears the credential and logs out.
        """
        try:
            token = await self._credentials.get_access_token()
            if not token:
                self._set(LoggedOut())
                return self._session
            profile = await self._api.get_user_details(token)
        except Exception as e:
            _logger.warning(f"Could not restore session ({type(e).__name__}), logging out.")
            await self._forget_token()
            self._set(LoggedOut())
            return self._session

        _logger.info(f"Session restored for user {profile.id}.")
        self._set(LoggedIn(profile))
        return self._session

    def set_user_data(self, profile: Profile) -> None:
        """Synchronous override when the fresh profile is already known."""
        self._set(LoggedIn(profile))

    async def _forget_token(self) -> bool:
        try:
            await self._credentials.clear_access_token()
        except Exception as e:
            _logger.error(f"Could not delete the stored credential: {e!r}")
            return False
        return True

    async def clear_user(self) -> bool:
        """
        Logout. The session flips before the credential is deleted.

        Returns False when the stored credential could not be deleted.
        """
        self._set(LoggedOut())
        cleared = await self._forget_token()
        _logger.info("Session cleared.")
        return cleared

    # ---------------------------
    # Account actions
    # ---------------------------

    async def login(self, email: str, password: str) -> Profile:
        email = (email or "").strip()
        ensure_valid(
            {
                "email": lambda: validate_email(email),
                "password": lambda: validate_login_password(password),
            }
        )
        token, profile = await self._api.login(email, password)
        await self._credentials.save_access_token(token)
        self.set_user_data(profile)
        _logger.info(f"User {profile.id} logged in.")
        return profile

    async def reset_password(self, email: str, new_password: str, confirm_password: str) -> None:
        email = (email or "").strip()
        ensure_valid(
            {
                "email": lambda: validate_email(email),
                "new_password": lambda: validate_new_password(new_password),
                "confirm_password": lambda: (
                    None if new_password == confirm_password else "Passwords do not match"
                ),
            }
        )
        await self._api.reset_password(email, new_password)

    def _require_profile(self) -> Profile:
        profile = self.profile
        if profile is None:
            raise AuthError()
        return profile

    async def switch_role(self, is_seller_mode: bool) -> Profile:
        profile = self._require_profile()
        if is_seller_mode and not profile.is_seller:
            raise ValidationError("Register as a seller before switching to seller mode.")

        updated = await self._api.switch_role(profile.auth_token, is_seller_mode)
        if updated is None:
            seller = profile.seller_profile or SellerProfile()
            updated = replace(
                profile, seller_profile=replace(seller, is_seller_mode=is_seller_mode)
            )
        self.set_user_data(updated)
        _logger.info(f"User {updated.id} switched to {'seller' if is_seller_mode else 'buyer'} mode.")
        return updated

    async def update_profile(self, **fields: Any) -> Profile:
        profile = self._require_profile()
        unknown = set(fields) - set(PROFILE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown profile field: {sorted(unknown)[0]}")

        checks: Dict[str, Callable[[], Optional[str]]] = {}
        if "first_name" in fields:
            checks["first_name"] = lambda: validate_name_part(fields["first_name"], "First name")
        if "last_name" in fields:
            checks["last_name"] = lambda: validate_name_part(fields["last_name"], "Last name")
        if "contact_number" in fields:
            checks["contact_number"] = lambda: validate_contact_number(fields["contact_number"])
        ensure_valid(checks)

        payload = {PROFILE_FIELDS[k]: v for k, v in fields.items()}
        try:
            await self._api.update_user_details(profile.auth_token, payload)
        except AppError:
            _logger.warning(f"Profile update for {profile.id} rejected.")
            raise

        # re-read the live session, a role switch may have landed meanwhile
        current = self.profile or profile
        updated = replace(current, **fields)
        updated = replace(
            updated,
            profile_complete=all(
                (updated.first_name, updated.last_name, updated.contact_number, updated.address)
            ),
        )
        self.set_user_data(updated)
        return updated

    def update_seller_info(self, **fields: Any) -> None:
        """Merge fields into the seller profile; no-op when logged out."""
        profile = self.profile
        if profile is None:
            return
        seller = replace(profile.seller_profile or SellerProfile(), **fields)
        self.set_user_data(replace(profile, seller_profile=seller))
