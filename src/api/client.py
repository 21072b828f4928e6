"""
REST client for the E-Taas auth backend.

Endpoints used:
    POST /login            -> {token, user}
    POST /reset-password   -> {message}
    GET  /user-details     -> {user}          (bearer)
    PUT  /user-details     -> {user}          (bearer)
    PUT  /switch-role      -> {user}?         (bearer)

HTTP failures are translated into utils.errors so callers only ever handle
the project's error taxonomy.
"""

from typing import Any, Dict, Optional, Tuple

import httpx

from db.models import Profile, SellerProfile
from utils import config
from utils.errors import (
    AppError,
    AuthError,
    LOGIN_MESSAGE,
    NetworkError,
    NotFoundError,
    ServerError,
    ValidationError,
)
from utils.logger import get_logger

_logger = get_logger(__name__)


def _server_message(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        for key in ("message", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value
    return None


def error_for_response(response: httpx.Response) -> AppError:
    status = response.status_code
    message = _server_message(response)
    if status == 401:
        return AuthError(status=status)
    if status == 404:
        return NotFoundError(status=status)
    if status == 422:
        return ValidationError(message, status=status)
    if status >= 500:
        return ServerError(status=status)
    return AppError(message, status=status)


def parse_seller_profile(data: Optional[Dict[str, Any]]) -> Optional[SellerProfile]:
    if not data:
        return None
    seller_id = data.get("sellerId")
    return SellerProfile(
        shop_name=data.get("shopName"),
        business_name=data.get("businessName"),
        contact_number=data.get("contactNumber"),
        email=data.get("email"),
        address_location=data.get("addressLocation"),
        owner_name=data.get("name") or data.get("addressOfOwner"),
        seller_id=int(seller_id) if seller_id is not None else None,
        registered_at=data.get("registeredAt"),
        is_seller_mode=bool(data.get("isSellerMode", False)),
    )


def parse_profile(payload: Dict[str, Any], token: str) -> Profile:
    """Normalize the backend user shape into a Profile."""
    data = payload.get("user", payload)
    if not isinstance(data, dict) or not (data.get("id") or data.get("uid")):
        raise ServerError()

    first_name = data.get("firstName")
    last_name = data.get("lastName")
    contact_number = data.get("contactNumber")
    address = data.get("address")
    complete = data.get("profileComplete")
    if complete is None:
        complete = all((first_name, last_name, contact_number, address))

    return Profile(
        id=str(data.get("id") or data.get("uid")),
        email=data.get("email", ""),
        auth_token=token,
        is_seller=bool(data.get("isSeller", False)),
        is_admin=bool(data.get("isAdmin", False)),
        profile_complete=bool(complete),
        first_name=first_name,
        middle_name=data.get("middleName"),
        last_name=last_name,
        username=data.get("username"),
        contact_number=contact_number,
        address=address,
        seller_profile=parse_seller_profile(data.get("sellerInfo")),
    )


class ApiClient:
    """
    Thin async wrapper around httpx.AsyncClient.

    A transport can be injected (httpx.MockTransport in tests).
    """

    def __init__(
        self,
        base_url: str = config.API_URL,
        timeout: float = config.HTTP_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url, timeout=timeout, transport=transport
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        token: Optional[str] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        try:
            response = await self._client.request(method, path, headers=headers, json=json)
        except httpx.TimeoutException as e:
            _logger.warning(f"{method} {path} timed out: {e}")
            raise NetworkError() from e
        except httpx.RequestError as e:
            _logger.warning(f"{method} {path} failed without response: {e}")
            raise NetworkError() from e

        if response.is_error:
            _logger.info(f"{method} {path} -> {response.status_code}")
            raise error_for_response(response)

        if not response.content:
            return {}
        try:
            body = response.json()
        except ValueError as e:
            raise ServerError(status=response.status_code) from e
        return body if isinstance(body, dict) else {"data": body}

    async def login(self, email: str, password: str) -> Tuple[str, Profile]:
        try:
            body = await self._request(
                "POST", "/login", json={"email": email, "password": password}
            )
        except AuthError as e:
            raise AuthError(LOGIN_MESSAGE, status=e.status) from e
        token = body.get("token") or body.get("accessToken") or body.get("access_token")
        if not token:
            raise ServerError()
        return token, parse_profile(body, token)

    async def reset_password(self, email: str, new_password: str) -> None:
        await self._request(
            "POST",
            "/reset-password",
            json={"email": email, "new_password": new_password},
        )

    async def get_user_details(self, token: str) -> Profile:
        body = await self._request("GET", "/user-details", token=token)
        return parse_profile(body, token)

    async def update_user_details(self, token: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", "/user-details", token=token, json=fields)

    async def switch_role(self, token: str, is_seller_mode: bool) -> Optional[Profile]:
        body = await self._request(
            "PUT", "/switch-role", token=token, json={"isSellerMode": is_seller_mode}
        )
        if "user" in body:
            return parse_profile(body, token)
        return None
