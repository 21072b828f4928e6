"""
Auth gate: keeps the displayed route group consistent with the session.

    LOADING ──(LoggedOut)──> UNAUTHENTICATED <──(logout / failed fetch)──┐
       │                          │                                      │
       └────(LoggedIn)──────> AUTHENTICATED <──────(login)───────────────┘

No redirect is produced while LOADING, and none when the route already
belongs to the right group, so redirects cannot loop.
"""

from enum import Enum
from typing import FrozenSet, Iterable, Optional

from core.session import LoggedIn, LoggedOut, Session, Unknown
from utils.logger import get_logger

_logger = get_logger(__name__)

PUBLIC_ROUTES = frozenset({"login", "reset_password"})
PUBLIC_ENTRY = "login"
AUTHENTICATED_ENTRY = "home"


class GateState(str, Enum):
    LOADING = "loading"
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


class AuthGate:
    def __init__(
        self,
        public_routes: Iterable[str] = PUBLIC_ROUTES,
        public_entry: str = PUBLIC_ENTRY,
        authenticated_entry: str = AUTHENTICATED_ENTRY,
    ):
        self.public_routes: FrozenSet[str] = frozenset(public_routes)
        if public_entry not in self.public_routes:
            raise ValueError("public entry must be a public route")
        if authenticated_entry in self.public_routes:
            raise ValueError("authenticated entry must not be a public route")
        self.public_entry = public_entry
        self.authenticated_entry = authenticated_entry
        self.state = GateState.LOADING
        self.initialized = False

    def is_public(self, route: str) -> bool:
        return route in self.public_routes

    def on_session(self, session: Session) -> GateState:
        """Apply a session change; returns the resulting state."""
        if isinstance(session, Unknown):
            # a refetch in progress never bounces an initialized gate
            return self.state

        if isinstance(session, LoggedIn):
            new_state = GateState.AUTHENTICATED
        elif isinstance(session, LoggedOut):
            new_state = GateState.UNAUTHENTICATED
        else:
            raise TypeError(f"not a session: {session!r}")

        if new_state != self.state:
            _logger.debug(f"Gate {self.state.value} -> {new_state.value}")
        self.state = new_state
        self.initialized = True
        return self.state

    def redirect_for(self, route: Optional[str]) -> Optional[str]:
        """Route to switch to, or None when the current route is allowed."""
        if not self.initialized:
            return None
        public = route is not None and self.is_public(route)
        if self.state == GateState.UNAUTHENTICATED and not public:
            return self.public_entry
        if self.state == GateState.AUTHENTICATED and public:
            return self.authenticated_entry
        return None
