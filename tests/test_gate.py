import os
import sys
import unittest

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from core.gate import AuthGate, GateState
from core.session import LoggedIn, LoggedOut, Unknown
from db.models import Profile

PROFILE = Profile(id="u1", email="ana@example.com", auth_token="t")


class AuthGateTestCase(unittest.TestCase):
    def setUp(self):
        self.gate = AuthGate()

    def test_no_redirect_while_loading(self):
        self.assertEqual(self.gate.state, GateState.LOADING)
        self.assertIsNone(self.gate.redirect_for("home"))
        self.assertIsNone(self.gate.redirect_for("login"))
        # a refetch does not initialize the gate either
        self.gate.on_session(Unknown())
        self.assertEqual(self.gate.state, GateState.LOADING)
        self.assertIsNone(self.gate.redirect_for("orders"))

    def test_missing_token_goes_to_login(self):
        self.assertEqual(self.gate.on_session(LoggedOut()), GateState.UNAUTHENTICATED)
        self.assertEqual(self.gate.redirect_for("home"), "login")
        self.assertEqual(self.gate.redirect_for("inbox"), "login")
        self.assertIsNone(self.gate.redirect_for("login"))
        self.assertIsNone(self.gate.redirect_for("reset_password"))

    def test_login_leaves_public_routes(self):
        self.gate.on_session(LoggedOut())
        self.assertEqual(self.gate.on_session(LoggedIn(PROFILE)), GateState.AUTHENTICATED)
        self.assertEqual(self.gate.redirect_for("login"), "home")
        self.assertEqual(self.gate.redirect_for("reset_password"), "home")
        self.assertIsNone(self.gate.redirect_for("orders"))

    def test_logout_returns_to_login(self):
        self.gate.on_session(LoggedIn(PROFILE))
        self.gate.on_session(LoggedOut())
        self.assertEqual(self.gate.state, GateState.UNAUTHENTICATED)
        self.assertEqual(self.gate.redirect_for("notifications"), "login")

    def test_refetch_keeps_initialized_state(self):
        self.gate.on_session(LoggedIn(PROFILE))
        self.gate.on_session(Unknown())
        self.assertEqual(self.gate.state, GateState.AUTHENTICATED)
        self.assertIsNone(self.gate.redirect_for("home"))

    def test_redirects_cannot_loop(self):
        # following a redirect never yields another one
        for session in (LoggedOut(), LoggedIn(PROFILE)):
            self.gate.on_session(session)
            for route in ("login", "reset_password", "home", "orders", "inbox"):
                target = self.gate.redirect_for(route)
                if target is not None:
                    self.assertIsNone(self.gate.redirect_for(target))

    def test_unknown_route_is_protected(self):
        self.gate.on_session(LoggedOut())
        self.assertEqual(self.gate.redirect_for("_default"), "login")
        self.assertEqual(self.gate.redirect_for(None), "login")

    def test_bad_configuration_rejected(self):
        with self.assertRaises(ValueError):
            AuthGate(public_routes={"login"}, public_entry="welcome")
        with self.assertRaises(ValueError):
            AuthGate(public_routes={"login"}, public_entry="login", authenticated_entry="login")

    def test_not_a_session(self):
        with self.assertRaises(TypeError):
            self.gate.on_session(object())


if __name__ == "__main__":
    unittest.main()
