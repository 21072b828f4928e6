import unittest
from datetime import datetime, timezone

from fakes import FakeBackend

from db.models import Address, Order
from realtime.mutations import (
    add_address,
    can_transition,
    cancel_order,
    confirm_order,
    delete_address,
    delete_inquiry,
    mark_conversation_read,
    mark_order_received,
    request_order_status,
    select_default_address,
    send_notification,
    ship_order,
)
from utils.errors import NotFoundError, ServerError, ValidationError


def make_order(status: str) -> Order:
    return Order(
        id="order-abcdef123",
        user_id="buyer1",
        seller_id="seller1",
        shop_name="Ana's",
        status=status,
        total_payment=100.0,
        created_at=datetime.now(timezone.utc),
    )


ADDRESS = dict(
    full_name="Juan Dela Cruz",
    phone_number="09123456789",
    region="Region IV-A",
    province="Batangas",
    city="Taal",
    barangay="Poblacion",
    street_address="123 Rizal St.",
)


class OrderMutationTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.backend = FakeBackend()
        self.backend.docs["orders/order-abcdef123"] = {"status": "pending"}

    def test_transition_table(self):
        self.assertTrue(can_transition("pending", "confirmed"))
        self.assertTrue(can_transition("pending", "cancelled"))
        self.assertTrue(can_transition("confirmed", "shipped"))
        self.assertTrue(can_transition("shipped", "delivered"))
        self.assertFalse(can_transition("pending", "shipped"))
        self.assertFalse(can_transition("delivered", "cancelled"))
        self.assertFalse(can_transition("cancelled", "pending"))
        self.assertFalse(can_transition("mystery", "pending"))

    async def test_invalid_transition_never_hits_backend(self):
        with self.assertRaises(ValidationError):
            await request_order_status(self.backend, make_order("delivered"), "cancelled")
        with self.assertRaises(ValidationError):
            await cancel_order(self.backend, make_order("shipped"))
        self.assertEqual(self.backend.writes, [])

    async def test_cancel_notifies_seller(self):
        await cancel_order(self.backend, make_order("pending"))
        self.assertEqual(
            self.backend.writes_of("update"), [("orders/order-abcdef123", {"status": "cancelled"})]
        )
        (path, payload), = self.backend.writes_of("append_to_array")
        self.assertEqual(path, "notifications/seller1")
        self.assertEqual(payload["notifications"]["title"], "Order Cancelled")
        self.assertEqual(payload["notifications"]["type"], "seller")
        self.assertEqual(payload["notifications"]["orderId"], "order-abcdef123")

    async def test_confirm_sets_timestamp_and_notifies_buyer(self):
        await confirm_order(self.backend, make_order("pending"))
        (_, fields), = self.backend.writes_of("update")
        self.assertEqual(fields["status"], "confirmed")
        self.assertIsInstance(fields["confirmedAt"], datetime)
        (path, payload), = self.backend.writes_of("append_to_array")
        self.assertEqual(path, "notifications/buyer1")
        self.assertIn("Ana's", payload["notifications"]["message"])

    async def test_ship_requires_tracking_link(self):
        with self.assertRaises(ValidationError) as ctx:
            await ship_order(self.backend, make_order("confirmed"), "   ")
        self.assertEqual(ctx.exception.field, "tracking_link")
        self.assertEqual(self.backend.writes, [])

        await ship_order(self.backend, make_order("confirmed"), " https://track.example/1 ")
        (_, fields), = self.backend.writes_of("update")
        self.assertEqual(fields["shippingLink"], "https://track.example/1")
        self.assertEqual(fields["status"], "shipped")

    async def test_received_mentions_short_order_id(self):
        await mark_order_received(self.backend, make_order("shipped"))
        (_, fields), = self.backend.writes_of("update")
        self.assertEqual(fields["status"], "delivered")
        self.assertIn("orderReceivedAt", fields)
        (_, payload), = self.backend.writes_of("append_to_array")
        self.assertIn("#BCDEF123", payload["notifications"]["message"])

    async def test_lost_notification_does_not_fail_transition(self):
        self.backend.fail_on["append_to_array"] = ServerError()
        await confirm_order(self.backend, make_order("pending"))
        self.assertEqual(len(self.backend.writes_of("update")), 1)

    async def test_send_notification_shape(self):
        n = await send_notification(self.backend, "u1", "buyer", "Hello", "World", direct_id="d1")
        stored = self.backend.docs["notifications/u1"]["notifications"]
        self.assertEqual(len(stored), 1)
        self.assertEqual(stored[0]["id"], n.id)
        self.assertEqual(stored[0]["status"], "unread")
        self.assertEqual(stored[0]["directId"], "d1")


class OtherMutationTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.backend = FakeBackend()

    async def test_delete_inquiry(self):
        self.backend.docs["inquiries/i1"] = {"message": "hi"}
        await delete_inquiry(self.backend, "i1")
        self.assertNotIn("inquiries/i1", self.backend.docs)

    async def test_mark_conversation_read(self):
        await mark_conversation_read(self.backend, "a_b", "a")
        self.assertEqual(self.backend.writes, [])

        self.backend.docs["conversations/a_b"] = {"unreadCount_a": 4, "unreadCount_b": 1}
        await mark_conversation_read(self.backend, "a_b", "a")
        self.assertEqual(self.backend.docs["conversations/a_b"], {"unreadCount_a": 0, "unreadCount_b": 1})


class AddressMutationTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.backend = FakeBackend()
        self.backend.docs["users/u1"] = {"email": "a@example.com"}

    def stored(self):
        return self.backend.docs["users/u1"]["addressesList"]

    async def test_first_address_becomes_default(self):
        addresses = await add_address(self.backend, "u1", [], **ADDRESS)
        self.assertEqual(len(addresses), 1)
        self.assertTrue(addresses[0].is_default)
        self.assertTrue(self.stored()[0]["isDefault"])
        self.assertEqual(self.stored()[0]["fullName"], "Juan Dela Cruz")

    async def test_new_default_unsets_others(self):
        first = await add_address(self.backend, "u1", [], **ADDRESS)
        second = await add_address(self.backend, "u1", first, **ADDRESS, is_default=True)
        self.assertEqual([a.is_default for a in second], [False, True])

        third = await add_address(self.backend, "u1", second, **ADDRESS)
        self.assertEqual([a.is_default for a in third], [False, True, False])

    async def test_invalid_address_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            await add_address(self.backend, "u1", [], **{**ADDRESS, "phone_number": "12345"})
        self.assertEqual(ctx.exception.field, "phone_number")
        with self.assertRaises(ValidationError) as ctx:
            await add_address(self.backend, "u1", [], **{**ADDRESS, "region": " "})
        self.assertEqual(ctx.exception.field, "region")
        self.assertEqual(self.backend.writes, [])

    async def test_select_default_and_delete(self):
        addresses = await add_address(self.backend, "u1", [], **ADDRESS)
        addresses = await add_address(self.backend, "u1", addresses, **ADDRESS)
        target = addresses[1].id

        addresses = await select_default_address(self.backend, "u1", addresses, target)
        self.assertEqual([a.id for a in addresses if a.is_default], [target])

        addresses = await delete_address(self.backend, "u1", addresses, target)
        self.assertEqual(len(addresses), 1)
        self.assertEqual(len(self.stored()), 1)

    async def test_unknown_address_id(self):
        existing = [
            Address(
                id="a1", full_name="Ana Cruz", phone_number="09123456789", region="R",
                province="P", city="C", barangay="B", street_address="S",
            )
        ]
        with self.assertRaises(NotFoundError):
            await select_default_address(self.backend, "u1", existing, "missing")
        with self.assertRaises(NotFoundError):
            await delete_address(self.backend, "u1", existing, "missing")


if __name__ == "__main__":
    unittest.main()
