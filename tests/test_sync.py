import asyncio
import unittest
from datetime import datetime, timedelta, timezone

from fakes import FakeBackend

from realtime.backend import Document, DocumentRef, QueryRef
from realtime.entities import BUYER_ORDERS, NOTIFICATIONS, NOTIFICATION_BADGE, ORDER_STATUSES
from realtime.sync import ALL, LiveCollection
from utils.errors import NetworkError, ServerError

DELAY = 0.01
NOW = datetime.now(timezone.utc)


def notification(nid: str, status: str = "unread", minutes_ago: int = 0) -> dict:
    return {
        "id": nid,
        "type": "buyer",
        "title": f"Title {nid}",
        "message": "msg",
        "status": status,
        "createdAt": (NOW - timedelta(minutes=minutes_ago)).isoformat(),
    }


def notifications_doc(uid: str, *items: dict) -> list:
    return [Document(uid, {"notifications": list(items)})]


def order_doc(oid: str, status: str = "pending", minutes_ago: int = 0) -> Document:
    return Document(
        oid,
        {
            "userId": "u1",
            "sellerId": "s1",
            "shopName": "Shop",
            "status": status,
            "totalPayment": 100,
            "createdAt": NOW - timedelta(minutes=minutes_ago),
        },
    )


class LiveCollectionTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.backend = FakeBackend()
        self.changes = 0

    def collection(self, spec=NOTIFICATIONS) -> LiveCollection:
        def on_change(_):
            self.changes += 1

        return LiveCollection(self.backend, spec, on_change=on_change, mark_read_delay=DELAY)

    async def settle(self):
        await asyncio.sleep(DELAY * 5)

    def stored(self, uid: str, *items: dict) -> list:
        """Store the raw notifications array and return the matching snapshot."""
        self.backend.docs[f"notifications/{uid}"] = {"notifications": [dict(i) for i in items]}
        return notifications_doc(uid, *items)

    # ---------- subscription lifecycle ----------

    async def test_one_subscription_across_owner_changes(self):
        c = self.collection()
        c.bind("u1")
        self.assertEqual(self.backend.active, 1)
        self.assertEqual(self.backend.sources(), [DocumentRef("notifications/u1")])
        self.assertTrue(c.loading)

        c.bind("u1")  # same owner, no resubscribe
        self.assertEqual(self.backend.opened, 1)

        c.bind("u2")
        self.assertEqual(self.backend.active, 1)
        self.assertEqual(self.backend.closed, 1)
        self.assertEqual(self.backend.sources(), [DocumentRef("notifications/u2")])

        c.bind(None)
        self.assertEqual(self.backend.active, 0)
        self.assertFalse(c.active)
        self.assertFalse(c.loading)
        self.assertEqual(c.items, [])

        c.close()
        self.assertEqual(self.backend.closed, 2)

    async def test_owner_change_clears_items(self):
        c = self.collection()
        c.bind("u1")
        self.backend.push(DocumentRef("notifications/u1"), notifications_doc("u1", notification("a", "read")))
        self.assertEqual(len(c.items), 1)
        c.bind("u2")
        self.assertEqual(c.items, [])

    async def test_stale_callbacks_are_ignored(self):
        c = self.collection()
        c.bind("u1")
        old_next, old_error = self.backend.callbacks(DocumentRef("notifications/u1"))
        c.bind("u2")

        old_next(notifications_doc("u1", notification("x", "read")))
        old_error(NetworkError())
        self.assertEqual(c.items, [])
        self.assertIsNone(c.error)
        self.assertTrue(c.loading)

    # ---------- pushes ----------

    async def test_push_replaces_and_sorts_newest_first(self):
        c = self.collection(BUYER_ORDERS)
        c.bind("u1")
        source = QueryRef("orders", (("userId", "==", "u1"),), ("createdAt", "desc"))
        self.assertEqual(self.backend.sources(), [source])

        self.backend.push(source, [order_doc("old", minutes_ago=30), order_doc("new", minutes_ago=1)])
        self.assertEqual([o.id for o in c.items], ["new", "old"])
        self.assertFalse(c.loading)

        self.backend.push(source, [order_doc("only")])
        self.assertEqual([o.id for o in c.items], ["only"])

    async def test_malformed_documents_are_skipped(self):
        c = self.collection(BUYER_ORDERS)
        c.bind("u1")
        bad = Document("bad", {"totalPayment": "not a number"})
        self.backend.push(self.backend.sources()[0], [bad, order_doc("good")])
        self.assertEqual([o.id for o in c.items], ["good"])

    async def test_error_keeps_stale_list(self):
        c = self.collection(BUYER_ORDERS)
        c.bind("u1")
        source = self.backend.sources()[0]
        self.backend.push(source, [order_doc("a")])
        self.backend.push_error(source, NetworkError())

        self.assertEqual([o.id for o in c.items], ["a"])
        self.assertIsInstance(c.error, NetworkError)
        self.assertFalse(c.loading)

        # a later push recovers
        self.backend.push(source, [order_doc("a"), order_doc("b", minutes_ago=5)])
        self.assertIsNone(c.error)
        self.assertEqual(len(c.items), 2)

    async def test_listen_failure_sets_error(self):
        self.backend.fail_listen = NetworkError()
        c = self.collection()
        c.bind("u1")
        self.assertFalse(c.active)
        self.assertFalse(c.loading)
        self.assertIsInstance(c.error, NetworkError)

    async def test_refresh_reopens_listener(self):
        c = self.collection(BUYER_ORDERS)
        c.bind("u1")
        c.refresh()
        self.assertTrue(c.refreshing)
        self.assertEqual(self.backend.opened, 2)
        self.assertEqual(self.backend.active, 1)

        self.backend.push(self.backend.sources()[0], [order_doc("a")])
        self.assertFalse(c.refreshing)

    async def test_refresh_without_owner_is_noop(self):
        c = self.collection()
        c.refresh()
        self.assertEqual(self.backend.opened, 0)
        self.assertFalse(c.refreshing)

    async def test_counts_and_by_status(self):
        c = self.collection(BUYER_ORDERS)
        c.bind("u1")
        self.backend.push(
            self.backend.sources()[0],
            [order_doc("a", "pending"), order_doc("b", "shipped"), order_doc("c", "pending")],
        )
        counts = c.counts(ORDER_STATUSES)
        self.assertEqual(counts[ALL], 3)
        self.assertEqual(counts["pending"], 2)
        self.assertEqual(counts["delivered"], 0)
        self.assertEqual({o.id for o in c.by_status("pending")}, {"a", "c"})
        self.assertEqual(len(c.by_status()), 3)

    async def test_on_change_called(self):
        c = self.collection()
        c.bind("u1")
        before = self.changes
        self.backend.push(DocumentRef("notifications/u1"), notifications_doc("u1"))
        self.assertEqual(self.changes, before + 1)

    # ---------- mark as read ----------

    async def test_mark_read_once_per_bind(self):
        c = self.collection()
        c.bind("u1")
        source = DocumentRef("notifications/u1")
        self.backend.push(source, self.stored("u1", notification("a"), notification("b", "read", 5)))
        self.assertEqual(c.unread_count, 1)
        self.assertEqual(self.backend.writes_of("update"), [])

        await self.settle()
        updates = self.backend.writes_of("update")
        self.assertEqual(len(updates), 1)
        path, fields = updates[0]
        self.assertEqual(path, "notifications/u1")
        self.assertEqual({n["id"]: n["status"] for n in fields["notifications"]}, {"a": "read", "b": "read"})

        # the server echoes more unread entries; no second batch in this bind
        self.backend.push(source, notifications_doc("u1", notification("c"), notification("a", "read")))
        await self.settle()
        self.assertEqual(len(self.backend.writes_of("update")), 1)

        # a fresh bind is a new visit
        c.bind(None)
        c.bind("u1")
        self.backend.push(source, self.stored("u1", notification("c")))
        await self.settle()
        self.assertEqual(len(self.backend.writes_of("update")), 2)

    async def test_empty_notifications_issue_no_batch(self):
        c = self.collection()
        c.bind("u1")
        source = DocumentRef("notifications/u1")
        self.backend.push(source, [])
        self.backend.push(source, notifications_doc("u1"))
        await self.settle()
        self.assertEqual(self.backend.writes, [])

    async def test_all_read_issues_no_batch(self):
        c = self.collection()
        c.bind("u1")
        self.backend.push(DocumentRef("notifications/u1"), self.stored("u1", notification("a", "read")))
        await self.settle()
        self.assertEqual(self.backend.writes, [])

    async def test_close_cancels_pending_mark_read(self):
        c = self.collection()
        c.bind("u1")
        self.backend.push(DocumentRef("notifications/u1"), self.stored("u1", notification("a")))
        c.close()
        await self.settle()
        self.assertEqual(self.backend.writes, [])

    async def test_mark_read_failure_keeps_items(self):
        self.backend.fail_on["update"] = ServerError()
        c = self.collection()
        c.bind("u1")
        self.backend.push(DocumentRef("notifications/u1"), self.stored("u1", notification("a")))
        await self.settle()
        self.assertEqual([n.id for n in c.items], ["a"])
        self.assertEqual(c.unread_count, 1)

    async def test_mark_read_keeps_stored_entries_intact(self):
        legacy = {"title": "Welcome", "message": "no id on this one", "status": "unread"}
        older = {**notification("a", minutes_ago=30), "productImage": "x.png"}
        newer = notification("b", minutes_ago=1)
        c = self.collection()
        c.bind("u1")
        self.backend.push(DocumentRef("notifications/u1"), self.stored("u1", older, legacy, newer))
        self.assertEqual([n.id for n in c.items], ["b", "a"])

        # arrives in storage after the snapshot the timer works from
        late = notification("z")
        self.backend.docs["notifications/u1"]["notifications"].append(dict(late))
        await self.settle()

        (_, fields), = self.backend.writes_of("update")
        written = fields["notifications"]
        self.assertEqual(len(written), 4)
        self.assertEqual(written[0], {**older, "status": "read"})
        self.assertEqual(written[1], legacy)
        self.assertEqual(written[2], {**newer, "status": "read"})
        self.assertEqual(written[3], late)

    async def test_mark_read_skips_missing_document(self):
        c = self.collection()
        c.bind("u1")
        self.backend.push(DocumentRef("notifications/u1"), notifications_doc("u1", notification("a")))
        await self.settle()
        self.assertEqual(self.backend.writes, [])

    async def test_badge_spec_never_marks_read(self):
        c = self.collection(NOTIFICATION_BADGE)
        c.bind("u1")
        self.backend.push(DocumentRef("notifications/u1"), notifications_doc("u1", notification("a")))
        await self.settle()
        self.assertEqual(self.backend.writes, [])
        self.assertEqual(c.unread_count, 1)


if __name__ == "__main__":
    unittest.main()
