import os
import stat
import sys
import tempfile
import unittest

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from db import crud  # noqa: E402
from db import database as db_database  # noqa: E402
from utils import config  # noqa: E402


class CrudTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        # Point the DB to a temporary file and force re-initialization
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.temp_dir.name, "nested", "store.sqlite")
        self._old_path = db_database.DB_PATH
        db_database.DB_PATH = self.db_path
        db_database._initialized = False

    def tearDown(self):
        db_database.DB_PATH = self._old_path
        db_database._initialized = False
        self.temp_dir.cleanup()

    # ---------- Key/value store ----------

    async def test_missing_key_reads_none(self):
        self.assertIsNone(await crud.get_item("nope"))

    async def test_set_get_overwrite_delete(self):
        await crud.set_item("k", "v1")
        self.assertEqual(await crud.get_item("k"), "v1")

        await crud.set_item("k", "v2")
        self.assertEqual(await crud.get_item("k"), "v2")

        await crud.delete_item("k")
        self.assertIsNone(await crud.get_item("k"))

        # deleting again is fine
        await crud.delete_item("k")

    async def test_file_created_owner_only(self):
        await crud.get_item("anything")
        self.assertTrue(os.path.exists(self.db_path))
        if os.name == "posix":
            mode = stat.S_IMODE(os.stat(self.db_path).st_mode)
            self.assertEqual(mode & 0o077, 0)

    # ---------- Access token ----------

    async def test_access_token_round_trip(self):
        self.assertIsNone(await crud.get_access_token())

        await crud.save_access_token("tok-123")
        self.assertEqual(await crud.get_access_token(), "tok-123")
        self.assertEqual(await crud.get_item(config.ACCESS_TOKEN_KEY), "tok-123")

        await crud.clear_access_token()
        self.assertIsNone(await crud.get_access_token())

    async def test_empty_token_reads_as_missing(self):
        await crud.save_access_token("")
        self.assertIsNone(await crud.get_access_token())

    async def test_token_survives_reinitialization(self):
        await crud.save_access_token("persisted")
        db_database._initialized = False
        self.assertEqual(await crud.get_access_token(), "persisted")


if __name__ == "__main__":
    unittest.main()
