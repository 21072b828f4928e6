from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from db.database import connect
from utils import config

# ---------------------------
# Key/value secure store
# ---------------------------


async def get_item(key: str) -> Optional[str]:
    """Return the stored value for key, or None."""
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT value FROM secure_store WHERE key = ? LIMIT 1;", (key,)
        )
        row = await cur.fetchone()
        await cur.close()
    return row[0] if row else None


async def set_item(key: str, value: str) -> None:
    """Insert or replace the value stored under key."""
    now = datetime.now(timezone.utc).isoformat()
    async with connect() as conn:
        await conn.execute(
            """
            INSERT INTO secure_store(key, value, updated_at) VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                           updated_at = excluded.updated_at;
            """,
            (key, value, now),
        )
        await conn.commit()


async def delete_item(key: str) -> None:
    """Remove key; deleting a missing key is not an error."""
    async with connect() as conn:
        await conn.execute("DELETE FROM secure_store WHERE key = ?;", (key,))
        await conn.commit()


# ---------------------------
# Access token
# ---------------------------


async def get_access_token() -> Optional[str]:
    token = await get_item(config.ACCESS_TOKEN_KEY)
    return token or None


async def save_access_token(token: str) -> None:
    await set_item(config.ACCESS_TOKEN_KEY, token)


async def clear_access_token() -> None:
    await delete_item(config.ACCESS_TOKEN_KEY)
