from datetime import datetime, timezone
from typing import Any, List, Literal, Optional


def generate_markdown_table(
    headers: Optional[List[str]],
    rows: List[List[Any]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Generate a Markdown table.

    Args:
        headers: List of column headers, or None to use first row as headers.
        rows: List of rows; cells are converted with str().
        aligns: List of alignments ('l', 'c', 'r') for each column.
                Defaults to all left ('l').

    Returns:
        str: Markdown formatted table, "" when there are no rows.
    """
    if not rows:
        return ""

    if not headers:
        headers, rows = rows[0], rows[1:]

    headers = [str(h) for h in headers]
    rows = [["-" if cell is None else str(cell) for cell in row] for row in rows]

    if aligns is None:
        aligns = ["l"] * len(headers)
    elif len(aligns) != len(headers):
        raise ValueError("Length of aligns must match number of headers.")

    align_map = {"l": ":---", "c": ":---:", "r": "---:"}

    lines = [
        "| " + " | ".join(headers) + " |",
        "| " + " | ".join(align_map[a] for a in aligns) + " |",
    ]
    lines.extend("| " + " | ".join(row) + " |" for row in rows)
    return "\n".join(lines)


def to_datetime(value: Any) -> Optional[datetime]:
    """
    Coerce a backend timestamp into an aware datetime.

    Accepts datetimes (Firestore returns a datetime subclass), objects with
    ``to_datetime()``, ISO-8601 strings (a trailing "Z" included) and epoch
    milliseconds. Anything else yields None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    elif hasattr(value, "to_datetime"):
        dt = value.to_datetime()
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        dt = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    else:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def epoch_key(value: Optional[datetime]) -> float:
    """Sort key for optional datetimes; missing values sort as oldest."""
    return value.timestamp() if value else 0.0


def conversation_id(user_a: str, user_b: str) -> str:
    """Both participants address the same channel whoever starts it."""
    return "_".join(sorted([user_a, user_b]))


def format_date(value: Optional[datetime]) -> str:
    if value is None:
        return "N/A"
    return value.astimezone().strftime("%b %d, %Y %I:%M %p")


def short_order_id(order_id: str) -> str:
    return order_id[-8:].upper()
