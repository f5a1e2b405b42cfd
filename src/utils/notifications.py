from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import List, Literal, Optional

import api.crud as crud
from api.client import ApiError, UnauthorizedError
from utils.logger import get_logger
from utils.state import SessionState

_logger = get_logger(__name__)

Severity = Literal["information", "warning", "error"]


@dataclass(frozen=True)
class Notification:
    title: str
    message: str
    type: Severity = "information"
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = field(default_factory=datetime.now)
    read: bool = False


class NotificationCenter:
    """Newest-first notification list behind the bell in the sidebar."""

    def __init__(self) -> None:
        self.notifications: List[Notification] = []

    def add(self, title: str, message: str, type: Severity = "information") -> Notification:
        note = Notification(title=title, message=message, type=type)
        self.notifications.insert(0, note)
        return note

    def dismiss(self, note_id: str) -> None:
        self.notifications = [n for n in self.notifications if n.id != note_id]

    def clear(self) -> None:
        self.notifications = []

    def mark_read(self, note_id: str) -> None:
        self.notifications = [
            replace(n, read=True) if n.id == note_id else n for n in self.notifications
        ]

    def mark_all_read(self) -> None:
        self.notifications = [replace(n, read=True) for n in self.notifications]

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self.notifications if not n.read)


async def check_low_stock(center: NotificationCenter, session: SessionState) -> Optional[Notification]:
    """
    One low-stock poll. Adds (and returns) a warning when anything is low.

    Skipped without a token; a 401 means the user logged out meanwhile and
    is ignored without logging.
    """
    if not session.is_authenticated:
        return None
    try:
        low_stock = await crud.list_low_stock_products(refresh=True)
    except UnauthorizedError:
        return None
    except ApiError as e:
        _logger.error(f"Error checking low stock: {e.message}")
        return None

    if not low_stock:
        return None
    return center.add(
        "Low Stock Alert!",
        f"{len(low_stock)} product(s) are running low on stock. Check inventory now.",
        type="warning",
    )
