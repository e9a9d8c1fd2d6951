# app/lib/reconciliation.py

import logging
from typing import Any, Dict, List, Optional


class NotificationFeed:
    """Client-side notification state: a newest-first buffer and an unread counter.

    Pushed notifications are prepended without deduplication; the same
    notification may later arrive again in a pulled page. The server's unread
    count always wins when it comes from a pull.
    """

    def __init__(self):
        self.items: List[Dict[str, Any]] = []
        self.unread_count = 0
        self.current_page = 0
        self.total_pages = 0
        self.logger = logging.getLogger(__name__)

    def load_snapshot(self, page: Dict[str, Any]) -> None:
        """Replace local state with a freshly pulled first page."""
        self.items = list(page.get("items", []))
        self.unread_count = max(0, int(page.get("unreadCount", 0)))
        self.current_page = page.get("currentPage", 1)
        self.total_pages = page.get("totalPages", 0)

    def load_more(self, page: Dict[str, Any]) -> None:
        """Append an older page behind what is already buffered."""
        self.items.extend(page.get("items", []))
        self.current_page = page.get("currentPage", self.current_page + 1)
        self.total_pages = page.get("totalPages", self.total_pages)
        if "unreadCount" in page:
            self.reconcile(page["unreadCount"])

    @property
    def has_more(self) -> bool:
        return self.current_page < self.total_pages

    def on_push(self, notification: Dict[str, Any]) -> None:
        self.items.insert(0, notification)
        self.unread_count += 1

    def mark_read(self, notification_id: str) -> None:
        changed = False
        for item in self.items:
            if item.get("_id") == notification_id and not item.get("read"):
                item["read"] = True
                changed = True
        if changed:
            self.unread_count = max(0, self.unread_count - 1)

    def mark_all_read(self) -> None:
        for item in self.items:
            item["read"] = True
        self.unread_count = 0

    def reconcile(self, server_unread_count: int) -> None:
        if server_unread_count != self.unread_count:
            self.logger.debug(
                f"Unread count drifted: local {self.unread_count}, server {server_unread_count}"
            )
        self.unread_count = max(0, int(server_unread_count))

    def apply_read_event(self, data: Dict[str, Any]) -> None:
        """Apply a ``notifications_read`` push sent after a session marked items read.

        Each listed id was unread on the server until that write, so the
        counter drops once per id unless this feed already saw it as read.
        Ids outside the buffer still count. Pushes that arrived in the
        meantime are left alone.
        """
        for notification_id in dict.fromkeys(data.get("notificationIds", [])):
            matches = [item for item in self.items if item.get("_id") == notification_id]
            if matches and all(item.get("read") for item in matches):
                continue
            for item in matches:
                item["read"] = True
            self.unread_count = max(0, self.unread_count - 1)

    def handle_event(self, event: Dict[str, Any]) -> Optional[str]:
        """Route one push frame. Returns the handled type, or None if ignored."""
        event_type = event.get("type")
        if event_type == "notification":
            self.on_push(event["data"])
        elif event_type == "notifications_read":
            self.apply_read_event(event.get("data", {}))
        else:
            return None
        return event_type

    @property
    def unread_items(self) -> List[Dict[str, Any]]:
        return [item for item in self.items if not item.get("read")]
