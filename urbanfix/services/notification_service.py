"""
Notification Service - record lifecycle events for external delivery.

Only the event documents live here; delivery and read-state tracking
belong to the notification system that consumes the collection.
"""

from urbanfix.services.storage.base import NOTIFICATIONS_COLLECTION, DocumentStore
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional
import logging

logger = logging.getLogger(__name__)


class NotificationType(str, Enum):
    ISSUE_CREATED = "issue_created"
    NEW_COMMENT = "new_comment"


class NotificationService:
    """Writes notification events to the document store."""

    def __init__(self, store: DocumentStore):
        self.store = store

    def emit(
        self,
        notification_type: NotificationType,
        issue_id: str,
        user_id: str,
        message: str = ""
    ) -> Optional[Dict]:
        """
        Record an event. Failures are logged and swallowed: a notification
        is never worth failing the mutation that triggered it.
        """
        try:
            record = self.store.create(NOTIFICATIONS_COLLECTION, {
                "type": notification_type.value,
                "issue_id": issue_id,
                "user_id": user_id,
                "message": message,
                "created_at": datetime.now(timezone.utc),
            })
            logger.info(f"Notification {notification_type.value} recorded for issue {issue_id}")
            return record
        except Exception as e:
            logger.warning(f"⚠️ Failed to record {notification_type.value} notification for issue {issue_id}: {e}")
            return None
