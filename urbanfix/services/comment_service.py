"""
Comment Service - Handle comments on issues and their moderation.
"""

from urbanfix.core.errors import AuthorizationError, NotFoundError, ValidationError
from urbanfix.models.comment import CommentDecision, CommentStatus
from urbanfix.models.user import ActingUser
from urbanfix.services.notification_service import NotificationService, NotificationType
from urbanfix.services.storage.base import COMMENTS_COLLECTION, ISSUES_COLLECTION, DocumentStore
from urbanfix.services.storage.registry import get_document_store
from urbanfix.utils.identifiers import clean_text, ensure_identifier
from datetime import datetime, timezone
from typing import Dict, Optional
import logging

logger = logging.getLogger(__name__)


class CommentService:
    """Service for managing comments on issues."""

    def __init__(self, store: DocumentStore, notifications: Optional[NotificationService] = None):
        self.store = store
        self.notifications = notifications or NotificationService(store)

    def add_comment(self, issue_id: str, content: str, acting_user: ActingUser) -> Dict:
        """
        Add a comment to an issue. Comments start Pending until moderated.

        Raises:
            ValidationError: blank content
            NotFoundError: issue absent
            AuthorizationError: commenting on one's own issue
        """
        ensure_identifier(issue_id)
        ensure_identifier(acting_user.id, "user")

        text = clean_text(content)
        if not text:
            raise ValidationError("Comment content is required")

        issue = self.store.get(ISSUES_COLLECTION, issue_id)
        if issue is None:
            raise NotFoundError(f"Issue {issue_id} not found")
        if issue.get("created_by") == acting_user.id:
            raise AuthorizationError("You cannot comment your own issue")

        comment = self.store.create(COMMENTS_COLLECTION, {
            "issue_id": issue_id,
            "content": text,
            "created_by": acting_user.id,
            "status": CommentStatus.PENDING.value,
            "reason": None,
            "created_at": datetime.now(timezone.utc),
        })
        logger.info(f"Comment {comment['id']} added to issue {issue_id} by {acting_user.id}")

        self.notifications.emit(
            NotificationType.NEW_COMMENT,
            issue_id=issue_id,
            user_id=acting_user.id,
            message=text,
        )
        return comment

    def moderate_comment(
        self,
        comment_id: str,
        decision: str,
        acting_user: ActingUser,
        reason: Optional[str] = None
    ) -> Dict:
        """
        Approve or decline a comment. Declining requires a reason.
        """
        if not acting_user.is_admin:
            raise AuthorizationError("Only admins can moderate comments")
        ensure_identifier(comment_id, "comment")

        try:
            decision = CommentDecision(decision)
        except ValueError:
            raise ValidationError(f"Invalid decision '{decision}'. Allowed values: {[d.value for d in CommentDecision]}")

        reason = clean_text(reason)
        if decision == CommentDecision.DECLINE and not reason:
            raise ValidationError("A reason is required to decline a comment")

        if decision == CommentDecision.APPROVE:
            updates = {"status": CommentStatus.APPROVED.value, "reason": None}
        else:
            updates = {"status": CommentStatus.DECLINED.value, "reason": reason}

        try:
            comment = self.store.mutate(COMMENTS_COLLECTION, comment_id, lambda current: updates)
        except NotFoundError:
            raise NotFoundError(f"Comment {comment_id} not found")

        logger.info(f"Comment {comment_id} is now {comment['status']} (by {acting_user.id})")
        return comment


# Global service instance
_comment_service: Optional[CommentService] = None


def get_comment_service() -> CommentService:
    """Get or create CommentService singleton."""
    global _comment_service
    if _comment_service is None:
        _comment_service = CommentService(get_document_store())
    return _comment_service
