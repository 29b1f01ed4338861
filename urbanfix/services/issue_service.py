"""
Issue Service - the issue lifecycle.

Owns submission (with classification), upvotes, work status, team
assignment, visibility moderation and listing.

DESIGN NOTES:
- Classification never blocks submission; if it fails the issue is stored
  with priority Moderate and no category
- Every check-then-write runs inside DocumentStore.mutate, so concurrent
  requests cannot interleave between the check and the write
- upvote_count is always derived from the upvoter set, never stored
"""

from urbanfix.core.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    RecoverableError,
    ValidationError,
)
from urbanfix.core.settings import settings
from urbanfix.models.issue import (
    Category,
    IssueCreate,
    ModerationDecision,
    Priority,
    VisibilityState,
    WorkStatus,
)
from urbanfix.models.comment import CommentStatus
from urbanfix.models.user import ActingUser, Role
from urbanfix.services.classification.base import ClassificationProvider, ClassificationResult
from urbanfix.services.classification.registry import get_classifier
from urbanfix.services.notification_service import NotificationService, NotificationType
from urbanfix.services.status_workflow import StatusWorkflowEngine
from urbanfix.services.storage.base import COMMENTS_COLLECTION, ISSUES_COLLECTION, DocumentStore, Sequence
from urbanfix.services.storage.registry import get_document_store
from urbanfix.services.team_service import TeamService
from urbanfix.utils.identifiers import clean_text, ensure_identifier
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Type
import logging
import math

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Category filter value selecting issues stored without a category
UNCLASSIFIED = "Unclassified"


def _parse_filter(enum_cls: Type[Enum], value: Optional[str], name: str) -> Optional[str]:
    if value is None or value == "":
        return None
    try:
        return enum_cls(value).value
    except ValueError:
        allowed = [member.value for member in enum_cls]
        raise ValidationError(f"Invalid {name} filter '{value}'. Allowed values: {allowed}")


def annotate_issue(issue: Dict) -> Dict:
    """Attach the derived upvote count."""
    issue["upvoters"] = list(issue.get("upvoters") or [])
    issue["upvote_count"] = len(set(issue["upvoters"]))
    return issue


def _newest_first(issue: Dict):
    return (issue.get("created_at") or datetime.min.replace(tzinfo=timezone.utc), issue.get("issue_number", 0))


class IssueService:
    """
    Service for the issue lifecycle.
    """

    def __init__(
        self,
        store: DocumentStore,
        classifier: ClassificationProvider,
        teams: Optional[TeamService] = None,
        notifications: Optional[NotificationService] = None,
    ):
        self.store = store
        self.classifier = classifier
        self.teams = teams or TeamService(store)
        self.notifications = notifications or NotificationService(store)
        self.workflow = StatusWorkflowEngine()
        self.sequence = Sequence("issues", "issue_number", settings.ISSUE_NUMBER_START)

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def submit(self, issue_data: IssueCreate, creator: ActingUser) -> Dict:
        """
        Create a new issue.

        Flow:
        1. Validate input and creator
        2. Classify (best-effort, degrades to Moderate / unclassified)
        3. Persist with the next issue number (allocated atomically)
        4. Emit issue_created

        Raises:
            ValidationError: blank address, or no description/photo/audio
            AuthorizationError: creator is not a citizen
            ConflictError: issue number collision (retry the request)
            StorageError: persistence failure
        """
        ensure_identifier(creator.id, "user")
        if creator.role != Role.CITIZEN:
            raise AuthorizationError("Only citizens can submit issues")

        description = clean_text(issue_data.description)
        address = clean_text(issue_data.address)
        photo_url = clean_text(issue_data.photo_url)
        audio_url = clean_text(issue_data.audio_url)

        if not address:
            raise ValidationError("Address is required")
        if not (description or photo_url or audio_url):
            raise ValidationError("At least one of description, photo, or audio is required")

        classification = self.classify(description or "", address, audio_url)

        now = _utcnow()
        issue = self.store.create(ISSUES_COLLECTION, {
            "description": description,
            "address": address,
            "photo_url": photo_url,
            "audio_url": audio_url,
            "transcription": classification.transcription,
            "category": classification.category,
            "priority": classification.priority,
            "status": WorkStatus.PENDING.value,
            "visibility": VisibilityState.REVIEW.value,
            "reason": None,
            "created_by": creator.id,
            "team_id": None,
            "upvoters": [],
            "classification": classification.metadata(),
            "status_history": [
                self.workflow.create_status_history_entry("", WorkStatus.PENDING.value, creator.id, "Issue submitted")
            ],
            "created_at": now,
            "updated_at": now,
        }, sequence=self.sequence)

        logger.info(
            f"✅ Issue #{issue['issue_number']} created: {issue['id']} "
            f"(priority={issue['priority']}, category={issue['category']})"
        )

        self.notifications.emit(
            NotificationType.ISSUE_CREATED,
            issue_id=issue["id"],
            user_id=creator.id,
            message=f"Issue #{issue['issue_number']} submitted at {address}",
        )
        return annotate_issue(issue)

    def classify(self, text: str, address: str, audio_url: Optional[str] = None) -> ClassificationResult:
        """
        Run the configured classifier, absorbing RecoverableError.

        This is the one place a failure is recovered locally: the submission
        keeps going with priority Moderate and no category.
        """
        try:
            result = self.classifier.classify(text, address, audio_url)
        except RecoverableError as e:
            logger.warning(f"⚠️ Classification unavailable, using defaults: {e.message}")
            return ClassificationResult(
                priority=Priority.MODERATE.value,
                category=None,
                provider="none",
                model="",
                fallback_used=True,
            )

        # Providers are trusted for shape, not for content
        if result.priority not in {priority.value for priority in Priority}:
            result.priority = Priority.MODERATE.value
        if result.category not in {category.value for category in Category}:
            result.category = None
        return result

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_issue(self, issue_id: str, acting_user: Optional[ActingUser] = None, with_comments: bool = True) -> Dict:
        """
        Fetch one issue with its derived upvote count and visible comments.

        Issues not yet Approved are only shown to their creator and to
        staff; everyone else gets NotFoundError, as if the issue did not
        exist. Pending comments are only shown to their author and to admins.
        """
        ensure_identifier(issue_id)
        issue = self.store.get(ISSUES_COLLECTION, issue_id)
        if issue is None or not self._can_view(issue, acting_user):
            raise NotFoundError(f"Issue {issue_id} not found")

        annotate_issue(issue)
        issue["suggested_statuses"] = self.workflow.get_suggested_transitions(issue.get("status", ""))
        if with_comments:
            issue["comments"] = self._visible_comments(issue_id, acting_user)
        return issue

    @staticmethod
    def _can_view(issue: Dict, acting_user: Optional[ActingUser]) -> bool:
        if issue.get("visibility") == VisibilityState.APPROVED.value:
            return True
        if acting_user is None:
            return False
        return acting_user.is_staff or issue.get("created_by") == acting_user.id

    def _visible_comments(self, issue_id: str, acting_user: Optional[ActingUser]) -> List[Dict]:
        comments = self.store.query(COMMENTS_COLLECTION, {"issue_id": issue_id})
        visible = []
        for comment in comments:
            status = comment.get("status", CommentStatus.PENDING.value)
            if status == CommentStatus.APPROVED.value:
                visible.append(comment)
            elif acting_user is not None and (acting_user.is_admin or comment.get("created_by") == acting_user.id):
                visible.append(comment)
        visible.sort(key=lambda comment: comment.get("created_at") or datetime.min.replace(tzinfo=timezone.utc))
        return visible

    def list_issues(
        self,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        category: Optional[str] = None,
        address: Optional[str] = None,
        owner_id: Optional[str] = None,
        visibility: Optional[str] = None,
    ) -> List[Dict]:
        """
        List issues matching every given filter, newest first.

        Equality filters go to the store; the address filter is a
        case-insensitive substring match applied here. category="Unclassified"
        selects issues stored without a category.
        """
        filters = {}
        status = _parse_filter(WorkStatus, status, "status")
        priority = _parse_filter(Priority, priority, "priority")
        unclassified = category == UNCLASSIFIED
        category = None if unclassified else _parse_filter(Category, category, "category")
        visibility = _parse_filter(VisibilityState, visibility, "visibility")
        if status:
            filters["status"] = status
        if priority:
            filters["priority"] = priority
        if category:
            filters["category"] = category
        elif unclassified:
            filters["category"] = None
        if visibility:
            filters["visibility"] = visibility
        if owner_id:
            filters["created_by"] = ensure_identifier(owner_id, "user")

        issues = self.store.query(ISSUES_COLLECTION, filters)

        needle = clean_text(address)
        if needle:
            needle = needle.lower()
            issues = [issue for issue in issues if needle in (issue.get("address") or "").lower()]

        issues.sort(key=_newest_first, reverse=True)
        logger.info(f"Retrieved {len(issues)} issues with filters: {filters}, address={needle}")
        return [annotate_issue(issue) for issue in issues]

    def explore_issues(
        self,
        page: int = 1,
        limit: Optional[int] = None,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        category: Optional[str] = None,
        address: Optional[str] = None,
    ) -> Dict:
        """Public paginated listing of approved issues."""
        page = max(page or 1, 1)
        limit = limit or settings.EXPLORE_PAGE_SIZE
        if limit < 1:
            raise ValidationError("limit must be at least 1")

        issues = self.list_issues(
            status=status,
            priority=priority,
            category=category,
            address=address,
            visibility=VisibilityState.APPROVED.value,
        )
        start = (page - 1) * limit
        return {
            "data": issues[start:start + limit],
            "total_pages": math.ceil(len(issues) / limit),
            "current_page": page,
            "total_count": len(issues),
        }

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def upvote(self, issue_id: str, acting_user: ActingUser) -> Dict:
        """
        Add acting_user to the upvoter set.

        Raises:
            NotFoundError: issue absent
            AuthorizationError: acting_user created the issue
            ConflictError: acting_user already upvoted (same error on every retry)
        """
        ensure_identifier(issue_id)
        ensure_identifier(acting_user.id, "user")

        def add_upvoter(issue: Dict) -> Dict:
            if issue.get("created_by") == acting_user.id:
                raise AuthorizationError("You cannot upvote your own issue")
            upvoters = list(issue.get("upvoters") or [])
            if acting_user.id in upvoters:
                raise ConflictError("You have already upvoted this issue")
            upvoters.append(acting_user.id)
            return {"upvoters": upvoters, "updated_at": _utcnow()}

        issue = self._mutate(issue_id, add_upvoter)
        logger.info(f"Issue {issue_id} upvoted by {acting_user.id}")
        return annotate_issue(issue)

    def change_status(self, issue_id: str, new_status: str, acting_user: ActingUser, note: Optional[str] = None) -> Dict:
        """
        Overwrite the work status of a non-terminal issue.

        Raises:
            AuthorizationError: acting_user is a citizen
            ValidationError: new_status outside the enumeration
            TerminalStateError: issue is Closed
        """
        self._require_staff(acting_user, "change issue status")
        ensure_identifier(issue_id)
        self.workflow.parse_status(new_status)

        def transition(issue: Dict) -> Dict:
            updates = self.workflow.validate_and_transition(issue, new_status, acting_user.id, note)
            if updates:
                updates["updated_at"] = _utcnow()
            return updates

        issue = self._mutate(issue_id, transition)
        logger.info(f"✅ Issue {issue_id} status is now {issue['status']} (by {acting_user.id})")
        return annotate_issue(issue)

    def assign_team(self, issue_id: str, team_id: str, acting_user: ActingUser) -> Dict:
        """
        Set the assigned team. Does not touch the work status.

        Raises:
            AuthorizationError: acting_user is a citizen
            NotFoundError: issue or team absent
            TerminalStateError: issue is Closed
        """
        self._require_staff(acting_user, "assign teams")
        ensure_identifier(issue_id)

        current = self.store.get(ISSUES_COLLECTION, issue_id)
        if current is None:
            raise NotFoundError(f"Issue {issue_id} not found")
        # Terminal state wins over an unknown team; checked again atomically below
        self.workflow.ensure_mutable(current, "assign a team")
        team = self.teams.get_team(team_id)

        def set_team(issue: Dict) -> Dict:
            self.workflow.ensure_mutable(issue, "assign a team")
            return {"team_id": team["id"], "updated_at": _utcnow()}

        issue = self._mutate(issue_id, set_team)
        logger.info(f"✅ Issue {issue_id} assigned to team #{team.get('team_number')} (by {acting_user.id})")
        return annotate_issue(issue)

    def moderate_visibility(
        self,
        issue_id: str,
        decision: str,
        acting_user: ActingUser,
        reason: Optional[str] = None
    ) -> Dict:
        """
        Approve or reject an issue for public visibility.

        Reject requires a non-empty reason; Approve clears any prior reason.
        """
        if not acting_user.is_admin:
            raise AuthorizationError("Only admins can moderate issues")
        ensure_identifier(issue_id)

        try:
            decision = ModerationDecision(decision)
        except ValueError:
            raise ValidationError(f"Invalid decision '{decision}'. Allowed values: {[d.value for d in ModerationDecision]}")

        reason = clean_text(reason)
        if decision == ModerationDecision.REJECT and not reason:
            raise ValidationError("A reason is required to reject an issue")

        target = VisibilityState.APPROVED if decision == ModerationDecision.APPROVE else VisibilityState.REJECTED

        def decide(issue: Dict) -> Dict:
            self.workflow.validate_visibility(issue.get("visibility"), target)
            return {
                "visibility": target.value,
                "reason": reason if target == VisibilityState.REJECTED else None,
                "updated_at": _utcnow(),
            }

        issue = self._mutate(issue_id, decide)
        logger.info(f"✅ Issue {issue_id} visibility is now {target.value} (by {acting_user.id})")
        return annotate_issue(issue)

    def delete_issue(self, issue_id: str, acting_user: ActingUser) -> None:
        """
        Hard delete an issue and its comments. Admin only.
        """
        if not acting_user.is_admin:
            raise AuthorizationError("Only admins can delete issues")
        ensure_identifier(issue_id)

        if not self.store.delete(ISSUES_COLLECTION, issue_id):
            raise NotFoundError(f"Issue {issue_id} not found")
        for comment in self.store.query(COMMENTS_COLLECTION, {"issue_id": issue_id}):
            self.store.delete(COMMENTS_COLLECTION, comment["id"])
        logger.info(f"Issue {issue_id} deleted by {acting_user.id}")

    def moderation_queue(self, acting_user: ActingUser) -> Dict:
        """Issues awaiting review and comments awaiting moderation."""
        if not acting_user.is_admin:
            raise AuthorizationError("Only admins can view the moderation queue")
        issues = self.list_issues(visibility=VisibilityState.REVIEW.value)
        comments = self.store.query(COMMENTS_COLLECTION, {"status": CommentStatus.PENDING.value})
        comments.sort(key=lambda comment: comment.get("created_at") or datetime.min.replace(tzinfo=timezone.utc), reverse=True)
        return {"issues": issues, "comments": comments}

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _mutate(self, issue_id: str, mutator) -> Dict:
        try:
            return self.store.mutate(ISSUES_COLLECTION, issue_id, mutator)
        except NotFoundError:
            raise NotFoundError(f"Issue {issue_id} not found")

    @staticmethod
    def _require_staff(acting_user: ActingUser, action: str) -> None:
        if not acting_user.is_staff:
            raise AuthorizationError(f"Only authorities and admins can {action}")


# Global service instance
_issue_service: Optional[IssueService] = None


def get_issue_service() -> IssueService:
    """Get or create IssueService singleton."""
    global _issue_service
    if _issue_service is None:
        _issue_service = IssueService(get_document_store(), get_classifier())
    return _issue_service
