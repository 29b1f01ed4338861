"""
Status Workflow Engine - work status and visibility state machines.

DESIGN PRINCIPLES:
- Closed is terminal: no status change and no team assignment afterwards
- Visibility never returns to Review once decided
- All work status changes logged in status_history
"""

from urbanfix.core.errors import TerminalStateError, ValidationError
from urbanfix.models.issue import VisibilityState, WorkStatus
from datetime import datetime, timezone
from typing import Dict, List, Optional
import logging

logger = logging.getLogger(__name__)


class StatusWorkflowEngine:
    """
    State machine for issue work status and visibility.

    ChangeStatus may move a non-terminal issue to any status; the
    SUGGESTED_TRANSITIONS map is the usual path and is what clients are
    offered as next steps.
    """

    TERMINAL_STATUSES = {WorkStatus.CLOSED}

    SUGGESTED_TRANSITIONS: Dict[WorkStatus, List[WorkStatus]] = {
        WorkStatus.PENDING: [WorkStatus.IN_PROGRESS, WorkStatus.RESOLVED],
        WorkStatus.IN_PROGRESS: [WorkStatus.PENDING, WorkStatus.RESOLVED],
        WorkStatus.RESOLVED: [WorkStatus.IN_PROGRESS, WorkStatus.CLOSED],
        WorkStatus.CLOSED: []  # Terminal state, no transitions allowed
    }

    VISIBILITY_TRANSITIONS: Dict[VisibilityState, List[VisibilityState]] = {
        VisibilityState.REVIEW: [VisibilityState.APPROVED, VisibilityState.REJECTED],
        VisibilityState.APPROVED: [VisibilityState.REJECTED],
        VisibilityState.REJECTED: [VisibilityState.APPROVED],
    }

    @classmethod
    def parse_status(cls, value: str) -> WorkStatus:
        try:
            return WorkStatus(value)
        except ValueError:
            allowed = [status.value for status in WorkStatus]
            raise ValidationError(f"Invalid status '{value}'. Allowed values: {allowed}")

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        return WorkStatus(status) in cls.TERMINAL_STATUSES

    @classmethod
    def ensure_mutable(cls, issue: Dict, action: str) -> None:
        """
        Raises:
            TerminalStateError: issue work status is terminal
        """
        current = issue.get("status", WorkStatus.PENDING.value)
        if cls.is_terminal(current):
            raise TerminalStateError(
                f"Cannot {action}: issue #{issue.get('issue_number')} is {current}",
                {"issue_id": issue.get("id"), "status": current},
            )

    @classmethod
    def get_suggested_transitions(cls, current_status: str) -> List[str]:
        try:
            current = WorkStatus(current_status)
        except ValueError:
            return []
        return [status.value for status in cls.SUGGESTED_TRANSITIONS.get(current, [])]

    @classmethod
    def create_status_history_entry(
        cls,
        from_status: str,
        to_status: str,
        changed_by: str,
        note: Optional[str] = None
    ) -> Dict:
        """
        Create a status history entry for audit trail.
        """
        return {
            "from": from_status,
            "to": to_status,
            "changed_by": changed_by,
            "timestamp": datetime.now(timezone.utc),
            "note": note or ""
        }

    @classmethod
    def validate_and_transition(
        cls,
        issue: Dict,
        new_status: str,
        changed_by: str,
        note: Optional[str] = None
    ) -> Dict:
        """
        Validate a work status change against the current issue document.

        Returns:
            The fields to update, or an empty dict if the status is unchanged

        Raises:
            ValidationError: new_status outside the enumeration
            TerminalStateError: issue is Closed
        """
        target = cls.parse_status(new_status)
        cls.ensure_mutable(issue, f"change status to {target.value}")

        current = issue.get("status", WorkStatus.PENDING.value)
        if current == target.value:
            return {}

        if target not in cls.SUGGESTED_TRANSITIONS.get(WorkStatus(current), []):
            logger.info(f"Issue {issue.get('id')} moved off the usual path: {current} → {target.value}")

        history = list(issue.get("status_history") or [])
        history.append(cls.create_status_history_entry(current, target.value, changed_by, note))
        return {
            "status": target.value,
            "status_history": history,
        }

    @classmethod
    def validate_visibility(cls, current: str, target: VisibilityState) -> None:
        """
        Raises:
            ValidationError: target is not reachable (nothing returns to Review)
        """
        current_state = VisibilityState(current or VisibilityState.REVIEW.value)
        if current_state == target:
            return
        if target not in cls.VISIBILITY_TRANSITIONS.get(current_state, []):
            raise ValidationError(f"Invalid visibility transition: {current_state.value} → {target.value}")
