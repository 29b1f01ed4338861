"""
Moderation endpoints - admin decisions on issue visibility and comments.

SCOPE OF ADMIN:
✅ Approve or reject issues for public visibility (rejection needs a reason)
✅ Approve or decline comments (declining needs a reason)

❌ NOT change work status (authorities do that)
❌ NOT send issues back to Review
"""

from fastapi import APIRouter, Depends

from urbanfix.models.base import BaseResponse
from urbanfix.models.comment import CommentDecisionRequest, CommentResponse
from urbanfix.models.issue import IssueResponse, VisibilityDecisionRequest
from urbanfix.models.user import ActingUser
from urbanfix.routes.deps import comment_service, get_acting_user, issue_service
from urbanfix.services.comment_service import CommentService
from urbanfix.services.issue_service import IssueService
from typing import List

router = APIRouter(prefix="/moderation", tags=["Moderation"])


class ModerationQueueResponse(BaseResponse):
    issues: List[IssueResponse]
    comments: List[CommentResponse]


class IssueDecisionResponse(BaseResponse):
    issue: IssueResponse


class CommentDecisionResponse(BaseResponse):
    comment: CommentResponse


@router.get("", response_model=ModerationQueueResponse)
def moderation_queue(
    user: ActingUser = Depends(get_acting_user),
    service: IssueService = Depends(issue_service),
):
    """Issues awaiting review and comments awaiting moderation."""
    return service.moderation_queue(user)


@router.patch("/issues/{issue_id}", response_model=IssueDecisionResponse)
def moderate_issue(
    issue_id: str,
    request: VisibilityDecisionRequest,
    user: ActingUser = Depends(get_acting_user),
    service: IssueService = Depends(issue_service),
):
    issue = service.moderate_visibility(issue_id, request.decision.value, user, reason=request.reason)
    return {"message": f"Issue {issue['visibility'].lower()}", "issue": issue}


@router.patch("/comments/{comment_id}", response_model=CommentDecisionResponse)
def moderate_comment(
    comment_id: str,
    request: CommentDecisionRequest,
    user: ActingUser = Depends(get_acting_user),
    service: CommentService = Depends(comment_service),
):
    comment = service.moderate_comment(comment_id, request.decision.value, user, reason=request.reason)
    return {"message": f"Comment {comment['status'].lower()}", "comment": comment}
