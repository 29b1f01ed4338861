"""
Issue endpoints - submission, listing, upvotes and the work-status workflow.

Business failures are raised by the services as LifecycleError and turned
into JSON responses by the handler registered in main.py.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Response, status

from urbanfix.models.base import BaseResponse
from urbanfix.models.issue import (
    ClassificationResponse,
    ClassifyRequest,
    IssueCreate,
    IssuePage,
    IssueResponse,
    StatusUpdateRequest,
    TeamAssignRequest,
)
from urbanfix.models.user import ActingUser
from urbanfix.routes.deps import get_acting_user, get_optional_user, issue_service
from urbanfix.services.issue_service import IssueService
from urbanfix.utils.identifiers import clean_text

router = APIRouter(prefix="/issues", tags=["Issues"])


class IssueMutationResponse(BaseResponse):
    issue: IssueResponse


@router.post("", status_code=status.HTTP_201_CREATED, response_model=IssueMutationResponse)
def submit_issue(
    issue: IssueCreate,
    user: ActingUser = Depends(get_acting_user),
    service: IssueService = Depends(issue_service),
):
    """
    Submit a new issue.

    Classification runs before the issue is stored; if the AI backend is
    unavailable the issue is still stored with priority Moderate.
    """
    created = service.submit(issue, user)
    return {"message": "Issue submitted successfully.", "issue": created}


@router.post("/classify", response_model=ClassificationResponse)
def preview_classification(
    request: ClassifyRequest,
    user: ActingUser = Depends(get_acting_user),
    service: IssueService = Depends(issue_service),
):
    """
    Classify without persisting anything (form pre-fill).
    Reports 503 if the configured classifier cannot answer.
    """
    result = service.classifier.classify(
        clean_text(request.description) or "",
        clean_text(request.address) or "",
        clean_text(request.audio_url),
    )
    return result.to_dict()


@router.get("", response_model=List[IssueResponse])
def list_issues(
    status: Optional[str] = Query(None, description="Filter by work status"),
    priority: Optional[str] = Query(None, description="Filter by priority"),
    category: Optional[str] = Query(None, description="Filter by category, or \"Unclassified\" for issues without one"),
    address: Optional[str] = Query(None, description="Case-insensitive address substring"),
    owner_id: Optional[str] = Query(None, description="Filter by creator"),
    visibility: Optional[str] = Query(None, description="Filter by visibility state"),
    user: ActingUser = Depends(get_acting_user),
    service: IssueService = Depends(issue_service),
):
    return service.list_issues(
        status=status,
        priority=priority,
        category=category,
        address=address,
        owner_id=owner_id,
        visibility=visibility,
    )


@router.get("/mine", response_model=List[IssueResponse])
def list_my_issues(
    status: Optional[str] = Query(None),
    priority: Optional[str] = Query(None),
    address: Optional[str] = Query(None),
    user: ActingUser = Depends(get_acting_user),
    service: IssueService = Depends(issue_service),
):
    return service.list_issues(status=status, priority=priority, address=address, owner_id=user.id)


@router.get("/explore", response_model=IssuePage)
def explore_issues(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    status: Optional[str] = Query(None),
    priority: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    address: Optional[str] = Query(None),
    service: IssueService = Depends(issue_service),
):
    """Public listing of approved issues. No authentication required."""
    return service.explore_issues(
        page=page,
        limit=limit,
        status=status,
        priority=priority,
        category=category,
        address=address,
    )


@router.get("/{issue_id}", response_model=IssueResponse)
def get_issue(
    issue_id: str,
    user: Optional[ActingUser] = Depends(get_optional_user),
    service: IssueService = Depends(issue_service),
):
    return service.get_issue(issue_id, user)


@router.put("/{issue_id}/upvote", response_model=IssueMutationResponse)
def upvote_issue(
    issue_id: str,
    user: ActingUser = Depends(get_acting_user),
    service: IssueService = Depends(issue_service),
):
    issue = service.upvote(issue_id, user)
    return {"message": "Issue successfully upvoted", "issue": issue}


@router.patch("/{issue_id}/status", response_model=IssueMutationResponse)
def change_status(
    issue_id: str,
    request: StatusUpdateRequest,
    user: ActingUser = Depends(get_acting_user),
    service: IssueService = Depends(issue_service),
):
    issue = service.change_status(issue_id, request.status, user, note=request.note)
    return {"message": f"Status updated to {issue['status']}", "issue": issue}


@router.patch("/{issue_id}/team", response_model=IssueMutationResponse)
def assign_team(
    issue_id: str,
    request: TeamAssignRequest,
    user: ActingUser = Depends(get_acting_user),
    service: IssueService = Depends(issue_service),
):
    issue = service.assign_team(issue_id, request.team_id, user)
    return {"message": "Team successfully assigned", "issue": issue}


@router.delete("/{issue_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_issue(
    issue_id: str,
    user: ActingUser = Depends(get_acting_user),
    service: IssueService = Depends(issue_service),
):
    service.delete_issue(issue_id, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
