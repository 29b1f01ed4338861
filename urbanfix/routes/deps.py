"""
Request dependencies shared by the routers.

The identity provider sits in front of this service and forwards the
authenticated user as headers. They are trusted as-is; credentials are
never verified here.
"""

from fastapi import Header, HTTPException, status
from urbanfix.models.user import ActingUser, Role
from urbanfix.services.comment_service import CommentService, get_comment_service
from urbanfix.services.issue_service import IssueService, get_issue_service
from urbanfix.services.team_service import TeamService, get_team_service
from typing import Optional


def _build_user(user_id: Optional[str], role: Optional[str]) -> Optional[ActingUser]:
    if not user_id or not role:
        return None
    try:
        return ActingUser(id=user_id, role=Role(role))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown role '{role}'. Allowed values: {[r.value for r in Role]}"
        )


def get_acting_user(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> ActingUser:
    user = _build_user(x_user_id, x_user_role)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id / X-User-Role headers"
        )
    return user


def get_optional_user(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> Optional[ActingUser]:
    return _build_user(x_user_id, x_user_role)


def issue_service() -> IssueService:
    return get_issue_service()


def comment_service() -> CommentService:
    return get_comment_service()


def team_service() -> TeamService:
    return get_team_service()
