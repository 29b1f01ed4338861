"""
Comment endpoints.
"""

from fastapi import APIRouter, Depends, status

from urbanfix.models.base import BaseResponse
from urbanfix.models.comment import CommentCreate, CommentResponse
from urbanfix.models.user import ActingUser
from urbanfix.routes.deps import comment_service, get_acting_user
from urbanfix.services.comment_service import CommentService

router = APIRouter(prefix="/comments", tags=["Comments"])


class CommentMutationResponse(BaseResponse):
    comment: CommentResponse


@router.post("", status_code=status.HTTP_201_CREATED, response_model=CommentMutationResponse)
def post_comment(
    request: CommentCreate,
    user: ActingUser = Depends(get_acting_user),
    service: CommentService = Depends(comment_service),
):
    """
    Add a comment to someone else's issue.
    The comment stays Pending until an admin approves it.
    """
    comment = service.add_comment(request.issue_id, request.content, user)
    return {"message": "successfully commented!", "comment": comment}
