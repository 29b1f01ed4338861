"""
Comment models. A comment belongs to exactly one issue and one author,
and carries its own moderation state.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from enum import Enum


class CommentStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    DECLINED = "Declined"


class CommentDecision(str, Enum):
    APPROVE = "Approve"
    DECLINE = "Decline"


class CommentCreate(BaseModel):
    """Model for creating a comment."""
    issue_id: str
    content: str = Field(..., max_length=1000)


class CommentDecisionRequest(BaseModel):
    decision: CommentDecision
    reason: Optional[str] = Field(None, max_length=500, description="Required when declining")


class CommentResponse(BaseModel):
    """Comment response model."""
    id: str
    issue_id: str
    content: str
    created_by: str
    status: CommentStatus = CommentStatus.PENDING
    reason: Optional[str] = None
    created_at: datetime
