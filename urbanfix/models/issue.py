"""
Pydantic models for citizen issues.
These models handle validation for issue submission, workflow requests and responses.

Required-field checks (address, at least one content signal) live in the
lifecycle service so that every caller gets the same ValidationError,
not only HTTP clients.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List, Dict
from enum import Enum


class Category(str, Enum):
    """Storable issue categories. Anything else is stored as unclassified (null)."""
    ROAD_MAINTENANCE = "Road Maintenance"
    WASTE_DISPOSAL = "Waste Disposal"
    STREETLIGHT_MAINTENANCE = "Streetlight Maintenance"


class Priority(str, Enum):
    CRITICAL = "Critical"
    MODERATE = "Moderate"
    LOW = "Low"


class WorkStatus(str, Enum):
    """Operational progress of resolving an issue."""
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"
    CLOSED = "Closed"  # Terminal


class VisibilityState(str, Enum):
    """Admin moderation state, independent of work status."""
    REVIEW = "Review"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class ModerationDecision(str, Enum):
    APPROVE = "Approve"
    REJECT = "Reject"


class IssueCreate(BaseModel):
    """
    Model for submitting a new issue (incoming POST request).
    photo_url / audio_url are references returned by the media storage service.
    """
    description: Optional[str] = Field(None, max_length=2000, description="What the citizen observed")
    address: Optional[str] = Field(None, max_length=500, description="Where the issue is (free text)")
    photo_url: Optional[str] = Field(None, max_length=2048, description="Reference to an uploaded photo")
    audio_url: Optional[str] = Field(None, max_length=2048, description="Reference to an uploaded audio note")

    class Config:
        json_schema_extra = {
            "example": {
                "description": "Urgent pothole on 5th Ave near the school gate",
                "address": "5th Ave",
                "photo_url": "https://media.example.com/issues/pothole.jpg",
            }
        }


class ClassifyRequest(BaseModel):
    """Classification preview request (nothing is persisted)."""
    description: Optional[str] = Field(None, max_length=2000)
    address: Optional[str] = Field(None, max_length=500)
    audio_url: Optional[str] = Field(None, max_length=2048)


class StatusUpdateRequest(BaseModel):
    """Request to change the work status of an issue."""
    status: str = Field(..., description="One of Pending, In Progress, Resolved, Closed")
    note: Optional[str] = Field(None, max_length=500, description="Optional note explaining the change")


class TeamAssignRequest(BaseModel):
    team_id: str = Field(..., description="Team to assign")


class VisibilityDecisionRequest(BaseModel):
    """Admin moderation decision for an issue."""
    decision: ModerationDecision
    reason: Optional[str] = Field(None, max_length=500, description="Required when rejecting")


class ClassificationResponse(BaseModel):
    category: Optional[str] = None
    priority: str
    transcription: Optional[str] = None
    provider: Optional[str] = None
    model: Optional[str] = None
    fallback_used: bool = False


class IssueResponse(BaseModel):
    """
    Model for issue responses (what API returns).
    upvote_count is always derived from the upvoter set.
    """
    id: str = Field(..., description="Document ID")
    issue_number: int
    description: Optional[str] = None
    address: str
    photo_url: Optional[str] = None
    audio_url: Optional[str] = None
    transcription: Optional[str] = None
    category: Optional[Category] = Field(None, description="null when the issue is unclassified")
    priority: Priority = Priority.MODERATE
    status: WorkStatus = WorkStatus.PENDING
    visibility: VisibilityState = VisibilityState.REVIEW
    reason: Optional[str] = None
    created_by: str
    team_id: Optional[str] = None
    upvoters: List[str] = Field(default_factory=list)
    upvote_count: int = 0
    classification: Dict = Field(default_factory=dict)
    status_history: List[Dict] = Field(default_factory=list)
    comments: Optional[List[Dict]] = None
    suggested_statuses: Optional[List[str]] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        json_schema_extra = {
            "example": {
                "id": "Yx8KpQ2mLr5TnW0aBcDe",
                "issue_number": 1000,
                "description": "Urgent pothole on 5th Ave near the school gate",
                "address": "5th Ave",
                "category": "Road Maintenance",
                "priority": "Critical",
                "status": "Pending",
                "visibility": "Review",
                "created_by": "citizen-42",
                "upvoters": [],
                "upvote_count": 0,
                "created_at": "2024-01-15T10:30:00Z",
            }
        }


class IssuePage(BaseModel):
    """Paginated public listing."""
    data: List[IssueResponse]
    total_pages: int
    current_page: int
    total_count: int
