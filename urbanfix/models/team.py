"""
Team models. Teams are the units authorities assign issues to.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List


class TeamCreate(BaseModel):
    name: str = Field(..., max_length=100)
    image_url: Optional[str] = Field(None, max_length=2048)
    members: List[str] = Field(default_factory=list, description="User IDs of team members")


class TeamResponse(BaseModel):
    id: str
    team_number: int
    name: str
    image_url: Optional[str] = None
    members: List[str] = Field(default_factory=list)
    created_by: str
    created_at: datetime
