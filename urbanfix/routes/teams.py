"""
Team endpoints - authorities manage the teams issues get assigned to.
"""

from fastapi import APIRouter, Depends, status
from typing import List

from urbanfix.models.team import TeamCreate, TeamResponse
from urbanfix.models.user import ActingUser
from urbanfix.routes.deps import get_acting_user, team_service
from urbanfix.services.team_service import TeamService

router = APIRouter(prefix="/teams", tags=["Teams"])


@router.get("", response_model=List[TeamResponse])
def list_teams(
    user: ActingUser = Depends(get_acting_user),
    service: TeamService = Depends(team_service),
):
    return service.list_teams(user)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=TeamResponse)
def create_team(
    request: TeamCreate,
    user: ActingUser = Depends(get_acting_user),
    service: TeamService = Depends(team_service),
):
    return service.create_team(request, user)


@router.get("/{team_id}", response_model=TeamResponse)
def get_team(
    team_id: str,
    user: ActingUser = Depends(get_acting_user),
    service: TeamService = Depends(team_service),
):
    return service.get_team(team_id)
