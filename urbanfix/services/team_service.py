"""
Team Service - teams that authorities assign issues to.
"""

from urbanfix.core.errors import AuthorizationError, NotFoundError, ValidationError
from urbanfix.core.settings import settings
from urbanfix.models.team import TeamCreate
from urbanfix.models.user import ActingUser
from urbanfix.services.storage.base import TEAMS_COLLECTION, DocumentStore, Sequence
from urbanfix.services.storage.registry import get_document_store
from urbanfix.utils.identifiers import clean_text, ensure_identifier
from datetime import datetime, timezone
from typing import Dict, List, Optional
import logging

logger = logging.getLogger(__name__)


class TeamService:
    """Service for managing teams."""

    def __init__(self, store: DocumentStore):
        self.store = store
        self.sequence = Sequence("teams", "team_number", settings.TEAM_NUMBER_START)

    def create_team(self, team_data: TeamCreate, acting_user: ActingUser) -> Dict:
        if not acting_user.is_staff:
            raise AuthorizationError("Only authorities and admins can create teams")

        name = clean_text(team_data.name)
        if not name:
            raise ValidationError("Team name is required")

        members = [ensure_identifier(member, "user") for member in team_data.members]

        team = self.store.create(TEAMS_COLLECTION, {
            "name": name,
            "image_url": clean_text(team_data.image_url),
            "members": list(dict.fromkeys(members)),
            "created_by": acting_user.id,
            "created_at": datetime.now(timezone.utc),
        }, sequence=self.sequence)

        logger.info(f"✅ Team #{team['team_number']} '{name}' created by {acting_user.id}")
        return team

    def get_team(self, team_id: str) -> Dict:
        ensure_identifier(team_id, "team")
        team = self.store.get(TEAMS_COLLECTION, team_id)
        if team is None:
            raise NotFoundError(f"Team {team_id} not found")
        return team

    def list_teams(self, acting_user: ActingUser) -> List[Dict]:
        if not acting_user.is_staff:
            raise AuthorizationError("Only authorities and admins can list teams")
        teams = self.store.query(TEAMS_COLLECTION)
        teams.sort(key=lambda team: team.get("team_number", 0))
        return teams


# Global service instance
_team_service: Optional[TeamService] = None


def get_team_service() -> TeamService:
    """Get or create TeamService singleton."""
    global _team_service
    if _team_service is None:
        _team_service = TeamService(get_document_store())
    return _team_service
