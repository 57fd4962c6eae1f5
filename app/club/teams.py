"""
Team Service
"""

from typing import Dict, Any, List

from loguru import logger

from database.supabase_client import ClubTable
from .errors import InvalidRequestError, NotFoundError
from .members.models import MemberKind
from .members.service import member_service, to_summary
from .models import TeamCreate, TeamUpdate, TeamResponse, TeamDetail


def _check_age_range(data: Dict[str, Any]) -> None:
    min_age, max_age = data.get("min_age"), data.get("max_age")
    if min_age is not None and max_age is not None and min_age > max_age:
        raise InvalidRequestError("teams.invalid_age_range")


class TeamService:
    """Team service"""

    def table(self, club_id: str) -> ClubTable:
        return ClubTable("teams", club_id)

    def _counts(self, club_id: str) -> Dict[str, Dict[str, int]]:
        counts: Dict[str, Dict[str, int]] = {}
        for kind, key in ((MemberKind.player, "player_count"), (MemberKind.coach, "coach_count")):
            for row in member_service.table(club_id, kind).list():
                team_id = row.get("team_id")
                if team_id:
                    team = counts.setdefault(team_id, {"player_count": 0, "coach_count": 0})
                    team[key] += 1
        return counts

    def list_teams(self, club_id: str) -> List[TeamResponse]:
        counts = self._counts(club_id)
        return [
            TeamResponse(**row, **counts.get(row["id"], {}))
            for row in self.table(club_id).list(order_by="name")
        ]

    def get_team(self, club_id: str, team_id: str) -> TeamDetail:
        """Team with its roster"""
        row = self.table(club_id).get(team_id)
        if not row:
            raise NotFoundError("errors.not_found", entity="Team")

        players = [to_summary(MemberKind.player, p)
                   for p in member_service.table(club_id, MemberKind.player).list(order_by="name", team_id=team_id)]
        coaches = [to_summary(MemberKind.coach, c)
                   for c in member_service.table(club_id, MemberKind.coach).list(order_by="name", team_id=team_id)]
        return TeamDetail(
            **row,
            player_count=len(players),
            coach_count=len(coaches),
            players=players,
            coaches=coaches,
        )

    def create_team(self, club_id: str, request: TeamCreate) -> TeamResponse:
        data = request.model_dump(mode="json")
        _check_age_range(data)
        row = self.table(club_id).insert(data)
        logger.info(f"Created team {row['id']} ({row['name']}) in club {club_id}")
        return TeamResponse(**row)

    def update_team(self, club_id: str, team_id: str, request: TeamUpdate) -> TeamResponse:
        table = self.table(club_id)
        current = table.get(team_id)
        if not current:
            raise NotFoundError("errors.not_found", entity="Team")

        data = request.model_dump(mode="json", exclude_unset=True)
        _check_age_range({**current, **data})
        updated = table.update(team_id, data) if data else current

        # members carry a denormalized team name
        if "name" in data:
            for kind in (MemberKind.player, MemberKind.coach):
                member_service.table(club_id, kind).update_where({"team_name": data["name"]}, team_id=team_id)

        counts = self._counts(club_id).get(team_id, {})
        return TeamResponse(**(updated or {**current, **data}), **counts)

    def delete_team(self, club_id: str, team_id: str) -> None:
        """Delete a team; its players and coaches become unassigned"""
        if not self.table(club_id).get(team_id):
            raise NotFoundError("errors.not_found", entity="Team")
        member_service.unassign_team(club_id, team_id)
        self.table(club_id).delete(team_id)
        logger.info(f"Deleted team {team_id} in club {club_id}")


team_service = TeamService()
