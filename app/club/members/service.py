"""
Member Service

CRUD for players, coaches, staff and socios plus the derived data the
club screens need (team names, missing data flags, member directory).
"""

from typing import Optional, List, Dict, Any

from fastapi import UploadFile
from loguru import logger
from pydantic import BaseModel

from database.supabase_client import ClubTable
from ..errors import NotFoundError
from ..storage import club_storage, build_path, read_upload
from .models import (
    DEFAULT_AVATAR,
    MEMBER_TABLES,
    MemberKind,
    MemberSummary,
    PaymentStatus,
)

NO_TEAM = "Sin equipo"

TUTOR_FIELDS = ["tutor_name", "tutor_last_name", "tutor_dni"]

REQUIRED_FIELDS = {
    MemberKind.player: [
        "birth_date", "dni", "address", "city", "postal_code",
        "tutor_email", "tutor_phone", "iban", "jersey_number", "monthly_fee",
    ],
    MemberKind.coach: [
        "birth_date", "dni", "address", "city", "postal_code",
        "email", "phone", "iban",
    ],
    MemberKind.staff: ["role", "email", "phone"],
    MemberKind.socio: ["email", "dni"],
}


def _is_blank(value: Any) -> bool:
    return value is None or value == "" or value == []


def missing_fields(kind: MemberKind, record: Dict[str, Any]) -> List[str]:
    """Required fields that are still empty for a member"""
    required = list(REQUIRED_FIELDS[MemberKind(kind)])
    if kind in (MemberKind.player, MemberKind.coach) and not record.get("is_own_tutor"):
        required += TUTOR_FIELDS
    return [f for f in required if _is_blank(record.get(f))]


def member_email(kind: MemberKind, record: Dict[str, Any]) -> Optional[str]:
    """Contact address: the tutor's for players, the member's otherwise"""
    if kind == MemberKind.player:
        return record.get("tutor_email") or record.get("email")
    return record.get("email")


def to_summary(kind: MemberKind, record: Dict[str, Any]) -> MemberSummary:
    return MemberSummary(
        id=record["id"],
        kind=kind,
        name=record.get("name") or "",
        last_name=record.get("last_name"),
        email=member_email(kind, record),
        team_id=record.get("team_id"),
        team_name=record.get("team_name"),
        avatar=record.get("avatar"),
        has_missing_data=bool(missing_fields(kind, record)),
    )


def with_flags(kind: MemberKind, record: Dict[str, Any]) -> Dict[str, Any]:
    missing = missing_fields(kind, record)
    return {**record, "kind": MemberKind(kind).value, "has_missing_data": bool(missing), "missing_fields": missing}


class MemberService:
    """Member service"""

    def table(self, club_id: str, kind: MemberKind) -> ClubTable:
        return ClubTable(MEMBER_TABLES[MemberKind(kind)], club_id)

    def resolve_team_name(self, club_id: str, team_id: Optional[str]) -> str:
        if not team_id:
            return NO_TEAM
        team = ClubTable("teams", club_id).get(team_id)
        if not team:
            raise NotFoundError("errors.not_found", entity="Team")
        return team.get("name") or NO_TEAM

    # =============================================
    # CRUD
    # =============================================

    def list_members(
        self,
        club_id: str,
        kind: MemberKind,
        team_id: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        filters = {"team_id": team_id} if team_id and kind in (MemberKind.player, MemberKind.coach) else {}
        rows = self.table(club_id, kind).list(order_by="name", **filters)
        return [with_flags(kind, r) for r in rows]

    def get_member(self, club_id: str, kind: MemberKind, member_id: str) -> Dict[str, Any]:
        record = self.table(club_id, kind).get(member_id)
        if not record:
            raise NotFoundError("errors.not_found", entity="Member")
        return with_flags(kind, record)

    def create_member(self, club_id: str, kind: MemberKind, payload: BaseModel) -> Dict[str, Any]:
        """
        Create a member.

        Players get the team name resolved, a placeholder avatar and a pending
        payment status; a player with a tutor email also gets a Family club user.
        """
        kind = MemberKind(kind)
        data = payload.model_dump(mode="json", exclude_none=True)

        if kind in (MemberKind.player, MemberKind.coach):
            data["team_name"] = self.resolve_team_name(club_id, data.get("team_id"))
        if kind != MemberKind.socio:
            data.setdefault("avatar", DEFAULT_AVATAR)
            data.setdefault("custom_fields", {})
            data["update_request_active"] = False
        if kind == MemberKind.player:
            data.setdefault("payment_status", PaymentStatus.pending.value)

        record = self.table(club_id, kind).insert(data)
        logger.info(f"Created {kind.value} {record['id']} in club {club_id}")

        if kind == MemberKind.player and record.get("tutor_email"):
            self._create_family_user(club_id, record)

        return with_flags(kind, record)

    def _create_family_user(self, club_id: str, player: Dict[str, Any]) -> None:
        tutor_name = " ".join(
            p for p in [player.get("tutor_name"), player.get("tutor_last_name")] if p
        )
        name = tutor_name or f"Familia de {player.get('name', '')}".strip()
        ClubTable("club_users", club_id).insert({
            "name": name,
            "email": player["tutor_email"],
            "role": "Family",
            "player_id": player["id"],
        })

    def update_member(
        self,
        club_id: str,
        kind: MemberKind,
        member_id: str,
        payload: BaseModel
    ) -> Dict[str, Any]:
        kind = MemberKind(kind)
        self.get_member(club_id, kind, member_id)

        data = payload.model_dump(mode="json", exclude_unset=True)
        if "team_id" in data and kind in (MemberKind.player, MemberKind.coach):
            data["team_name"] = self.resolve_team_name(club_id, data.get("team_id"))

        updated = self.table(club_id, kind).update(member_id, data) if data else None
        return with_flags(kind, updated) if updated else self.get_member(club_id, kind, member_id)

    def delete_member(self, club_id: str, kind: MemberKind, member_id: str) -> None:
        """Delete a member; a player's Family users and avatar go with it"""
        kind = MemberKind(kind)
        record = self.get_member(club_id, kind, member_id)

        self.table(club_id, kind).delete(member_id)
        if kind == MemberKind.player:
            removed = ClubTable("club_users", club_id).delete_where(player_id=member_id)
            if removed:
                logger.info(f"Removed {removed} family users linked to player {member_id}")
        if record.get("avatar_path"):
            club_storage.remove([record["avatar_path"]])

    # =============================================
    # Bulk / files
    # =============================================

    def assign_team(self, club_id: str, player_ids: List[str], team_id: Optional[str]) -> int:
        """Move players to a team (or unassign with None); returns the count updated"""
        team_name = self.resolve_team_name(club_id, team_id)
        table = self.table(club_id, MemberKind.player)
        updated = 0
        for player_id in player_ids:
            if table.update(player_id, {"team_id": team_id, "team_name": team_name}):
                updated += 1
        return updated

    def unassign_team(self, club_id: str, team_id: str) -> None:
        """Detach every player and coach from a deleted team"""
        for kind in (MemberKind.player, MemberKind.coach):
            self.table(club_id, kind).update_where(
                {"team_id": None, "team_name": NO_TEAM},
                team_id=team_id
            )

    async def upload_avatar(
        self,
        club_id: str,
        kind: MemberKind,
        member_id: str,
        file: UploadFile
    ) -> Dict[str, Any]:
        kind = MemberKind(kind)
        record = self.get_member(club_id, kind, member_id)
        content = await read_upload(file, image_only=True)

        path = build_path("club-avatars", club_id, file.filename, kind.value, member_id)
        url = club_storage.upload(path, content, file.content_type)
        updated = self.table(club_id, kind).update(member_id, {"avatar": url, "avatar_path": path})

        if record.get("avatar_path"):
            club_storage.remove([record["avatar_path"]])
        return with_flags(kind, updated or {**record, "avatar": url})

    # =============================================
    # Directory
    # =============================================

    def list_directory(self, club_id: str) -> List[MemberSummary]:
        """Players, coaches and staff in one list, sorted by name"""
        members = []
        for kind in (MemberKind.player, MemberKind.coach, MemberKind.staff):
            members.extend(to_summary(kind, r) for r in self.table(club_id, kind).list())
        return sorted(members, key=lambda m: (m.name.lower(), (m.last_name or "").lower()))

    def count_missing(self, club_id: str) -> int:
        return sum(1 for m in self.list_directory(club_id) if m.has_missing_data)


member_service = MemberService()
