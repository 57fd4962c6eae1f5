"""
Member Router

/club/members/players, /coaches, /staff and /socios share the same CRUD
routes, registered once per member kind.
"""

from typing import Optional, List, Type

from fastapi import APIRouter, Depends, File, Query, UploadFile
from pydantic import BaseModel

from ..dependencies import ClubUserContext, require_admin, require_staff
from ..importer import import_members
from ..storage import read_upload
from .models import (
    AssignTeamRequest,
    CREATE_MODELS,
    ImportResult,
    MemberKind,
    MemberSummary,
    UPDATE_MODELS,
)
from .service import member_service

router = APIRouter(prefix="/members", tags=["Members"])

KIND_PATHS = {
    MemberKind.player: "players",
    MemberKind.coach: "coaches",
    MemberKind.staff: "staff",
    MemberKind.socio: "socios",
}


@router.get("/directory", response_model=List[MemberSummary])
async def get_directory(user: ClubUserContext = Depends(require_staff)):
    """Players, coaches and staff with contact email and missing-data flag"""
    return member_service.list_directory(user.club_id)


@router.post("/players/assign-team")
async def assign_players_to_team(
    request: AssignTeamRequest,
    user: ClubUserContext = Depends(require_admin)
):
    """Move several players to a team at once (team_id null unassigns)"""
    updated = member_service.assign_team(user.club_id, request.player_ids, request.team_id)
    return {"success": True, "updated": updated}


@router.post("/import/{kind}", response_model=ImportResult)
async def import_csv(
    kind: MemberKind,
    file: UploadFile = File(...),
    user: ClubUserContext = Depends(require_admin)
):
    """
    Bulk import members from a CSV file

    The header row must begin with the columns expected for the member type.
    """
    content = await read_upload(file)
    imported = import_members(user.club_id, kind, content)
    return ImportResult(kind=kind, imported=imported)


def _register_member_routes(
    kind: MemberKind,
    create_model: Type[BaseModel],
    update_model: Type[BaseModel]
):
    path = f"/{KIND_PATHS[kind]}"

    async def list_members(
        team_id: Optional[str] = Query(None),
        user: ClubUserContext = Depends(require_staff)
    ):
        return member_service.list_members(user.club_id, kind, team_id)

    async def get_member(member_id: str, user: ClubUserContext = Depends(require_staff)):
        return member_service.get_member(user.club_id, kind, member_id)

    async def create_member(
        payload: create_model,
        user: ClubUserContext = Depends(require_admin)
    ):
        return member_service.create_member(user.club_id, kind, payload)

    async def update_member(
        member_id: str,
        payload: update_model,
        user: ClubUserContext = Depends(require_admin)
    ):
        return member_service.update_member(user.club_id, kind, member_id, payload)

    async def delete_member(member_id: str, user: ClubUserContext = Depends(require_admin)):
        member_service.delete_member(user.club_id, kind, member_id)
        return {"success": True}

    async def upload_avatar(
        member_id: str,
        file: UploadFile = File(...),
        user: ClubUserContext = Depends(require_admin)
    ):
        return await member_service.upload_avatar(user.club_id, kind, member_id, file)

    name = KIND_PATHS[kind]
    router.add_api_route(path, list_members, methods=["GET"], name=f"list_{name}")
    router.add_api_route(f"{path}/{{member_id}}", get_member, methods=["GET"], name=f"get_{name}")
    router.add_api_route(path, create_member, methods=["POST"], status_code=201, name=f"create_{name}")
    router.add_api_route(f"{path}/{{member_id}}", update_member, methods=["PATCH"], name=f"update_{name}")
    router.add_api_route(f"{path}/{{member_id}}", delete_member, methods=["DELETE"], name=f"delete_{name}")
    if kind != MemberKind.socio:
        router.add_api_route(
            f"{path}/{{member_id}}/avatar", upload_avatar, methods=["POST"], name=f"avatar_{name}"
        )


for _kind in MemberKind:
    _register_member_routes(_kind, CREATE_MODELS[_kind], UPDATE_MODELS[_kind])
