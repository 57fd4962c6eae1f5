"""
Incident log and club protocols
"""

from typing import Dict, Any, List

from fastapi import UploadFile
from loguru import logger

from database.supabase_client import ClubTable
from .errors import NotFoundError
from .models import (
    IncidentCreate,
    IncidentUpdate,
    IncidentResponse,
    IncidentStatus,
    ProtocolResponse,
)
from .storage import build_path, club_storage, read_upload


class IncidentService:
    """Incidents and protocol documents"""

    def incidents(self, club_id: str) -> ClubTable:
        return ClubTable("incidents", club_id)

    def protocols(self, club_id: str) -> ClubTable:
        return ClubTable("protocols", club_id)

    # =============================================
    # Incidents
    # =============================================

    def list_incidents(self, club_id: str) -> List[IncidentResponse]:
        rows = self.incidents(club_id).list(order_by="date", desc=True)
        return [IncidentResponse(**r) for r in rows]

    def create_incident(self, club_id: str, request: IncidentCreate) -> IncidentResponse:
        row = self.incidents(club_id).insert(request.model_dump(mode="json"))
        return IncidentResponse(**row)

    def update_incident(self, club_id: str, incident_id: str, request: IncidentUpdate) -> IncidentResponse:
        table = self.incidents(club_id)
        current = table.get(incident_id)
        if not current:
            raise NotFoundError("errors.not_found", entity="Incident")

        data = request.model_dump(mode="json", exclude_unset=True)
        updated = table.update(incident_id, data) if data else current
        return IncidentResponse(**(updated or {**current, **data}))

    def delete_incident(self, club_id: str, incident_id: str) -> None:
        if not self.incidents(club_id).delete(incident_id):
            raise NotFoundError("errors.not_found", entity="Incident")

    def count_open(self, club_id: str) -> int:
        return self.incidents(club_id).count(status=IncidentStatus.open.value)

    # =============================================
    # Protocols
    # =============================================

    def list_protocols(self, club_id: str) -> List[ProtocolResponse]:
        rows = self.protocols(club_id).list(order_by="created_at", desc=True)
        return [ProtocolResponse(**r) for r in rows]

    async def upload_protocol(self, club_id: str, file: UploadFile) -> ProtocolResponse:
        content = await read_upload(file)
        path = build_path("club-protocols", club_id, file.filename)
        url = club_storage.upload(path, content, file.content_type)

        row = self.protocols(club_id).insert({
            "name": file.filename or path.rsplit("/", 1)[-1],
            "url": url,
            "path": path,
        })
        logger.info(f"Uploaded protocol {row['id']} for club {club_id}")
        return ProtocolResponse(**row)

    def delete_protocol(self, club_id: str, protocol_id: str) -> None:
        """Remove the stored file, then the record"""
        table = self.protocols(club_id)
        row: Dict[str, Any] = table.get(protocol_id)
        if not row:
            raise NotFoundError("errors.not_found", entity="Protocol")
        club_storage.remove([row["path"]])
        table.delete(protocol_id)


incident_service = IncidentService()
