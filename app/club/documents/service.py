"""
Document Service

Club documents per member and the essential-documents checklist.
"""

from typing import Optional, List, Dict, Any

from fastapi import UploadFile
from loguru import logger

from database.supabase_client import ClubTable
from ..errors import NotFoundError
from ..members.models import MemberKind
from ..members.service import member_service
from ..settings import settings_service
from ..storage import club_storage, build_path, read_upload
from .models import DocumentCategory, EssentialDocStatus, EssentialDocToggle


def matches_essential(document: Dict[str, Any], doc_name: str) -> bool:
    """Whether an uploaded document counts as the named essential document"""
    wanted = doc_name.lower()
    category = document.get("category")
    name = (document.get("name") or "").lower()
    return (
        (category == DocumentCategory.essential_manual.value and document.get("name") == doc_name)
        or (category == DocumentCategory.identification.value and "dni" in wanted)
        or (category == DocumentCategory.medical.value and "médico" in wanted)
        or wanted[:5] in name
    )


def find_essential(documents: List[Dict[str, Any]], doc_name: str) -> Optional[Dict[str, Any]]:
    for document in documents:
        if matches_essential(document, doc_name):
            return document
    return None


class DocumentService:
    """Document service"""

    def table(self, club_id: str) -> ClubTable:
        return ClubTable("documents", club_id)

    def list_documents(self, club_id: str, owner_id: Optional[str] = None) -> List[Dict[str, Any]]:
        filters = {"owner_id": owner_id} if owner_id else {}
        return self.table(club_id).list(order_by="created_at", desc=True, **filters)

    async def upload_document(
        self,
        club_id: str,
        file: UploadFile,
        owner_id: str,
        owner_name: str,
        category: DocumentCategory = DocumentCategory.other,
        name: Optional[str] = None
    ) -> Dict[str, Any]:
        content = await read_upload(file)
        path = build_path("club-documents", club_id, file.filename, owner_id)
        url = club_storage.upload(path, content, file.content_type)

        return self.table(club_id).insert({
            "name": name or file.filename,
            "path": path,
            "url": url,
            "category": DocumentCategory(category).value,
            "owner_id": owner_id,
            "owner_name": owner_name,
        })

    def delete_document(self, club_id: str, document_id: str) -> None:
        document = self.table(club_id).get(document_id)
        if not document:
            raise NotFoundError("errors.not_found", entity="Document")
        if document.get("category") != DocumentCategory.essential_manual.value:
            club_storage.remove([document.get("path")])
        self.table(club_id).delete(document_id)

    # =============================================
    # Essential documents
    # =============================================

    def essential_status(self, club_id: str, status_filter: Optional[str] = None) -> List[EssentialDocStatus]:
        """
        Essential document checklist for every player and coach.

        status_filter: "completed" keeps members with every document,
        "pending" keeps members missing at least one.
        """
        essential_docs = settings_service.get_settings(club_id).get("essential_docs") or []

        by_owner: Dict[str, List[Dict[str, Any]]] = {}
        for document in self.table(club_id).list():
            by_owner.setdefault(document.get("owner_id"), []).append(document)

        statuses = []
        for kind in (MemberKind.player, MemberKind.coach):
            for member in member_service.table(club_id, kind).list(order_by="name"):
                owned = by_owner.get(member["id"], [])
                docs = {name: find_essential(owned, name) is not None for name in essential_docs}
                statuses.append(EssentialDocStatus(
                    member_id=member["id"],
                    member_name=f"{member.get('name', '')} {member.get('last_name') or ''}".strip(),
                    kind=kind,
                    team_name=member.get("team_name"),
                    documents=docs,
                    completed=all(docs.values()),
                ))

        if status_filter == "completed":
            return [s for s in statuses if s.completed]
        if status_filter == "pending":
            return [s for s in statuses if not s.completed]
        return statuses

    def toggle_essential(self, club_id: str, toggle: EssentialDocToggle) -> bool:
        """Mark an essential document as present (marker record) or absent"""
        owned = self.list_documents(club_id, owner_id=toggle.member_id)
        existing = find_essential(owned, toggle.doc_name)

        if toggle.present and not existing:
            self.table(club_id).insert({
                "name": toggle.doc_name,
                "path": f"manual_override/{toggle.member_id}/{toggle.doc_name}",
                "category": DocumentCategory.essential_manual.value,
                "owner_id": toggle.member_id,
                "owner_name": toggle.member_name,
            })
        elif not toggle.present and existing:
            self.table(club_id).delete(existing["id"])
            logger.info(f"Essential document '{toggle.doc_name}' cleared for {toggle.member_id}")
        return toggle.present


document_service = DocumentService()
