"""
File Requests

A club asks members for a document; each recipient gets a single-use link
(the request id is the token) to upload one file without signing in.

Token lifecycle: pending -> completed
"""

import uuid
from datetime import datetime, timezone
from typing import List, Dict, Any

from fastapi import UploadFile
from loguru import logger

from app.config import dispatch_config
from app.i18n import translate
from database.supabase_client import ClubTable, get_supabase_client
from ..communications.mailer import OutgoingMail, club_transport
from ..errors import InvalidRequestError, InvalidTokenError, NotFoundError
from ..settings import settings_service
from ..storage import club_storage, build_path, read_upload
from .models import (
    DocumentCategory,
    FileRequestBatchResponse,
    FileRequestCreate,
    FileRequestSendResult,
    FileRequestStatus,
    PublicFileRequest,
)


def upload_link(token: str) -> str:
    return f"{dispatch_config.public_base_url.rstrip('/')}/upload/{token}"


class FileRequestService:
    """File request service"""

    def batches(self, club_id: str) -> ClubTable:
        return ClubTable("file_request_batches", club_id)

    def requests(self, club_id: str) -> ClubTable:
        return ClubTable("file_requests", club_id)

    async def send_requests(
        self,
        club_id: str,
        request: FileRequestCreate,
        locale: str = "es"
    ) -> FileRequestSendResult:
        """
        Create the batch and one token per recipient, then email the links.

        Recipients whose email fails keep their pending request and are
        reported back by name.
        """
        recipients = [r for r in request.recipients if r.email]
        if not recipients:
            raise InvalidRequestError("mail.no_recipients")

        transport = club_transport(club_id)
        club_name = transport.sender.club_name

        batch = self.batches(club_id).insert({
            "document_title": request.document_title,
            "message": request.message,
            "total_sent": 0,
        })

        rows = [{
            "id": str(uuid.uuid4()),
            "batch_id": batch["id"],
            "user_id": r.id,
            "user_type": r.type.value,
            "user_name": r.name,
            "email": r.email,
            "document_title": request.document_title,
            "message": request.message,
            "status": FileRequestStatus.pending.value,
        } for r in recipients]
        self.requests(club_id).insert_many(rows)

        subject = translate("files.request_subject", locale, title=request.document_title)
        mails = [OutgoingMail(
            to=row["email"],
            subject=subject,
            html=translate(
                "files.request_body",
                locale,
                name=row["user_name"],
                club_name=club_name,
                title=request.document_title,
                message=request.message or "",
                link=upload_link(row["id"]),
            ),
            recipient_id=row["id"],
        ) for row in rows]

        results = await transport.send_bulk(mails)
        sent = sum(1 for r in results if r.success)
        failed_ids = {r.recipient_id for r in results if not r.success}

        self.batches(club_id).update(batch["id"], {"total_sent": sent})
        logger.info(f"File request '{request.document_title}' sent to {sent}/{len(rows)} members of club {club_id}")

        return FileRequestSendResult(
            batch_id=batch["id"],
            sent=sent,
            failed=[row["user_name"] for row in rows if row["id"] in failed_ids],
        )

    def history(self, club_id: str) -> List[FileRequestBatchResponse]:
        """Batches newest first with their completed request counts"""
        batches = self.batches(club_id).list(order_by="created_at", desc=True)
        completed = self.requests(club_id).list(status=FileRequestStatus.completed.value)

        counts: Dict[str, int] = {}
        for row in completed:
            counts[row["batch_id"]] = counts.get(row["batch_id"], 0) + 1

        return [FileRequestBatchResponse(
            id=b["id"],
            document_title=b.get("document_title", ""),
            message=b.get("message"),
            total_sent=b.get("total_sent") or 0,
            completed_count=counts.get(b["id"], 0),
            created_at=b.get("created_at"),
        ) for b in batches]

    def list_batch_requests(self, club_id: str, batch_id: str) -> List[Dict[str, Any]]:
        return self.requests(club_id).list(batch_id=batch_id, order_by="user_name")

    def delete_batch(self, club_id: str, batch_id: str) -> int:
        """Delete a batch and all of its requests; returns the requests removed"""
        if not self.batches(club_id).get(batch_id):
            raise NotFoundError("errors.not_found", entity="File request batch")
        removed = self.requests(club_id).delete_where(batch_id=batch_id)
        self.batches(club_id).delete(batch_id)
        return removed

    # =============================================
    # Public (token) access
    # =============================================

    def _pending_request(self, token: str) -> Dict[str, Any]:
        result = get_supabase_client().table("file_requests").select("*").eq(
            "id", token
        ).limit(1).execute()
        if not result.data or result.data[0].get("status") != FileRequestStatus.pending.value:
            raise InvalidTokenError("token.invalid")
        return result.data[0]

    def get_public_request(self, token: str) -> PublicFileRequest:
        request = self._pending_request(token)
        club = settings_service.get_club(request["club_id"])
        return PublicFileRequest(
            token=token,
            document_title=request.get("document_title", ""),
            message=request.get("message"),
            user_name=request.get("user_name", ""),
            club_name=club.get("name") or "",
            club_logo_url=club.get("logo_url"),
        )

    async def upload_by_token(self, token: str, file: UploadFile) -> Dict[str, Any]:
        """
        Store the uploaded file for a pending request.

        The request is claimed with a conditional update on status=pending,
        so a token can complete only once.
        """
        request = self._pending_request(token)
        content = await read_upload(file)

        club_id = request["club_id"]
        path = build_path("club-documents", club_id, file.filename, request["user_id"])
        url = club_storage.upload(path, content, file.content_type)

        claimed = get_supabase_client().table("file_requests").update({
            "status": FileRequestStatus.completed.value,
            "completed_at": datetime.now(timezone.utc).isoformat(),
            "file_path": path,
        }).eq("id", token).eq("status", FileRequestStatus.pending.value).execute()

        if not claimed.data:
            club_storage.remove([path])
            raise InvalidTokenError("token.invalid")

        try:
            document = ClubTable("documents", club_id).insert({
                "name": request.get("document_title") or file.filename,
                "path": path,
                "url": url,
                "category": DocumentCategory.other.value,
                "owner_id": request["user_id"],
                "owner_name": request.get("user_name"),
            })
        except Exception:
            # reopen the link so the member can upload again
            get_supabase_client().table("file_requests").update({
                "status": FileRequestStatus.pending.value,
                "completed_at": None,
                "file_path": None,
            }).eq("id", token).execute()
            club_storage.remove([path])
            raise
        logger.info(f"File request {token} completed by {request.get('user_name')}")
        return document


file_request_service = FileRequestService()
