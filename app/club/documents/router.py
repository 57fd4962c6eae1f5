"""
Document Router

Club documents, essential documents checklist and file requests
"""

from typing import Optional, List

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from ..dependencies import ClubUserContext, require_admin, require_staff
from .file_requests import file_request_service
from .models import (
    DocumentCategory,
    EssentialDocStatus,
    EssentialDocToggle,
    FileRequestBatchResponse,
    FileRequestCreate,
    FileRequestSendResult,
)
from .service import document_service

router = APIRouter(prefix="/documents", tags=["Documents"])


# =============================================
# Documents
# =============================================

@router.get("")
async def list_documents(
    owner_id: Optional[str] = Query(None),
    user: ClubUserContext = Depends(require_staff)
):
    """Club documents, optionally for one member"""
    return document_service.list_documents(user.club_id, owner_id)


@router.post("", status_code=201)
async def upload_document(
    file: UploadFile = File(...),
    owner_id: str = Form(...),
    owner_name: str = Form(...),
    category: DocumentCategory = Form(DocumentCategory.other),
    name: Optional[str] = Form(None),
    user: ClubUserContext = Depends(require_admin)
):
    return await document_service.upload_document(
        user.club_id, file, owner_id, owner_name, category, name
    )


@router.delete("/{document_id}")
async def delete_document(document_id: str, user: ClubUserContext = Depends(require_admin)):
    document_service.delete_document(user.club_id, document_id)
    return {"success": True}


# =============================================
# Essential documents
# =============================================

@router.get("/essential", response_model=List[EssentialDocStatus])
async def get_essential_status(
    status: Optional[str] = Query(None, pattern="^(completed|pending)$"),
    user: ClubUserContext = Depends(require_staff)
):
    """
    Essential document checklist

    One row per player and coach with a flag per essential document.
    """
    return document_service.essential_status(user.club_id, status)


@router.post("/essential/toggle")
async def toggle_essential(toggle: EssentialDocToggle, user: ClubUserContext = Depends(require_admin)):
    present = document_service.toggle_essential(user.club_id, toggle)
    return {"success": True, "present": present}


# =============================================
# File requests
# =============================================

@router.post("/requests", response_model=FileRequestSendResult)
async def send_file_requests(request: FileRequestCreate, user: ClubUserContext = Depends(require_admin)):
    """
    Ask members for a document

    Each recipient gets a single-use upload link by email.
    """
    return await file_request_service.send_requests(user.club_id, request, user.locale)


@router.get("/requests", response_model=List[FileRequestBatchResponse])
async def get_file_request_history(user: ClubUserContext = Depends(require_staff)):
    return file_request_service.history(user.club_id)


@router.get("/requests/{batch_id}")
async def get_file_request_batch(batch_id: str, user: ClubUserContext = Depends(require_staff)):
    return file_request_service.list_batch_requests(user.club_id, batch_id)


@router.delete("/requests/{batch_id}")
async def delete_file_request_batch(batch_id: str, user: ClubUserContext = Depends(require_admin)):
    removed = file_request_service.delete_batch(user.club_id, batch_id)
    return {"success": True, "removed_requests": removed}
