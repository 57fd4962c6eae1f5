"""
Public Router

Routes reached from links sent by email or shared by the club. They take
no session; the token or form id in the path is the credential.
"""

from typing import Any, Dict

from fastapi import APIRouter, File, UploadFile

from .communications import data_update_service
from .communications.models import DataUpdateForm, DataUpdateSubmit
from .documents import file_request_service
from .documents.models import PublicFileRequest
from .registrations import registration_service
from .registrations.models import PublicRegistrationForm, SubmissionResponse
from .settings import settings_service

router = APIRouter(prefix="/public", tags=["Public"])


# =============================================
# File requests
# =============================================

@router.get("/upload/{token}", response_model=PublicFileRequest)
async def get_file_request(token: str):
    """Validate an upload link (410 when used or unknown)"""
    return file_request_service.get_public_request(token)


@router.post("/upload/{token}")
async def upload_requested_file(token: str, file: UploadFile = File(...)):
    document = await file_request_service.upload_by_token(token, file)
    return {"success": True, "document_id": document["id"]}


# =============================================
# Data update
# =============================================

@router.get("/update-data/{token}", response_model=DataUpdateForm)
async def get_data_update_form(token: str):
    """Fields the member may see and edit"""
    return data_update_service.get_form(token)


@router.post("/update-data/{token}")
async def submit_data_update(token: str, request: DataUpdateSubmit):
    data_update_service.submit(token, request.data)
    return {"success": True}


# =============================================
# Sender verification
# =============================================

@router.post("/verify-sender/{token}")
async def verify_sender(token: str):
    """Confirm a club sender address from the emailed link"""
    settings_service.confirm_sender(token)
    return {"success": True}


# =============================================
# Registration forms
# =============================================

@router.get("/forms/{form_id}", response_model=PublicRegistrationForm)
async def get_registration_form(form_id: str):
    return registration_service.get_public_form(form_id)


@router.post("/forms/{form_id}", response_model=SubmissionResponse, status_code=201)
async def submit_registration_form(form_id: str, data: Dict[str, Any]):
    """
    Submit a registration

    The body maps each field id to its value. Closed or full forms are
    rejected.
    """
    return registration_service.submit(form_id, data)
