"""
Communication Router

Direct emails, AI drafted templates and data update batches
"""

from typing import List

from fastapi import APIRouter, Depends

from ..dependencies import ClubUserContext, require_admin, require_staff
from .batches import email_batch_service
from .mailer import OutgoingMail, club_transport, text_to_html
from .models import (
    DirectEmailRequest,
    DirectEmailResult,
    EmailBatchCreate,
    EmailBatchResponse,
    ProcessResult,
    TemplateRequest,
    TemplateResponse,
)
from .templates import TemplateGenerator

router = APIRouter(prefix="/communications", tags=["Communications"])


@router.post("/send", response_model=DirectEmailResult)
async def send_email(request: DirectEmailRequest, user: ClubUserContext = Depends(require_staff)):
    """
    Send an email to the selected recipients

    Line breaks in the body are kept. Each recipient gets their own message.
    """
    transport = club_transport(user.club_id)
    html = text_to_html(request.body)
    results = await transport.send_bulk([
        OutgoingMail(to=str(email), subject=request.subject, html=html, text=request.body)
        for email in dict.fromkeys(request.recipients)
    ])
    return DirectEmailResult(
        sent=sum(1 for r in results if r.success),
        failed=[r.to for r in results if not r.success],
    )


@router.post("/templates", response_model=TemplateResponse)
async def generate_template(request: TemplateRequest, user: ClubUserContext = Depends(require_staff)):
    """Draft a subject and body with Gemini"""
    return await TemplateGenerator().generate(request)


# =============================================
# Data update batches
# =============================================

@router.post("/batches", response_model=EmailBatchResponse, status_code=201)
async def create_batch(request: EmailBatchCreate, user: ClubUserContext = Depends(require_admin)):
    """
    Queue a data update request

    The batch is created pending; call /process (or wait for the scheduler)
    to send it.
    """
    return email_batch_service.create_batch(user.club_id, request, user.locale)


@router.get("/batches", response_model=List[EmailBatchResponse])
async def list_batches(user: ClubUserContext = Depends(require_staff)):
    return email_batch_service.list_batches(user.club_id)


@router.get("/batches/{batch_id}")
async def get_batch(batch_id: str, user: ClubUserContext = Depends(require_staff)):
    """Batch with per-recipient status"""
    row = email_batch_service.get_batch(user.club_id, batch_id)
    return {
        **email_batch_service.to_response(row).model_dump(mode="json"),
        "recipients": row.get("recipients") or [],
    }


@router.post("/batches/process", response_model=ProcessResult)
async def process_next_batch(user: ClubUserContext = Depends(require_admin)):
    """Process the oldest pending batch"""
    return await email_batch_service.process_batch(user.club_id)


@router.post("/batches/{batch_id}/process", response_model=ProcessResult)
async def process_batch(batch_id: str, user: ClubUserContext = Depends(require_admin)):
    return await email_batch_service.process_batch(user.club_id, batch_id)


@router.post("/batches/{batch_id}/retry", response_model=ProcessResult)
async def retry_batch(batch_id: str, user: ClubUserContext = Depends(require_admin)):
    """Resend to the recipients that failed"""
    return await email_batch_service.retry_batch(user.club_id, batch_id)
