"""
Registration Form Router
"""

from typing import List

from fastapi import APIRouter, Depends

from ..dependencies import ClubUserContext, require_admin, require_staff
from .models import (
    RegistrationFormCreate,
    RegistrationFormResponse,
    RegistrationFormUpdate,
    SubmissionResponse,
)
from .service import registration_service

router = APIRouter(prefix="/registrations", tags=["Registrations"])


@router.get("", response_model=List[RegistrationFormResponse])
async def list_forms(user: ClubUserContext = Depends(require_staff)):
    return registration_service.list_forms(user.club_id)


@router.post("", response_model=RegistrationFormResponse, status_code=201)
async def create_form(request: RegistrationFormCreate, user: ClubUserContext = Depends(require_admin)):
    """
    Create a registration form

    The status (active/closed) follows the registration dates.
    """
    return registration_service.create_form(user.club_id, request)


@router.get("/{form_id}", response_model=RegistrationFormResponse)
async def get_form(form_id: str, user: ClubUserContext = Depends(require_staff)):
    return registration_service.to_response(registration_service.get_form(user.club_id, form_id))


@router.patch("/{form_id}", response_model=RegistrationFormResponse)
async def update_form(
    form_id: str,
    request: RegistrationFormUpdate,
    user: ClubUserContext = Depends(require_admin)
):
    return registration_service.update_form(user.club_id, form_id, request)


@router.delete("/{form_id}")
async def delete_form(form_id: str, user: ClubUserContext = Depends(require_admin)):
    registration_service.delete_form(user.club_id, form_id)
    return {"success": True}


@router.get("/{form_id}/submissions", response_model=List[SubmissionResponse])
async def list_submissions(form_id: str, user: ClubUserContext = Depends(require_staff)):
    return registration_service.list_submissions(user.club_id, form_id)
