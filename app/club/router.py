"""
Club Management Router

Main router for the club management API
- Dashboard
- Settings and club users
- Teams, incidents and protocols
- Members, documents, communications, registrations and treasury (sub-routers)
"""

from typing import List
from fastapi import APIRouter, Depends, File, UploadFile

from app.i18n import translate
from database.supabase_client import ClubTable
from .communications.models import BatchStatus
from .communications.router import router as communications_router
from .dependencies import ClubUserContext, get_current_club_user, require_admin, require_staff
from .documents.models import FileRequestStatus
from .documents.router import router as documents_router
from .incidents import incident_service
from .members.models import MemberKind, PaymentStatus
from .members.router import router as members_router
from .members.service import member_service
from .models import (
    ClubDashboard,
    ClubSettingsResponse,
    ClubUserCreate,
    ClubUserCreated,
    ClubUserResponse,
    ClubUserUpdate,
    CustomField,
    CustomFieldCreate,
    DashboardAlert,
    EssentialDocsUpdate,
    GeneralSettingsUpdate,
    IncidentCreate,
    IncidentResponse,
    IncidentUpdate,
    MailSettingsUpdate,
    ProtocolResponse,
    TeamCreate,
    TeamDetail,
    TeamResponse,
    TeamUpdate,
)
from .registrations.models import FormStatus
from .registrations.router import router as registrations_router
from .schedules.router import router as schedules_router
from .settings import settings_service
from .teams import team_service
from .treasury.router import router as treasury_router
from .users import club_user_service

router = APIRouter(prefix="/club", tags=["Club Management"])

router.include_router(members_router)
router.include_router(documents_router)
router.include_router(communications_router)
router.include_router(registrations_router)
router.include_router(treasury_router)
router.include_router(schedules_router)


# =============================================
# Dashboard
# =============================================

@router.get("/dashboard", response_model=ClubDashboard)
async def get_dashboard(user: ClubUserContext = Depends(require_staff)):
    """
    Club dashboard

    Member and team counts, open incidents, pending work and alerts.
    """
    club_id = user.club_id
    club = settings_service.get_club(club_id)

    counts = {
        kind: member_service.table(club_id, kind).count()
        for kind in MemberKind
    }
    missing = member_service.count_missing(club_id)
    overdue = member_service.table(club_id, MemberKind.player).count(
        payment_status=PaymentStatus.overdue.value
    )

    alerts = []
    if missing:
        alerts.append(DashboardAlert(
            alert_type="missing_data",
            message=translate("dashboard.missing_data", user.locale, count=missing),
            count=missing
        ))
    if overdue:
        alerts.append(DashboardAlert(
            alert_type="overdue_fees",
            message=translate("dashboard.overdue_fees", user.locale, count=overdue),
            count=overdue
        ))

    settings = settings_service.get_response(club_id)
    if not (settings.smtp_configured or settings.sendpulse_configured):
        alerts.append(DashboardAlert(
            alert_type="mail_not_configured",
            message=translate("dashboard.mail_not_configured", user.locale)
        ))

    return ClubDashboard(
        club_id=club_id,
        club_name=club.get("name") or "",
        player_count=counts[MemberKind.player],
        coach_count=counts[MemberKind.coach],
        staff_count=counts[MemberKind.staff],
        socio_count=counts[MemberKind.socio],
        team_count=team_service.table(club_id).count(),
        open_incidents=incident_service.count_open(club_id),
        missing_data_count=missing,
        pending_file_requests=ClubTable("file_requests", club_id).count(
            status=FileRequestStatus.pending.value
        ),
        active_registration_forms=ClubTable("registration_forms", club_id).count(
            status=FormStatus.active.value
        ),
        pending_email_batches=ClubTable("email_batches", club_id).count(
            status=BatchStatus.pending.value
        ),
        alerts=alerts
    )


# =============================================
# Settings
# =============================================

@router.get("/settings", response_model=ClubSettingsResponse)
async def get_settings(user: ClubUserContext = Depends(get_current_club_user)):
    """Club settings (secrets are reported only as *_configured flags)"""
    return settings_service.get_response(user.club_id)


@router.patch("/settings/general", response_model=ClubSettingsResponse)
async def update_general_settings(
    update: GeneralSettingsUpdate,
    user: ClubUserContext = Depends(require_admin)
):
    return settings_service.update_general(user.club_id, update)


@router.put("/settings/mail", response_model=ClubSettingsResponse)
async def update_mail_settings(
    update: MailSettingsUpdate,
    user: ClubUserContext = Depends(require_admin)
):
    """
    Outbound mail credentials

    Leaving a password or secret blank keeps the stored one.
    """
    return settings_service.update_mail(user.club_id, update)


@router.post("/settings/sender-verification", response_model=ClubSettingsResponse)
async def request_sender_verification(user: ClubUserContext = Depends(require_admin)):
    """Email a confirmation link to the sender address"""
    return await settings_service.request_sender_verification(user.club_id, user.locale)


@router.post("/settings/logo", response_model=ClubSettingsResponse)
async def upload_logo(
    file: UploadFile = File(...),
    user: ClubUserContext = Depends(require_admin)
):
    """Club logo (image, 10MB max); replaces the previous one"""
    return await settings_service.upload_logo(user.club_id, file)


@router.post("/settings/custom-fields", response_model=List[CustomField], status_code=201)
async def add_custom_field(
    field: CustomFieldCreate,
    user: ClubUserContext = Depends(require_admin)
):
    return settings_service.add_custom_field(user.club_id, field)


@router.delete("/settings/custom-fields/{field_id}", response_model=List[CustomField])
async def remove_custom_field(field_id: str, user: ClubUserContext = Depends(require_admin)):
    return settings_service.remove_custom_field(user.club_id, field_id)


@router.put("/settings/essential-docs", response_model=List[str])
async def set_essential_docs(
    update: EssentialDocsUpdate,
    user: ClubUserContext = Depends(require_admin)
):
    return settings_service.set_essential_docs(user.club_id, update.essential_docs)


# =============================================
# Club users
# =============================================

@router.get("/users", response_model=List[ClubUserResponse])
async def list_club_users(user: ClubUserContext = Depends(require_admin)):
    return club_user_service.list_users(user.club_id)


@router.post("/users", response_model=ClubUserCreated, status_code=201)
async def create_club_user(request: ClubUserCreate, user: ClubUserContext = Depends(require_admin)):
    """Create a sign-in account; the generated password is only returned here"""
    return club_user_service.create_user(user.club_id, request)


@router.patch("/users/{user_id}", response_model=ClubUserResponse)
async def update_club_user(
    user_id: str,
    request: ClubUserUpdate,
    user: ClubUserContext = Depends(require_admin)
):
    """Rename a user or change their role (not your own role)"""
    return club_user_service.update_user(user.club_id, user_id, request, user.user_id)


@router.delete("/users/{user_id}")
async def delete_club_user(user_id: str, user: ClubUserContext = Depends(require_admin)):
    club_user_service.delete_user(user.club_id, user_id, user.user_id)
    return {"success": True}


# =============================================
# Teams
# =============================================

@router.get("/teams", response_model=List[TeamResponse])
async def list_teams(user: ClubUserContext = Depends(get_current_club_user)):
    """Teams with player and coach counts"""
    return team_service.list_teams(user.club_id)


@router.post("/teams", response_model=TeamResponse, status_code=201)
async def create_team(request: TeamCreate, user: ClubUserContext = Depends(require_admin)):
    return team_service.create_team(user.club_id, request)


@router.get("/teams/{team_id}", response_model=TeamDetail)
async def get_team(team_id: str, user: ClubUserContext = Depends(require_staff)):
    """Team detail with its players and coaches"""
    return team_service.get_team(user.club_id, team_id)


@router.patch("/teams/{team_id}", response_model=TeamResponse)
async def update_team(
    team_id: str,
    request: TeamUpdate,
    user: ClubUserContext = Depends(require_admin)
):
    return team_service.update_team(user.club_id, team_id, request)


@router.delete("/teams/{team_id}")
async def delete_team(team_id: str, user: ClubUserContext = Depends(require_admin)):
    """Delete a team; its members are left without a team"""
    team_service.delete_team(user.club_id, team_id)
    return {"success": True}


# =============================================
# Incidents
# =============================================

@router.get("/incidents", response_model=List[IncidentResponse])
async def list_incidents(user: ClubUserContext = Depends(require_staff)):
    return incident_service.list_incidents(user.club_id)


@router.post("/incidents", response_model=IncidentResponse, status_code=201)
async def create_incident(request: IncidentCreate, user: ClubUserContext = Depends(require_staff)):
    return incident_service.create_incident(user.club_id, request)


@router.patch("/incidents/{incident_id}", response_model=IncidentResponse)
async def update_incident(
    incident_id: str,
    request: IncidentUpdate,
    user: ClubUserContext = Depends(require_staff)
):
    return incident_service.update_incident(user.club_id, incident_id, request)


@router.delete("/incidents/{incident_id}")
async def delete_incident(incident_id: str, user: ClubUserContext = Depends(require_admin)):
    incident_service.delete_incident(user.club_id, incident_id)
    return {"success": True}


# =============================================
# Protocols
# =============================================

@router.get("/protocols", response_model=List[ProtocolResponse])
async def list_protocols(user: ClubUserContext = Depends(get_current_club_user)):
    return incident_service.list_protocols(user.club_id)


@router.post("/protocols", response_model=ProtocolResponse, status_code=201)
async def upload_protocol(
    file: UploadFile = File(...),
    user: ClubUserContext = Depends(require_admin)
):
    """Upload a protocol document (10MB max)"""
    return await incident_service.upload_protocol(user.club_id, file)


@router.delete("/protocols/{protocol_id}")
async def delete_protocol(protocol_id: str, user: ClubUserContext = Depends(require_admin)):
    incident_service.delete_protocol(user.club_id, protocol_id)
    return {"success": True}
