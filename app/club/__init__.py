"""
Club Management Module

Multi-tenant club management: members, teams, documents, communications,
registrations and treasury, scoped per club.
"""

from .router import router as club_router
from .public import router as public_router
from .models import ClubRole
from .dependencies import ClubUserContext

__all__ = [
    "club_router",
    "public_router",
    "ClubRole",
    "ClubUserContext",
]
