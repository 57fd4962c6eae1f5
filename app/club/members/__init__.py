"""
Member Module

Players, coaches, staff and socios
- CRUD with team name resolution
- missing data flags
- CSV import (app.club.importer)
"""

from .service import member_service, missing_fields

__all__ = ["member_service", "missing_fields"]
