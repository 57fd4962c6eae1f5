"""
Training Schedules Module
"""

from .service import schedule_service

__all__ = ["schedule_service"]
