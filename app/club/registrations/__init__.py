"""
Registration Module

Public registration forms (camps, tryouts, events) with dated open/close
windows and submission limits.
"""

from .service import registration_service, compute_status

__all__ = ["registration_service", "compute_status"]
