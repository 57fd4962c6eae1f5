"""
Treasury Module
"""

from .service import treasury_service

__all__ = ["treasury_service"]
