"""
Communication Module

- mail transports (SMTP / SendPulse)
- direct emails and AI drafted templates
- data update batches and their public tokens
"""

from .batches import email_batch_service
from .data_update import data_update_service

__all__ = ["email_batch_service", "data_update_service"]
