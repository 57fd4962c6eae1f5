"""
Document Module

- club documents per member
- essential documents checklist
- file requests (token upload links)
"""

from .service import document_service
from .file_requests import file_request_service

__all__ = ["document_service", "file_request_service"]
