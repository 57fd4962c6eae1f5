"""
Document Models
"""

from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict
from pydantic import BaseModel, Field, EmailStr

from ..members.models import MemberKind


class DocumentCategory(str, Enum):
    identification = "identificacion"
    medical = "medico"
    essential_manual = "essential_manual"
    other = "otro"


class FileRequestStatus(str, Enum):
    pending = "pending"
    completed = "completed"


class DocumentResponse(BaseModel):
    id: str
    name: str
    path: str
    url: Optional[str] = None
    category: DocumentCategory = DocumentCategory.other
    owner_id: Optional[str] = None
    owner_name: Optional[str] = None
    created_at: Optional[datetime] = None


class EssentialDocStatus(BaseModel):
    """Which essential documents one member has"""
    member_id: str
    member_name: str
    kind: MemberKind
    team_name: Optional[str] = None
    documents: Dict[str, bool] = {}
    completed: bool = False


class EssentialDocToggle(BaseModel):
    member_id: str
    member_name: str
    doc_name: str = Field(..., min_length=1)
    present: bool


# =============================================
# File requests
# =============================================

class FileRequestRecipient(BaseModel):
    id: str
    name: str
    email: Optional[EmailStr] = None
    type: MemberKind


class FileRequestCreate(BaseModel):
    document_title: str = Field(..., min_length=1, max_length=150)
    message: Optional[str] = None
    recipients: List[FileRequestRecipient] = Field(..., min_length=1)


class FileRequestSendResult(BaseModel):
    batch_id: str
    sent: int
    failed: List[str] = []  # names of recipients whose email could not be sent


class FileRequestBatchResponse(BaseModel):
    id: str
    document_title: str
    message: Optional[str] = None
    total_sent: int = 0
    completed_count: int = 0
    created_at: Optional[datetime] = None


class PublicFileRequest(BaseModel):
    """What the upload page shows for a valid token"""
    token: str
    document_title: str
    message: Optional[str] = None
    user_name: str
    club_name: str
    club_logo_url: Optional[str] = None
