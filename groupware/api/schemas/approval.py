"""Request and response schemas for the approval API."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from groupware.core.approval import Decision, DocumentType, Priority


class ApproverIn(BaseModel):
    user_id: int
    order: int = Field(..., description="Position in the sign-off sequence, starting at 1")


class ApprovalCreate(BaseModel):
    title: str = Field(..., max_length=255)
    content: str
    document_type: DocumentType = DocumentType.GENERAL
    priority: Priority = Priority.NORMAL
    approvers: List[ApproverIn] = []
    reference_users: Optional[List[int]] = None
    attachments: Optional[List[str]] = None


class DecisionRequest(BaseModel):
    decision: Decision
    comment: Optional[str] = None


class UserSummary(BaseModel):
    id: int
    name: str
    department: Optional[str] = None
    position: Optional[str] = None

    class Config:
        from_attributes = True


class ApprovalDocumentResponse(BaseModel):
    id: int
    document_number: str
    title: str
    content: str
    author_id: int
    document_type: str
    priority: str
    status: str
    reference_users: Optional[List[int]] = None
    attachments: Optional[List[str]] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ApprovalLineResponse(BaseModel):
    id: int
    document_id: int
    approver_id: int
    order: int
    status: str
    comment: Optional[str] = None
    decided_at: Optional[datetime] = None
    approver: Optional[UserSummary] = None

    class Config:
        from_attributes = True


class ApprovalDocumentDetail(ApprovalDocumentResponse):
    author: Optional[UserSummary] = None
    lines: List[ApprovalLineResponse] = []


class ApprovalHistoryResponse(BaseModel):
    id: int
    from_state: str
    to_state: str
    transition: str
    user_id: Optional[int]
    comment: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class NotificationResponse(BaseModel):
    id: int
    user_id: int
    type: str
    title: str
    content: str
    is_read: bool
    related_id: Optional[int] = None
    link: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
