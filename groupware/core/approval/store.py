"""Approval document store.

Persists documents, assigns document numbers and lists documents per user.
"""

import threading
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from groupware.db.models.approval import ApprovalDocument, ApprovalLine

from .errors import NotFoundError, ValidationError
from .states import DocumentState, DocumentType, Priority

DOCUMENT_NUMBER_PREFIX = "AP"

# Guards the read-max/insert pair of document numbering within this process
_numbering_lock = threading.Lock()


def format_document_number(year: int, sequence: int) -> str:
    """AP-<year>-<4-digit sequence>."""
    return f"{DOCUMENT_NUMBER_PREFIX}-{year}-{sequence:04d}"


def parse_document_sequence(document_number: str) -> int:
    """Sequence part of a document number, ``AP-2024-0012`` -> 12."""
    return int(document_number.rsplit("-", 1)[1])


class ApprovalDocumentStore:
    """Persistence for approval documents."""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def numbering_lock() -> threading.Lock:
        return _numbering_lock

    def next_document_number(self, year: int) -> str:
        """Greatest number issued for ``year`` plus one."""
        prefix = f"{DOCUMENT_NUMBER_PREFIX}-{year}-"
        issued = (
            self.db.query(ApprovalDocument.document_number)
            .filter(ApprovalDocument.document_number.like(f"{prefix}%"))
            .all()
        )
        last = max((parse_document_sequence(number) for (number,) in issued), default=0)
        return format_document_number(year, last + 1)

    def create(
        self,
        *,
        title: str,
        content: str,
        author_id: int,
        document_type: DocumentType = DocumentType.GENERAL,
        priority: Priority = Priority.NORMAL,
        approver_specs: Sequence = (),
        reference_users: Optional[List[int]] = None,
        attachments: Optional[List[str]] = None,
        created_at: Optional[datetime] = None,
    ) -> ApprovalDocument:
        """
        Insert a new document in the drafted state.

        The caller holds ``numbering_lock()`` and owns the transaction.

        Raises:
            ValidationError: If no approvers were given or title/content are blank
        """
        if not approver_specs:
            raise ValidationError("At least one approver is required")
        if not title or not title.strip():
            raise ValidationError("Title is required")
        if not content or not content.strip():
            raise ValidationError("Content is required")

        created_at = created_at or datetime.utcnow()
        document = ApprovalDocument(
            document_number=self.next_document_number(created_at.year),
            title=title.strip(),
            content=content,
            author_id=author_id,
            document_type=DocumentType(document_type).value,
            priority=Priority(priority).value,
            status=DocumentState.DRAFTED.value,
            reference_users=list(reference_users) if reference_users else None,
            attachments=list(attachments) if attachments else None,
            created_at=created_at,
            updated_at=created_at,
        )
        self.db.add(document)
        self.db.flush()
        return document

    def get(self, document_id: int, *, for_update: bool = False) -> ApprovalDocument:
        query = self.db.query(ApprovalDocument).filter(ApprovalDocument.id == document_id)
        if for_update:
            query = query.with_for_update()
        document = query.first()
        if document is None:
            raise NotFoundError("Approval document", document_id)
        return document

    def update_status(
        self,
        document_id: int,
        new_status: DocumentState,
        *,
        updated_at: Optional[datetime] = None,
    ) -> ApprovalDocument:
        """Overwrite the aggregate status and its modification time; nothing else changes."""
        document = self.get(document_id)
        document.status = DocumentState(new_status).value
        document.updated_at = updated_at or datetime.utcnow()
        self.db.flush()
        return document

    def _list_query(self, user_id: int, status: Optional[DocumentState], is_author: bool):
        query = self.db.query(ApprovalDocument)
        if is_author:
            query = query.filter(ApprovalDocument.author_id == user_id)
        else:
            approver_docs = (
                self.db.query(ApprovalLine.document_id)
                .filter(ApprovalLine.approver_id == user_id)
            )
            query = query.filter(ApprovalDocument.id.in_(approver_docs))

        if status:
            query = query.filter(ApprovalDocument.status == DocumentState(status).value)
        return query

    def list(
        self,
        user_id: int,
        *,
        status: Optional[DocumentState] = None,
        is_author: bool = True,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[ApprovalDocument]:
        """
        Documents authored by the user, or (``is_author=False``) documents
        where the user holds at least one approval line. Newest first.
        """
        query = self._list_query(user_id, status, is_author).order_by(
            ApprovalDocument.created_at.desc(),
            ApprovalDocument.id.desc(),
        )
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def count(self, user_id: int, *, status: Optional[DocumentState] = None, is_author: bool = True) -> int:
        query = self._list_query(user_id, status, is_author)
        return query.with_entities(func.count(ApprovalDocument.id)).scalar() or 0
