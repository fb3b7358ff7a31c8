"""Approval workflow database models.

Stores approval documents, their ordered approval lines, and the
document-level transition history.
"""

from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, DateTime, JSON, ForeignKey, Text, UniqueConstraint,
)
from sqlalchemy.orm import relationship

from groupware.db.base import Base


class ApprovalDocument(Base):
    """
    An electronic approval document.

    The status column holds the aggregate state of the document's lines,
    except for "withdrawn" which overrides it.
    """
    __tablename__ = "approval_documents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    document_number = Column(String(32), unique=True, nullable=False, index=True)  # AP-2024-0001

    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    document_type = Column(String(50), nullable=False, default="general")
    priority = Column(String(20), nullable=False, default="normal")

    # Workflow state
    status = Column(String(20), nullable=False, default="drafted", index=True)

    reference_users = Column(JSON, nullable=True)  # list of user ids
    attachments = Column(JSON, nullable=True)  # list of attachment references

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    author = relationship("User", foreign_keys=[author_id])
    lines = relationship(
        "ApprovalLine",
        back_populates="document",
        order_by="ApprovalLine.order",
    )
    history = relationship(
        "ApprovalHistory",
        back_populates="document",
        order_by="ApprovalHistory.id",
    )

    def __repr__(self) -> str:
        return f"<ApprovalDocument {self.document_number} [{self.status}]>"


class ApprovalLine(Base):
    """
    One approver's slot in a document's ordered sign-off sequence.
    """
    __tablename__ = "approval_lines"
    __table_args__ = (
        UniqueConstraint("document_id", "order", name="uq_approval_lines_document_order"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    document_id = Column(Integer, ForeignKey("approval_documents.id", ondelete="CASCADE"), nullable=False, index=True)
    approver_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    order = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    comment = Column(Text, nullable=True)
    decided_at = Column(DateTime, nullable=True)

    document = relationship("ApprovalDocument", back_populates="lines")
    approver = relationship("User", foreign_keys=[approver_id])

    def __repr__(self) -> str:
        return f"<ApprovalLine doc={self.document_id} #{self.order} [{self.status}]>"


class ApprovalHistory(Base):
    """
    Records all document-level transitions.

    Provides an audit trail of the approval workflow.
    """
    __tablename__ = "approval_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    document_id = Column(Integer, ForeignKey("approval_documents.id", ondelete="CASCADE"), nullable=False, index=True)

    # Transition details
    from_state = Column(String(20), nullable=False)
    to_state = Column(String(20), nullable=False)
    transition = Column(String(20), nullable=False)

    # Actor
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    comment = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    document = relationship("ApprovalDocument", back_populates="history")

    def __repr__(self) -> str:
        return f"<ApprovalHistory {self.from_state} -> {self.to_state}>"
