"""Approval workflow API endpoints."""

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status

from groupware.api.deps import get_current_user, get_approval_engine, get_directory
from groupware.api.schemas.approval import (
    ApprovalCreate,
    ApprovalDocumentDetail,
    ApprovalDocumentResponse,
    ApprovalHistoryResponse,
    ApprovalLineResponse,
    DecisionRequest,
    UserSummary,
)
from groupware.api.schemas.common import PaginatedResponse
from groupware.core.approval import ApprovalEngine, ApproverSpec, DocumentState
from groupware.db.models import User
from groupware.services import UserDirectory, UserIdentity

router = APIRouter(prefix="/approvals", tags=["approvals"])


def _summary(identity: Optional[UserIdentity]) -> Optional[UserSummary]:
    return UserSummary.model_validate(identity) if identity else None


def _line_response(line, identities: Dict[int, UserIdentity]) -> ApprovalLineResponse:
    return ApprovalLineResponse(
        id=line.id,
        document_id=line.document_id,
        approver_id=line.approver_id,
        order=line.order,
        status=line.status,
        comment=line.comment,
        decided_at=line.decided_at,
        approver=_summary(identities.get(line.approver_id)),
    )


@router.get("", response_model=PaginatedResponse[ApprovalDocumentResponse])
async def list_approvals(
    current_user: User = Depends(get_current_user),
    engine: ApprovalEngine = Depends(get_approval_engine),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    status: Optional[DocumentState] = None,
    is_author: bool = True,
):
    """List documents the user wrote, or (is_author=false) documents routed to them."""
    total = engine.count_documents(current_user.id, status=status, is_author=is_author)
    documents = engine.list_documents(
        current_user.id,
        status=status,
        is_author=is_author,
        limit=per_page,
        offset=(page - 1) * per_page,
    )

    return PaginatedResponse[ApprovalDocumentResponse].create(
        items=[ApprovalDocumentResponse.model_validate(d) for d in documents],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.post("", response_model=ApprovalDocumentResponse, status_code=status.HTTP_201_CREATED)
async def submit_approval(
    payload: ApprovalCreate,
    current_user: User = Depends(get_current_user),
    engine: ApprovalEngine = Depends(get_approval_engine),
):
    """Submit a document with its ordered approval line."""
    document = engine.submit_approval(
        current_user.id,
        payload.title,
        payload.content,
        payload.document_type,
        payload.priority,
        [ApproverSpec(user_id=a.user_id, order=a.order) for a in payload.approvers],
        reference_users=payload.reference_users,
        attachments=payload.attachments,
    )
    return ApprovalDocumentResponse.model_validate(document)


@router.get("/{document_id}", response_model=ApprovalDocumentDetail)
async def get_approval(
    document_id: int,
    current_user: User = Depends(get_current_user),
    engine: ApprovalEngine = Depends(get_approval_engine),
    directory: UserDirectory = Depends(get_directory),
):
    """Get a document together with its approval lines."""
    result = engine.get_document_with_lines(document_id)
    identities = directory.resolve_many(
        [result.document.author_id] + [line.approver_id for line in result.lines]
    )

    base = ApprovalDocumentResponse.model_validate(result.document).model_dump()
    return ApprovalDocumentDetail(
        **base,
        author=_summary(identities.get(result.document.author_id)),
        lines=[_line_response(line, identities) for line in result.lines],
    )


@router.get("/{document_id}/history", response_model=List[ApprovalHistoryResponse])
async def get_approval_history(
    document_id: int,
    current_user: User = Depends(get_current_user),
    engine: ApprovalEngine = Depends(get_approval_engine),
):
    """Get the state transition history of a document."""
    return [ApprovalHistoryResponse.model_validate(h) for h in engine.get_history(document_id)]


@router.post("/{document_id}/decide", response_model=ApprovalLineResponse)
async def decide(
    document_id: int,
    action: DecisionRequest,
    current_user: User = Depends(get_current_user),
    engine: ApprovalEngine = Depends(get_approval_engine),
    directory: UserDirectory = Depends(get_directory),
):
    """Approve or reject the caller's current approval step."""
    line = engine.decide(document_id, current_user.id, action.decision, action.comment)
    return _line_response(line, directory.resolve_many([line.approver_id]))


@router.post("/{document_id}/withdraw", response_model=ApprovalDocumentResponse)
async def withdraw(
    document_id: int,
    current_user: User = Depends(get_current_user),
    engine: ApprovalEngine = Depends(get_approval_engine),
):
    """Withdraw an in-flight document. Author only."""
    document = engine.withdraw(document_id, current_user.id)
    return ApprovalDocumentResponse.model_validate(document)
