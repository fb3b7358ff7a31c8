"""Approval line ledger.

Owns the ordered approver list of each document and single-line mutation.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from groupware.db.models.approval import ApprovalLine

from .errors import ConflictError, NotFoundError, ValidationError
from .states import LineStatus


@dataclass(frozen=True)
class ApproverSpec:
    """An approver and their position in the sign-off sequence."""

    user_id: int
    order: int


def validate_approver_specs(approver_specs: Iterable[ApproverSpec]) -> List[ApproverSpec]:
    """Check a submitted approval line before anything is written.

    Raises:
        ValidationError: empty list, non-positive order, or duplicate order
    """
    specs = list(approver_specs)
    if not specs:
        raise ValidationError("At least one approver is required")

    seen = set()
    for spec in specs:
        if spec.order < 1:
            raise ValidationError(f"Approval order must be a positive integer, got {spec.order}")
        if spec.order in seen:
            raise ValidationError(f"Duplicate approval order {spec.order}")
        seen.add(spec.order)
    return specs


def eligible_line_for(lines: List[ApprovalLine], user_id: int) -> Optional[ApprovalLine]:
    """The user's lowest-order pending line, if any. ``lines`` must be sorted."""
    for line in lines:
        if line.approver_id == user_id and line.status == LineStatus.PENDING.value:
            return line
    return None


def prior_lines(lines: List[ApprovalLine], line: ApprovalLine) -> List[ApprovalLine]:
    """Lines that must be approved before ``line`` may act."""
    return [other for other in lines if other.order < line.order]


class ApprovalLedger:
    """Persistence for approval lines."""

    def __init__(self, db: Session):
        self.db = db

    def create_lines(self, document_id: int, approver_specs: Iterable[ApproverSpec]) -> List[ApprovalLine]:
        """
        Create one pending line per approver spec.

        Must run in the same unit of work as the document insert.

        Raises:
            ValidationError: If the specs are empty or reuse an order value
        """
        specs = validate_approver_specs(approver_specs)

        lines = []
        for spec in sorted(specs, key=lambda s: s.order):
            line = ApprovalLine(
                document_id=document_id,
                approver_id=spec.user_id,
                order=spec.order,
                status=LineStatus.PENDING.value,
            )
            self.db.add(line)
            lines.append(line)

        self.db.flush()
        return lines

    def get_line(self, line_id: int, *, for_update: bool = False) -> ApprovalLine:
        query = self.db.query(ApprovalLine).filter(ApprovalLine.id == line_id)
        if for_update:
            query = query.with_for_update()
        line = query.first()
        if line is None:
            raise NotFoundError("Approval line", line_id)
        return line

    def update_line(
        self,
        line_id: int,
        *,
        status: LineStatus,
        comment: Optional[str] = None,
        decided_at: Optional[datetime] = None,
    ) -> ApprovalLine:
        """
        Record the decision on a pending line.

        Raises:
            NotFoundError: If the line does not exist
            ValidationError: If the target status is pending
            ConflictError: If the line was already decided
        """
        if status == LineStatus.PENDING:
            raise ValidationError("A decision must approve or reject the line")

        line = self.get_line(line_id, for_update=True)
        if line.status != LineStatus.PENDING.value:
            raise ConflictError(f"Approval line {line_id} was already {line.status}")

        line.status = status.value
        line.comment = comment
        line.decided_at = decided_at or datetime.utcnow()
        self.db.flush()
        return line

    def lines_for(self, document_id: int) -> List[ApprovalLine]:
        """All lines of a document, ascending by order."""
        return (
            self.db.query(ApprovalLine)
            .filter(ApprovalLine.document_id == document_id)
            .order_by(ApprovalLine.order.asc())
            .all()
        )
