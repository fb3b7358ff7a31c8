"""Approval workflow engine.

Orchestrates submission, sequential decisions and withdrawal on top of the
document store and the line ledger. Every public operation is one unit of
work: it commits on success, rolls back on any error, and holds a lock
scoped to the document while it reads, checks and writes.
"""

import logging
import threading
import weakref
from contextlib import contextmanager, nullcontext
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, List, NamedTuple, Optional, Protocol

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from groupware.db.models.approval import ApprovalDocument, ApprovalLine, ApprovalHistory

from .errors import (
    ApprovalError,
    ConflictError,
    OutOfOrderError,
    PermissionDeniedError,
    ValidationError,
)
from .ledger import (
    ApprovalLedger,
    ApproverSpec,
    eligible_line_for,
    prior_lines,
    validate_approver_specs,
)
from .machine import DocumentStateMachine
from .states import (
    Decision,
    DocumentState,
    DocumentTransition,
    DocumentType,
    LineStatus,
    Priority,
)
from .store import ApprovalDocumentStore

logger = logging.getLogger(__name__)

SUBMIT = "submit"
NOTIFICATION_TYPE = "approval"


class Notifier(Protocol):
    def notify(
        self,
        user_id: int,
        type: str,
        title: str,
        content: str,
        related_id: Optional[int] = None,
        link: Optional[str] = None,
    ): ...


class UserDirectory(Protocol):
    def resolve_user(self, user_id: int): ...


class PendingNotification(NamedTuple):
    user_id: int
    type: str
    title: str
    content: str
    related_id: Optional[int]
    link: Optional[str]


@dataclass
class DocumentWithLines:
    document: ApprovalDocument
    lines: List[ApprovalLine]


class DocumentLocks:
    """One lock per document id; distinct documents never contend.

    Entries are weak: a lock is dropped once no caller holds it.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: "weakref.WeakValueDictionary[int, threading.Lock]" = weakref.WeakValueDictionary()

    def get(self, document_id: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(document_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[document_id] = lock
            return lock

    def __len__(self) -> int:
        return len(self._locks)


document_locks = DocumentLocks()

# Document transition implied by the aggregate status after a decision
AGGREGATE_TRANSITIONS = {
    DocumentState.ROUTING: DocumentTransition.APPROVE_STEP,
    DocumentState.APPROVED: DocumentTransition.APPROVE_FINAL,
    DocumentState.REJECTED: DocumentTransition.REJECT,
}


def derive_document_state(lines: Iterable[ApprovalLine]) -> DocumentState:
    """Aggregate status implied by a document's lines (withdrawal aside)."""
    statuses = [line.status for line in lines]
    if any(s == LineStatus.REJECTED.value for s in statuses):
        return DocumentState.REJECTED
    if statuses and all(s == LineStatus.APPROVED.value for s in statuses):
        return DocumentState.APPROVED
    if any(s == LineStatus.APPROVED.value for s in statuses):
        return DocumentState.ROUTING
    return DocumentState.DRAFTED


def document_link(document_id: int) -> str:
    return f"/approvals/{document_id}"


class ApprovalEngine:
    """
    Multi-step approval workflow.

    Handles:
    - Submitting a document together with its approval line
    - Sequential approve/reject decisions with turn-order checks
    - Aggregate status recomputation
    - Withdrawal by the author
    - Notifications, dispatched after commit and never fatal
    """

    def __init__(
        self,
        db: Session,
        *,
        notifier: Optional[Notifier] = None,
        directory: Optional[UserDirectory] = None,
        locks: Optional[DocumentLocks] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        """
        Args:
            db: Database session; the engine commits and rolls it back
            notifier: Receives notification requests after each successful operation
            directory: Resolves user ids to display names for notification text
            locks: Document lock registry, shared across engines by default
            clock: Source of decision and creation timestamps
        """
        self.db = db
        self.store = ApprovalDocumentStore(db)
        self.ledger = ApprovalLedger(db)
        self.notifier = notifier
        self.directory = directory
        self.locks = locks or document_locks
        self.clock = clock

    # region ========== Operations ==========

    def submit_approval(
        self,
        author_id: int,
        title: str,
        content: str,
        document_type: DocumentType = DocumentType.GENERAL,
        priority: Priority = Priority.NORMAL,
        approvers: Iterable[ApproverSpec] = (),
        *,
        reference_users: Optional[List[int]] = None,
        attachments: Optional[List[str]] = None,
    ) -> ApprovalDocument:
        """
        Create a document and its full approval line in one transaction.

        Raises:
            ValidationError: No approvers, duplicate orders, bad type/priority, blank fields
        """
        specs = validate_approver_specs(approvers)
        document_type = _coerce(DocumentType, document_type, "document type")
        priority = _coerce(Priority, priority, "priority")

        outbox: List[PendingNotification] = []
        with self._unit_of_work(lock=self.store.numbering_lock()):
            document = self.store.create(
                title=title,
                content=content,
                author_id=author_id,
                document_type=document_type,
                priority=priority,
                approver_specs=specs,
                reference_users=reference_users,
                attachments=attachments,
                created_at=self.clock(),
            )
            lines = self.ledger.create_lines(document.id, specs)
            self._record_history(
                document.id, DocumentState.DRAFTED, DocumentState.DRAFTED, SUBMIT, author_id,
            )

            for line in lines:
                outbox.append(PendingNotification(
                    user_id=line.approver_id,
                    type=NOTIFICATION_TYPE,
                    title="New approval request",
                    content=f"'{document.title}' is waiting for your approval.",
                    related_id=document.id,
                    link=document_link(document.id),
                ))

        logger.info(
            f"Approval document {document.document_number} submitted by user {author_id} "
            f"with {len(specs)} approver(s)"
        )
        self._dispatch(outbox)
        return document

    def decide(
        self,
        document_id: int,
        acting_user_id: int,
        decision: Decision,
        comment: Optional[str] = None,
    ) -> ApprovalLine:
        """
        Approve or reject the acting user's turn-eligible line.

        Returns:
            The decided approval line

        Raises:
            NotFoundError: Unknown document
            ConflictError: Document is terminal, or the user's lines are all decided
            PermissionDeniedError: The user holds no line on the document
            OutOfOrderError: An earlier line is not approved yet
        """
        decision = _coerce(Decision, decision, "decision")

        outbox: List[PendingNotification] = []
        with self._unit_of_work(document_id):
            document = self.store.get(document_id, for_update=True)
            machine = DocumentStateMachine(
                document.id, DocumentState(document.status), author_id=document.author_id,
            )
            if machine.is_terminal:
                raise ConflictError(
                    f"Document {document.document_number} is already {document.status}"
                )

            lines = self.ledger.lines_for(document.id)
            line = eligible_line_for(lines, acting_user_id)
            if line is None:
                if any(other.approver_id == acting_user_id for other in lines):
                    raise ConflictError(
                        f"User {acting_user_id} has already decided on document {document.document_number}"
                    )
                raise PermissionDeniedError(
                    f"User {acting_user_id} has no eligible pending line on document {document.document_number}"
                )

            waiting_on = [
                other for other in prior_lines(lines, line)
                if other.status != LineStatus.APPROVED.value
            ]
            if waiting_on:
                raise OutOfOrderError(
                    f"Approver at order {waiting_on[0].order} has not decided yet"
                )

            decided_at = self.clock()
            line = self.ledger.update_line(
                line.id,
                status=LineStatus.APPROVED if decision == Decision.APPROVE else LineStatus.REJECTED,
                comment=comment,
                decided_at=decided_at,
            )

            # Aggregate status recomputed from the lines, applied through the transition table
            transition = AGGREGATE_TRANSITIONS[derive_document_state(lines)]
            from_state = machine.state
            new_state = machine.transition(transition, user_id=acting_user_id)
            self.store.update_status(document.id, new_state, updated_at=decided_at)
            self._record_history(
                document.id, from_state, new_state, transition.value, acting_user_id, comment,
            )

            verb = "approved" if decision == Decision.APPROVE else "rejected"
            outbox.append(PendingNotification(
                user_id=document.author_id,
                type=NOTIFICATION_TYPE,
                title=f"Approval {verb}",
                content=f"'{document.title}' was {verb} by {self._display_name(acting_user_id)}.",
                related_id=document.id,
                link=document_link(document.id),
            ))

        logger.info(
            f"Document {document_id} line #{line.order} {line.status} by user {acting_user_id}; "
            f"document is now {new_state.value}"
        )
        self._dispatch(outbox)
        return line

    def withdraw(self, document_id: int, acting_user_id: int) -> ApprovalDocument:
        """
        Pull an in-flight document back. Author only.

        Raises:
            NotFoundError: Unknown document
            PermissionDeniedError: The acting user is not the author
            ConflictError: The document is already approved, rejected or withdrawn
        """
        outbox: List[PendingNotification] = []
        with self._unit_of_work(document_id):
            document = self.store.get(document_id, for_update=True)
            if document.author_id != acting_user_id:
                raise PermissionDeniedError(
                    f"Only the author may withdraw document {document.document_number}"
                )

            machine = DocumentStateMachine(
                document.id, DocumentState(document.status), author_id=document.author_id,
            )
            from_state = machine.state
            new_state = machine.transition(DocumentTransition.WITHDRAW, user_id=acting_user_id)
            document = self.store.update_status(document.id, new_state, updated_at=self.clock())
            self._record_history(
                document.id, from_state, new_state, DocumentTransition.WITHDRAW.value, acting_user_id,
            )

            for line in self.ledger.lines_for(document.id):
                if line.status == LineStatus.PENDING.value:
                    outbox.append(PendingNotification(
                        user_id=line.approver_id,
                        type=NOTIFICATION_TYPE,
                        title="Approval withdrawn",
                        content=f"'{document.title}' was withdrawn by its author.",
                        related_id=document.id,
                        link=document_link(document.id),
                    ))

        logger.info(f"Document {document_id} withdrawn by user {acting_user_id}")
        self._dispatch(outbox)
        return document

    def get_document_with_lines(self, document_id: int) -> DocumentWithLines:
        """A document and its lines in approval order."""
        document = self.store.get(document_id)
        return DocumentWithLines(document=document, lines=self.ledger.lines_for(document_id))

    def list_documents(
        self,
        user_id: int,
        *,
        status: Optional[DocumentState] = None,
        is_author: bool = True,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[ApprovalDocument]:
        if status is not None:
            status = _coerce(DocumentState, status, "status")
        return self.store.list(user_id, status=status, is_author=is_author, limit=limit, offset=offset)

    def count_documents(
        self,
        user_id: int,
        *,
        status: Optional[DocumentState] = None,
        is_author: bool = True,
    ) -> int:
        if status is not None:
            status = _coerce(DocumentState, status, "status")
        return self.store.count(user_id, status=status, is_author=is_author)

    def get_history(self, document_id: int) -> List[ApprovalHistory]:
        """Transition history of a document, oldest first."""
        self.store.get(document_id)
        return (
            self.db.query(ApprovalHistory)
            .filter(ApprovalHistory.document_id == document_id)
            .order_by(ApprovalHistory.id.asc())
            .all()
        )

    # endregion

    # region ========== Internals ==========

    @contextmanager
    def _unit_of_work(self, document_id: Optional[int] = None, *, lock=None):
        """Hold the document lock, commit on success, roll back on error."""
        if lock is None:
            lock = self.locks.get(document_id) if document_id is not None else nullcontext()

        with lock:
            try:
                yield
                self.db.commit()
            except ApprovalError as e:
                self.db.rollback()
                logger.warning(f"Approval operation refused ({e.code}): {e.message}")
                raise
            except IntegrityError as e:
                self.db.rollback()
                logger.warning(f"Approval operation hit a constraint violation: {e.orig}")
                raise ConflictError("The change conflicts with existing approval data") from e
            except Exception:
                self.db.rollback()
                raise

    def _record_history(
        self,
        document_id: int,
        from_state: DocumentState,
        to_state: DocumentState,
        transition: str,
        user_id: Optional[int],
        comment: Optional[str] = None,
    ) -> None:
        self.db.add(ApprovalHistory(
            document_id=document_id,
            from_state=from_state.value,
            to_state=to_state.value,
            transition=transition,
            user_id=user_id,
            comment=comment,
            created_at=self.clock(),
        ))
        self.db.flush()

    def _dispatch(self, outbox: List[PendingNotification]) -> None:
        """Send queued notifications. Runs after commit; failures are logged only."""
        if self.notifier is None:
            return

        for note in outbox:
            try:
                self.notifier.notify(**note._asdict())
            except Exception:
                logger.exception(
                    f"Failed to notify user {note.user_id} about document {note.related_id}"
                )
                self.db.rollback()

    def _display_name(self, user_id: int) -> str:
        if self.directory is None:
            return f"user {user_id}"
        try:
            identity = self.directory.resolve_user(user_id)
        except Exception:
            logger.exception(f"Directory lookup failed for user {user_id}")
            return f"user {user_id}"
        return identity.name if identity else f"user {user_id}"

    # endregion


def _coerce(enum_cls, value, label: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"Invalid {label} {value!r}; expected one of: {allowed}") from None
