"""Tests for the approval line ledger."""

from datetime import datetime

import pytest

from groupware.core.approval import (
    ApprovalDocumentStore,
    ApprovalLedger,
    ApproverSpec,
    ConflictError,
    LineStatus,
    NotFoundError,
    ValidationError,
)
from groupware.core.approval.ledger import (
    eligible_line_for,
    prior_lines,
    validate_approver_specs,
)


@pytest.fixture
def document(db_session, author, approvers):
    specs = [ApproverSpec(user_id=u.id, order=i) for i, u in enumerate(approvers, start=1)]
    return ApprovalDocumentStore(db_session).create(
        title="Laptop purchase",
        content="One laptop for the new hire.",
        author_id=author.id,
        approver_specs=specs,
    )


class TestValidateApproverSpecs:
    def test_accepts_gapped_orders(self):
        specs = [ApproverSpec(user_id=1, order=10), ApproverSpec(user_id=2, order=3)]
        assert validate_approver_specs(specs) == specs

    def test_empty(self):
        with pytest.raises(ValidationError, match="At least one approver"):
            validate_approver_specs([])

    def test_duplicate_order(self):
        with pytest.raises(ValidationError, match="Duplicate approval order 2"):
            validate_approver_specs([ApproverSpec(1, 2), ApproverSpec(2, 2)])

    def test_non_positive_order(self):
        with pytest.raises(ValidationError):
            validate_approver_specs([ApproverSpec(1, 0)])


class TestApprovalLedger:
    """Test line creation and single-line mutation."""

    def test_create_lines_sorted_and_pending(self, db_session, document, approvers):
        ledger = ApprovalLedger(db_session)
        specs = [
            ApproverSpec(user_id=approvers[2].id, order=3),
            ApproverSpec(user_id=approvers[0].id, order=1),
            ApproverSpec(user_id=approvers[1].id, order=2),
        ]

        lines = ledger.create_lines(document.id, specs)

        assert [line.order for line in lines] == [1, 2, 3]
        assert all(line.status == LineStatus.PENDING.value for line in lines)
        assert all(line.decided_at is None for line in lines)
        assert [line.id for line in ledger.lines_for(document.id)] == [line.id for line in lines]

    def test_update_line_records_decision(self, db_session, document, approvers):
        ledger = ApprovalLedger(db_session)
        line = ledger.create_lines(document.id, [ApproverSpec(approvers[0].id, 1)])[0]
        decided_at = datetime(2024, 5, 2, 9, 30)

        updated = ledger.update_line(
            line.id, status=LineStatus.APPROVED, comment="OK", decided_at=decided_at,
        )

        assert updated.status == "approved"
        assert updated.comment == "OK"
        assert updated.decided_at == decided_at

    def test_update_line_only_once(self, db_session, document, approvers):
        ledger = ApprovalLedger(db_session)
        line = ledger.create_lines(document.id, [ApproverSpec(approvers[0].id, 1)])[0]
        ledger.update_line(line.id, status=LineStatus.REJECTED, comment="No")

        with pytest.raises(ConflictError):
            ledger.update_line(line.id, status=LineStatus.APPROVED, comment="Changed my mind")

        assert ledger.get_line(line.id).comment == "No"

    def test_update_line_to_pending_is_invalid(self, db_session, document, approvers):
        ledger = ApprovalLedger(db_session)
        line = ledger.create_lines(document.id, [ApproverSpec(approvers[0].id, 1)])[0]

        with pytest.raises(ValidationError):
            ledger.update_line(line.id, status=LineStatus.PENDING)

    def test_unknown_line(self, db_session):
        with pytest.raises(NotFoundError):
            ApprovalLedger(db_session).get_line(12345)


class TestLineHelpers:
    def test_eligible_line_is_lowest_pending(self, db_session, document, approvers):
        ledger = ApprovalLedger(db_session)
        user = approvers[0]
        lines = ledger.create_lines(document.id, [
            ApproverSpec(user.id, 1),
            ApproverSpec(approvers[1].id, 2),
            ApproverSpec(user.id, 3),
        ])

        assert eligible_line_for(lines, user.id).order == 1
        ledger.update_line(lines[0].id, status=LineStatus.APPROVED)
        assert eligible_line_for(lines, user.id).order == 3
        assert eligible_line_for(lines, 99999) is None

    def test_prior_lines(self, db_session, document, approvers):
        lines = ApprovalLedger(db_session).create_lines(
            document.id, [ApproverSpec(u.id, i) for i, u in enumerate(approvers, start=1)],
        )
        assert prior_lines(lines, lines[2]) == lines[:2]
        assert prior_lines(lines, lines[0]) == []
