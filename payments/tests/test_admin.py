"""
Unit Tests for the Admin Review Controller

Tests cover:
1. Pending list passthrough
2. Successful decisions and refresh
3. Failed decisions surfacing the service message
"""

import pytest
from decimal import Decimal
from uuid import UUID

from payments.admin import AdminReviewController
from payments.models import PaymentType, PaymentStatus, SubmitPaymentRequest
from payments.service import InMemoryStorage, PaymentRequestService, InvalidDecisionError


@pytest.fixture
def service():
    return PaymentRequestService(InMemoryStorage(seed=False))


@pytest.fixture
def user(service):
    return service.create_user("Player", "player@test.com", real_balance=Decimal("100.00"))


def submit(service, user, type_, amount):
    return service.submit_request(user.id, SubmitPaymentRequest(
        type=type_, amount=Decimal(amount), method="bank"
    ))


class TestListPending:
    """Tests for the pending queue view."""

    def test_list_pending_passes_through(self, service, user):
        """Test that the controller returns the service's pending list as-is."""
        request = submit(service, user, PaymentType.DEPOSIT, "10.00")
        controller = AdminReviewController(service)

        assert controller.list_pending() == service.list_pending_requests()
        assert [r.id for r in controller.pending] == [request.id]


class TestAct:
    """Tests for approve and reject decisions."""

    def test_act_approve_refreshes_pending(self, service, user):
        """Test that a successful approval refreshes the pending queue."""
        first = submit(service, user, PaymentType.DEPOSIT, "10.00")
        second = submit(service, user, PaymentType.DEPOSIT, "20.00")
        controller = AdminReviewController(service)
        controller.list_pending()

        outcome = controller.act(first.id, PaymentStatus.APPROVED)

        assert outcome.success
        assert outcome.request.status == PaymentStatus.APPROVED
        assert [r.id for r in outcome.pending] == [second.id]
        assert service.get_user(user.id).real_balance == Decimal("110.00")

    def test_act_failure_keeps_cached_pending(self, service, user):
        """Test that a failed approval reports the message and keeps the cached list."""
        request = submit(service, user, PaymentType.WITHDRAW, "500.00")
        controller = AdminReviewController(service)
        before = controller.list_pending()

        outcome = controller.act(request.id, "approved")

        assert not outcome.success
        assert outcome.message == "Insufficient balance for withdrawal"
        assert outcome.error == "InsufficientBalanceError"
        assert outcome.pending == before
        assert controller.pending == before
        # The service itself reverted the request
        assert service.get_request(request.id).status == PaymentStatus.REJECTED

    def test_act_on_terminal_request_fails(self, service, user):
        """Test that approving a rejected request is reported as a failure."""
        request = submit(service, user, PaymentType.WITHDRAW, "10.00")
        controller = AdminReviewController(service)
        controller.act(request.id, PaymentStatus.REJECTED)

        outcome = controller.act(request.id, PaymentStatus.APPROVED)

        assert not outcome.success
        assert outcome.error == "InvalidStateTransitionError"
        assert service.get_user(user.id).real_balance == Decimal("100.00")

    def test_act_unknown_request_reports_not_found(self, service):
        """Test that an unknown request id is reported as not found."""
        controller = AdminReviewController(service)

        outcome = controller.act(UUID("00000000-0000-0000-0000-000000000000"), PaymentStatus.REJECTED)

        assert not outcome.success
        assert outcome.error == "PaymentRequestNotFoundError"

    @pytest.mark.parametrize("decision", ["pending", "refunded"])
    def test_act_rejects_unsupported_decisions(self, service, user, decision):
        """Test that only approved and rejected are accepted as decisions."""
        request = submit(service, user, PaymentType.DEPOSIT, "10.00")
        controller = AdminReviewController(service)

        with pytest.raises(InvalidDecisionError):
            controller.act(request.id, decision)

        assert service.get_request(request.id).status == PaymentStatus.PENDING
