import logging
from uuid import UUID

from .models import PaymentStatus, PaymentRequest, PaymentRequestPatch, ReviewOutcome
from .service import PaymentRequestService, PaymentServiceError, InvalidDecisionError

logger = logging.getLogger(__name__)

DECISIONS = (PaymentStatus.APPROVED, PaymentStatus.REJECTED)


class AdminReviewController:
    """Entry point administrators use to work through pending requests.

    Balance and ledger changes belong to PaymentRequestService; the controller
    only forwards decisions and keeps a refreshed view of the pending queue.
    """

    def __init__(self, service: PaymentRequestService):
        self.service = service
        self.pending: list[PaymentRequest] = []

    def list_pending(self) -> list[PaymentRequest]:
        self.pending = self.service.list_pending_requests()
        return self.pending

    def act(self, request_id: UUID, decision: PaymentStatus) -> ReviewOutcome:
        try:
            decision = PaymentStatus(decision)
        except ValueError:
            raise InvalidDecisionError(f"Unsupported decision: {decision}")
        if decision not in DECISIONS:
            raise InvalidDecisionError(f"Unsupported decision: {decision.value}")

        try:
            request = self.service.review_request(request_id, PaymentRequestPatch(status=decision))
        except PaymentServiceError as e:
            logger.warning("Review of payment request %s as %s failed: %s",
                           request_id, decision.value, e)
            return ReviewOutcome(
                success=False, pending=self.pending, message=str(e), error=type(e).__name__,
            )

        return ReviewOutcome(
            success=True,
            request=request,
            pending=self.list_pending(),
            message=f"Payment request {decision.value}",
        )
