import logging
from typing import Optional
from uuid import UUID

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .admin import AdminReviewController
from .auth import get_current_user, require_admin
from .config import get_settings
from .dependencies import get_payment_service, get_review_controller
from .models import (
    PaymentStatus, TransactionStatus, User, PaymentRequest, Transaction,
    SubmitPaymentRequest, PaymentRequestPatch, ReviewOutcome, MessageResponse,
)
from .service import (
    PaymentRequestService, PaymentRequestNotFoundError, UserNotFoundError,
    InsufficientBalanceError, InvalidStateTransitionError,
)

settings = get_settings()
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

REVIEW_ERROR_STATUS = {
    PaymentRequestNotFoundError.__name__: status.HTTP_404_NOT_FOUND,
    UserNotFoundError.__name__: status.HTTP_409_CONFLICT,
    InvalidStateTransitionError.__name__: status.HTTP_400_BAD_REQUEST,
}

app = FastAPI(
    title="Payment Review API",
    description="Deposit and withdrawal requests with administrator review and a transaction ledger",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=86400,
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": str(exc)})


@app.get("/health", tags=["System"])
def health_check():
    return {"status": "healthy", "service": "payment-review"}


@app.post("/payments", response_model=PaymentRequest, status_code=status.HTTP_201_CREATED, tags=["Payments"])
def submit_payment(
    request: SubmitPaymentRequest,
    user: User = Depends(get_current_user),
    service: PaymentRequestService = Depends(get_payment_service),
) -> PaymentRequest:
    try:
        return service.submit_request(user.id, request)
    except UserNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")


@app.get("/payments", response_model=list[PaymentRequest], tags=["Payments"])
def list_payments(
    status_filter: Optional[PaymentStatus] = Query(None, alias="status"),
    user: User = Depends(get_current_user),
    service: PaymentRequestService = Depends(get_payment_service),
) -> list[PaymentRequest]:
    owner = None if user.is_admin else user.id
    return service.list_requests(user_id=owner, status=status_filter)


@app.get("/payments/pending", response_model=list[PaymentRequest], tags=["Admin"])
def list_pending_payments(
    admin: User = Depends(require_admin),
    controller: AdminReviewController = Depends(get_review_controller),
) -> list[PaymentRequest]:
    return controller.list_pending()


@app.get("/payments/{request_id}", response_model=PaymentRequest, tags=["Admin"])
def get_payment(
    request_id: UUID,
    admin: User = Depends(require_admin),
    service: PaymentRequestService = Depends(get_payment_service),
) -> PaymentRequest:
    try:
        return service.get_request(request_id)
    except PaymentRequestNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment request not found")


@app.patch("/payments/{request_id}", response_model=PaymentRequest, tags=["Admin"])
def update_payment(
    request_id: UUID,
    patch: PaymentRequestPatch,
    admin: User = Depends(require_admin),
    service: PaymentRequestService = Depends(get_payment_service),
) -> PaymentRequest:
    try:
        return service.review_request(request_id, patch)
    except PaymentRequestNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment request not found")
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except InsufficientBalanceError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except InvalidStateTransitionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@app.delete("/payments/{request_id}", response_model=MessageResponse, tags=["Admin"])
def delete_payment(
    request_id: UUID,
    admin: User = Depends(require_admin),
    service: PaymentRequestService = Depends(get_payment_service),
) -> MessageResponse:
    try:
        service.delete_request(request_id)
    except PaymentRequestNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment request not found")
    return MessageResponse(message="Payment request deleted successfully")


@app.post("/payments/{request_id}/approve", response_model=ReviewOutcome, tags=["Admin"])
def approve_payment(
    request_id: UUID,
    admin: User = Depends(require_admin),
    controller: AdminReviewController = Depends(get_review_controller),
) -> ReviewOutcome:
    return _act(controller, request_id, PaymentStatus.APPROVED)


@app.post("/payments/{request_id}/reject", response_model=ReviewOutcome, tags=["Admin"])
def reject_payment(
    request_id: UUID,
    admin: User = Depends(require_admin),
    controller: AdminReviewController = Depends(get_review_controller),
) -> ReviewOutcome:
    return _act(controller, request_id, PaymentStatus.REJECTED)


@app.get("/transactions", response_model=list[Transaction], tags=["Transactions"])
def list_transactions(
    status_filter: Optional[TransactionStatus] = Query(None, alias="status"),
    user: User = Depends(get_current_user),
    service: PaymentRequestService = Depends(get_payment_service),
) -> list[Transaction]:
    return service.list_transactions(user.id, status_filter)


def _act(controller: AdminReviewController, request_id: UUID, decision: PaymentStatus) -> ReviewOutcome:
    controller.list_pending()
    outcome = controller.act(request_id, decision)
    if outcome.success:
        return outcome
    raise HTTPException(
        status_code=REVIEW_ERROR_STATUS.get(outcome.error, status.HTTP_400_BAD_REQUEST),
        detail=outcome.message,
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
