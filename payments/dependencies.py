from fastapi import Depends

from .admin import AdminReviewController
from .config import get_settings
from .service import InMemoryStorage, PaymentRequestService

payment_service = PaymentRequestService(InMemoryStorage(seed=get_settings().seed_demo_data))


def get_payment_service() -> PaymentRequestService:
    return payment_service


def get_review_controller(
    service: PaymentRequestService = Depends(get_payment_service),
) -> AdminReviewController:
    return AdminReviewController(service)
