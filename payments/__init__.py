"""
Payment Request Review

This module provides:
- Deposit and withdrawal requests submitted by users
- Administrator review: pending → approved / rejected
- Real balance mutations owned by a single service
- Append-only transaction ledger entries for every balance change
"""

from .models import (
    PaymentType,
    PaymentStatus,
    TransactionType,
    TransactionStatus,
    PaymentRequest,
    Transaction,
    User,
)
from .service import PaymentRequestService
from .admin import AdminReviewController

__all__ = [
    "PaymentType",
    "PaymentStatus",
    "TransactionType",
    "TransactionStatus",
    "PaymentRequest",
    "Transaction",
    "User",
    "PaymentRequestService",
    "AdminReviewController",
]
