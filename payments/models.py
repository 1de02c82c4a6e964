from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field, ConfigDict, EmailStr


class PaymentType(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class TransactionType(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    BET = "bet"
    WIN = "win"
    BONUS = "bonus"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    REJECTED = "rejected"


class User(BaseModel):
    id: UUID
    name: str
    email: EmailStr
    is_admin: bool = False
    real_balance: Decimal = Field(default=Decimal("0.00"), ge=0)
    demo_balance: Decimal = Decimal("0.00")
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaymentRequest(BaseModel):
    id: UUID
    user_id: UUID
    user_name: str
    type: PaymentType
    amount: Decimal
    method: str
    account_details: str = ""
    transaction_id: str = ""
    screenshot: str = ""
    status: PaymentStatus = PaymentStatus.PENDING
    admin_notes: str = ""
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    def is_pending(self) -> bool:
        return self.status == PaymentStatus.PENDING

    def can_move_to(self, status: Optional[PaymentStatus]) -> bool:
        # approved and rejected are terminal; re-saving the same status is a no-op
        return status is None or self.is_pending() or status == self.status


class Transaction(BaseModel):
    id: UUID
    user_id: UUID
    type: TransactionType
    amount: Decimal
    status: TransactionStatus = TransactionStatus.PENDING
    method: str = ""
    details: str = ""
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SubmitPaymentRequest(BaseModel):
    type: PaymentType
    amount: Decimal = Field(..., gt=0)
    method: str = Field(..., min_length=1)
    account_details: str = ""
    transaction_id: str = ""
    screenshot: str = ""

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "type": "deposit",
            "amount": 25,
            "method": "card",
            "transaction_id": "TX-20240101-001"
        }
    })


class PaymentRequestPatch(BaseModel):
    """Fields an administrator may change on a payment request.

    ``type``, ``amount`` and ownership are immutable, so unknown keys are
    rejected rather than silently merged.
    """
    status: Optional[PaymentStatus] = None
    admin_notes: Optional[str] = None
    method: Optional[str] = None
    account_details: Optional[str] = None
    transaction_id: Optional[str] = None
    screenshot: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class ReviewOutcome(BaseModel):
    success: bool
    request: Optional[PaymentRequest] = None
    pending: list[PaymentRequest] = Field(default_factory=list)
    message: str
    error: Optional[str] = None


class MessageResponse(BaseModel):
    message: str
