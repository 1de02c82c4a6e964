import logging
import threading
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from .models import (
    PaymentType,
    PaymentStatus,
    TransactionType,
    TransactionStatus,
    User,
    PaymentRequest,
    Transaction,
    SubmitPaymentRequest,
    PaymentRequestPatch,
)

logger = logging.getLogger(__name__)


class PaymentServiceError(Exception):
    pass


class PaymentRequestNotFoundError(PaymentServiceError):
    pass


class UserNotFoundError(PaymentServiceError):
    pass


class InsufficientBalanceError(PaymentServiceError):
    pass


class InvalidDecisionError(PaymentServiceError):
    pass


class InvalidStateTransitionError(PaymentServiceError):
    pass


ADMIN_USER_ID = UUID("550e8400-e29b-41d4-a716-446655440000")
PLAYER_USER_ID = UUID("660e8400-e29b-41d4-a716-446655440001")


class InMemoryStorage:
    def __init__(self, seed: bool = True):
        self.users: dict[UUID, dict] = {}
        self.payment_requests: dict[UUID, dict] = {}
        self.transactions: dict[UUID, dict] = {}
        # Guards every insert and snapshot, and the whole read-modify-write of a review.
        self.lock = threading.RLock()
        if seed:
            self._seed_data()

    def _seed_data(self):
        now = datetime.now(timezone.utc)
        self.users[ADMIN_USER_ID] = {
            "id": ADMIN_USER_ID, "name": "Site Admin",
            "email": "admin@example.com", "is_admin": True,
            "real_balance": Decimal("0.00"), "demo_balance": Decimal("0.00"),
            "created_at": now,
        }
        self.users[PLAYER_USER_ID] = {
            "id": PLAYER_USER_ID, "name": "Demo Player",
            "email": "player@example.com", "is_admin": False,
            "real_balance": Decimal("100.00"), "demo_balance": Decimal("1000.00"),
            "created_at": now,
        }

    def all_requests(self) -> list[dict]:
        with self.lock:
            return list(self.payment_requests.values())

    def all_transactions(self) -> list[dict]:
        with self.lock:
            return list(self.transactions.values())

    def find_requests_by_status(self, status: PaymentStatus) -> list[dict]:
        return [r for r in self.all_requests() if r["status"] == status]

    def save_request(self, request_data: dict):
        with self.lock:
            request_data["updated_at"] = datetime.now(timezone.utc)
            self.payment_requests[request_data["id"]] = request_data

    def save_user(self, user_data: dict):
        with self.lock:
            self.users[user_data["id"]] = user_data

    def create_transaction(self, transaction_data: dict) -> dict:
        with self.lock:
            self.transactions[transaction_data["id"]] = transaction_data
        return transaction_data

    def delete_request(self, request_id: UUID):
        with self.lock:
            del self.payment_requests[request_id]


class PaymentRequestService:
    """Enacts administrative decisions on payment requests.

    This is the only place that touches ``real_balance`` or appends to the
    transaction ledger. Callers pass decisions in, they never compute
    balance deltas themselves.
    """

    def __init__(self, storage: Optional[InMemoryStorage] = None):
        self.storage = storage or InMemoryStorage()

    def create_user(
        self,
        name: str,
        email: str,
        real_balance: Decimal = Decimal("0.00"),
        is_admin: bool = False,
    ) -> User:
        user_data = {
            "id": uuid4(),
            "name": name,
            "email": email,
            "is_admin": is_admin,
            "real_balance": Decimal(str(real_balance)),
            "demo_balance": Decimal("0.00"),
            "created_at": datetime.now(timezone.utc),
        }
        user = User(**user_data)
        self.storage.save_user(user_data)
        return user

    def get_user(self, user_id: UUID) -> User:
        user_data = self.storage.users.get(user_id)
        if not user_data:
            raise UserNotFoundError(f"User {user_id} not found")
        return User(**user_data)

    def submit_request(self, user_id: UUID, request: SubmitPaymentRequest) -> PaymentRequest:
        user = self.get_user(user_id)
        now = datetime.now(timezone.utc)
        request_data = {
            "id": uuid4(),
            "user_id": user.id,
            "user_name": user.name,
            "type": request.type,
            "amount": request.amount,
            "method": request.method,
            "account_details": request.account_details,
            "transaction_id": request.transaction_id,
            "screenshot": request.screenshot,
            "status": PaymentStatus.PENDING,
            "admin_notes": "",
            "created_at": now,
            "updated_at": now,
        }
        self.storage.save_request(request_data)
        logger.info("Payment request %s submitted: %s %s by user %s",
                    request_data["id"], request.type.value, request.amount, user.id)
        return PaymentRequest(**request_data)

    def get_request(self, request_id: UUID) -> PaymentRequest:
        return PaymentRequest(**self._load_request(request_id))

    def list_requests(
        self,
        user_id: Optional[UUID] = None,
        status: Optional[PaymentStatus] = None,
    ) -> list[PaymentRequest]:
        requests = [
            PaymentRequest(**r) for r in self.storage.all_requests()
            if (user_id is None or r["user_id"] == user_id)
            and (status is None or r["status"] == status)
        ]
        requests.sort(key=lambda r: r.created_at, reverse=True)
        return requests

    def list_pending_requests(self) -> list[PaymentRequest]:
        pending = [PaymentRequest(**r) for r in self.storage.find_requests_by_status(PaymentStatus.PENDING)]
        pending.sort(key=lambda r: r.created_at)
        return pending

    def list_transactions(
        self,
        user_id: UUID,
        status: Optional[TransactionStatus] = None,
    ) -> list[Transaction]:
        entries = [
            Transaction(**t) for t in self.storage.all_transactions()
            if t["user_id"] == user_id and (status is None or t["status"] == status)
        ]
        entries.sort(key=lambda t: t.created_at, reverse=True)
        return entries

    def review_request(self, request_id: UUID, patch: PaymentRequestPatch) -> PaymentRequest:
        with self.storage.lock:
            request_data = dict(self._load_request(request_id))
            old_status = request_data["status"]
            if not PaymentRequest(**request_data).can_move_to(patch.status):
                raise InvalidStateTransitionError(
                    f"Cannot move payment request from {old_status.value} to {patch.status.value}"
                )

            request_data.update(patch.model_dump(exclude_unset=True, exclude_none=True))
            self.storage.save_request(request_data)
            new_status = request_data["status"]

            if new_status == PaymentStatus.APPROVED and old_status != PaymentStatus.APPROVED:
                self._apply_approval(request_data, old_status)

            if (
                new_status == PaymentStatus.REJECTED
                and old_status == PaymentStatus.PENDING
                and request_data["type"] == PaymentType.WITHDRAW
            ):
                self._record_rejected_withdrawal(request_data)

            if new_status != old_status:
                logger.info("Payment request %s moved %s -> %s",
                            request_id, old_status.value, new_status.value)
            return PaymentRequest(**request_data)

    def delete_request(self, request_id: UUID) -> None:
        with self.storage.lock:
            request_data = self._load_request(request_id)
            self.storage.delete_request(request_id)
        logger.info("Payment request %s deleted with status %s",
                    request_id, request_data["status"].value)

    def _apply_approval(self, request_data: dict, old_status: PaymentStatus):
        stored_user = self.storage.users.get(request_data["user_id"])
        if not stored_user:
            request_data["status"] = old_status
            self.storage.save_request(request_data)
            raise UserNotFoundError(
                f"User {request_data['user_id']} for payment request {request_data['id']} not found"
            )

        user_data = dict(stored_user)

        amount = request_data["amount"]
        if request_data["type"] == PaymentType.DEPOSIT:
            user_data["real_balance"] += amount
            self._append_transaction(
                request_data,
                TransactionType.DEPOSIT,
                TransactionStatus.COMPLETED,
                f"Deposit via {request_data['method']} - {request_data['transaction_id'] or ''}",
            )
        else:
            if user_data["real_balance"] < amount:
                request_data["status"] = PaymentStatus.REJECTED
                self.storage.save_request(request_data)
                logger.warning(
                    "Withdrawal %s for %s rejected: balance %s is insufficient",
                    request_data["id"], amount, user_data["real_balance"],
                )
                raise InsufficientBalanceError("Insufficient balance for withdrawal")
            user_data["real_balance"] -= amount
            self._append_transaction(
                request_data,
                TransactionType.WITHDRAW,
                TransactionStatus.COMPLETED,
                f"Withdrawal via {request_data['method']} to {request_data['account_details'] or ''}",
            )
        self.storage.save_user(user_data)

    def _record_rejected_withdrawal(self, request_data: dict):
        # Balance is only deducted on approval, so nothing to refund here.
        if request_data["user_id"] not in self.storage.users:
            logger.warning("Skipping rejected withdrawal entry for %s: user %s not found",
                           request_data["id"], request_data["user_id"])
            return
        self._append_transaction(
            request_data,
            TransactionType.WITHDRAW,
            TransactionStatus.REJECTED,
            "Withdrawal rejected",
        )

    def _append_transaction(
        self,
        request_data: dict,
        entry_type: TransactionType,
        status: TransactionStatus,
        details: str,
    ) -> Transaction:
        entry_data = {
            "id": uuid4(),
            "user_id": request_data["user_id"],
            "type": entry_type,
            "amount": request_data["amount"],
            "status": status,
            "method": request_data["method"],
            "details": details,
            "created_at": datetime.now(timezone.utc),
        }
        self.storage.create_transaction(entry_data)
        return Transaction(**entry_data)

    def _load_request(self, request_id: UUID) -> dict:
        request_data = self.storage.payment_requests.get(request_id)
        if not request_data:
            raise PaymentRequestNotFoundError(f"Payment request {request_id} not found")
        return request_data
