"""Wallet schemas."""

import uuid
from datetime import datetime
from enum import Enum

from pydantic import Field

from app.schemas.common import CamelModel


class PaymentMethod(str, Enum):
    EASYPAISA = "Easypaisa"
    JAZZCASH = "Jazzcash"
    BANK = "Bank"
    QUIZ_ACCESS = "QuizAccess"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class DepositRequest(CamelModel):
    """POST /api/wallet/deposits"""

    amount: float
    payment_method: PaymentMethod
    transaction_id: str = Field(min_length=1, max_length=100)


class WalletTransactionRead(CamelModel):
    id: uuid.UUID
    user_id: uuid.UUID
    amount: float
    payment_method: PaymentMethod
    transaction_ref: str
    status: TransactionStatus
    admin_notes: str | None = None
    processed_at: datetime | None = None
    processed_by: str | None = None
    created_at: datetime


class WalletRead(CamelModel):
    balance: float
    points: int
    transactions: list[WalletTransactionRead]


class TransactionDecision(CamelModel):
    """PATCH /api/admin/wallet-transactions/{id}"""

    action: str = Field(pattern="^(approve|reject)$")
    notes: str | None = None
