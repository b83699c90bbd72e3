"""Wallet deposits, admin approval and quiz-access charges."""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from app.config import settings
from app.core.errors import ConflictError, InvalidRequestError, NotFoundError
from app.db.models import (
    PaymentMethodEnum,
    Quiz,
    TransactionStatusEnum,
    User,
    WalletTransaction,
)

logger = logging.getLogger(__name__)

DEPOSIT_METHODS = {
    PaymentMethodEnum.EASYPAISA,
    PaymentMethodEnum.JAZZCASH,
    PaymentMethodEnum.BANK,
}


def submit_deposit(
    db: Session,
    user: User,
    amount: float,
    payment_method: PaymentMethodEnum,
    transaction_ref: str,
) -> WalletTransaction:
    """Record a pending deposit; the balance changes only once an admin approves."""
    if amount < settings.MIN_DEPOSIT_AMOUNT:
        raise InvalidRequestError(
            f"Minimum deposit amount is {settings.MIN_DEPOSIT_AMOUNT:g} PKR",
            details={"amount": amount},
        )
    if payment_method not in DEPOSIT_METHODS:
        raise InvalidRequestError("Invalid payment method")
    ref = transaction_ref.strip()
    if not ref:
        raise InvalidRequestError("Transaction ID is required")

    duplicate = (
        db.query(WalletTransaction).filter(WalletTransaction.transaction_ref == ref).first()
    )
    if duplicate is not None:
        raise ConflictError("This transaction ID has already been submitted")

    tx = WalletTransaction(
        user_id=user.id,
        amount=amount,
        payment_method=payment_method,
        transaction_ref=ref,
        status=TransactionStatusEnum.PENDING,
    )
    db.add(tx)
    db.flush()
    logger.info("Deposit request %s: user %s, %.2f via %s", tx.id, user.id, amount, payment_method.value)
    return tx


def process_transaction(
    db: Session,
    transaction_id: uuid.UUID,
    approve: bool,
    processed_by: str,
    notes: str | None = None,
) -> WalletTransaction:
    """Approve (credit the wallet) or reject a pending deposit."""
    tx = (
        db.query(WalletTransaction)
        .filter(WalletTransaction.id == transaction_id)
        .with_for_update()
        .first()
    )
    if tx is None:
        raise NotFoundError("Transaction not found")
    if tx.status != TransactionStatusEnum.PENDING:
        raise ConflictError(f"Transaction is already {tx.status.value}")

    tx.processed_at = datetime.now(timezone.utc)
    tx.processed_by = processed_by
    if approve:
        tx.status = TransactionStatusEnum.APPROVED
        tx.user.wallet_balance = (tx.user.wallet_balance or 0.0) + tx.amount
        logger.info("Approved deposit %s → user %s balance %.2f", tx.id, tx.user_id, tx.user.wallet_balance)
    else:
        tx.status = TransactionStatusEnum.REJECTED
        tx.admin_notes = notes
        logger.info("Rejected deposit %s (%s)", tx.id, notes or "no reason given")
    db.flush()
    return tx


def charge_quiz_access(db: Session, user: User, quiz: Quiz) -> WalletTransaction:
    """Deduct the quiz's access price from the user's wallet."""
    price = quiz.access_price
    if (user.wallet_balance or 0.0) < price:
        raise InvalidRequestError(
            "Insufficient wallet balance for this quiz",
            details={"required": price, "available": user.wallet_balance},
        )
    user.wallet_balance = (user.wallet_balance or 0.0) - price
    tx = WalletTransaction(
        user_id=user.id,
        amount=-price,
        payment_method=PaymentMethodEnum.QUIZ_ACCESS,
        transaction_ref=f"quiz-{quiz.id}-{user.id}",
        status=TransactionStatusEnum.APPROVED,
        processed_at=datetime.now(timezone.utc),
        processed_by="system",
    )
    db.add(tx)
    logger.info("Charged user %s %.2f for quiz %s", user.id, price, quiz.id)
    return tx
