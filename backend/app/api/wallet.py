"""Player wallet routes."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.db.models import PaymentMethodEnum, User, WalletTransaction
from app.db.session import get_db
from app.schemas.wallet import DepositRequest, WalletRead, WalletTransactionRead
from app.services.unit_of_work import transaction
from app.services.wallet import submit_deposit

router = APIRouter()


@router.get("", response_model=WalletRead)
def get_wallet(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Balance, points and the 50 most recent transactions."""
    transactions = (
        db.query(WalletTransaction)
        .filter(WalletTransaction.user_id == current_user.id)
        .order_by(WalletTransaction.created_at.desc())
        .limit(50)
        .all()
    )
    return WalletRead(
        balance=current_user.wallet_balance or 0.0,
        points=current_user.points or 0,
        transactions=[WalletTransactionRead.model_validate(t) for t in transactions],
    )


@router.post(
    "/deposits", response_model=WalletTransactionRead, status_code=status.HTTP_201_CREATED
)
def deposit(
    body: DepositRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Report a mobile-wallet or bank transfer; credited once an admin approves it."""
    with transaction(db, "deposit request"):
        tx = submit_deposit(
            db,
            current_user,
            body.amount,
            PaymentMethodEnum(body.payment_method.value),
            body.transaction_id,
        )
    db.refresh(tx)
    return tx
