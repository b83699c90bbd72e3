"""Prize catalogue and redemption routes for players."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.db.models import Prize, PrizeRedemption, User
from app.db.session import get_db
from app.schemas.prize import PrizeRead, RedemptionRead, RedemptionRequest
from app.services.prizes import redeem_prize
from app.services.unit_of_work import transaction

router = APIRouter()


@router.get("/prizes", response_model=list[PrizeRead])
def list_prizes(db: Session = Depends(get_db)):
    """Active prizes, cheapest first."""
    return (
        db.query(Prize)
        .filter(Prize.is_active.is_(True))
        .order_by(Prize.points_required, Prize.name)
        .all()
    )


@router.post(
    "/prize-redemption", response_model=RedemptionRead, status_code=status.HTTP_201_CREATED
)
def redeem(
    body: RedemptionRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Spend points on a prize; the claim waits for admin processing."""
    with transaction(db, "prize redemption"):
        claim = redeem_prize(
            db,
            current_user,
            body.prize_id,
            full_name=body.full_name,
            whatsapp_number=body.whatsapp_number,
            address=body.address,
        )
    db.refresh(claim)
    return RedemptionRead.from_claim(claim)


@router.get("/prize-redemption", response_model=list[RedemptionRead])
def my_redemptions(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    claims = (
        db.query(PrizeRedemption)
        .filter(PrizeRedemption.user_id == current_user.id)
        .order_by(PrizeRedemption.requested_at.desc())
        .all()
    )
    return [RedemptionRead.from_claim(c) for c in claims]
