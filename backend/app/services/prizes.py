"""Prize redemption with points, and admin processing of claims."""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from app.core.errors import InvalidRequestError, NotFoundError
from app.db.models import Prize, PrizeRedemption, RedemptionStatusEnum, User

logger = logging.getLogger(__name__)


def redeem_prize(
    db: Session,
    user: User,
    prize_id: uuid.UUID,
    full_name: str | None = None,
    whatsapp_number: str | None = None,
    address: str | None = None,
) -> PrizeRedemption:
    """Deduct the prize's points from *user* and open a pending claim."""
    prize = db.query(Prize).filter(Prize.id == prize_id).with_for_update().first()
    if prize is None or not prize.is_active:
        raise NotFoundError("Prize not found or not available")
    if prize.stock <= 0:
        raise InvalidRequestError("Prize is out of stock")
    if user.points < prize.points_required:
        raise InvalidRequestError(
            "Insufficient points",
            details={"required": prize.points_required, "available": user.points},
        )

    user.points -= prize.points_required
    prize.stock -= 1
    redemption = PrizeRedemption(
        user_id=user.id,
        prize_id=prize.id,
        points_used=prize.points_required,
        status=RedemptionStatusEnum.PENDING,
        full_name=full_name,
        whatsapp_number=whatsapp_number,
        address=address,
    )
    db.add(redemption)
    db.flush()
    logger.info(
        "User %s redeemed prize %s for %d points", user.id, prize.id, prize.points_required
    )
    return redemption


def update_claim_status(
    db: Session,
    claim_id: uuid.UUID,
    new_status: RedemptionStatusEnum,
    notes: str | None = None,
) -> PrizeRedemption:
    """Move a claim to *new_status*.

    Rejecting refunds the points and restocks the prize; a rejected claim
    cannot be reopened, so the refund happens at most once.
    """
    claim = db.query(PrizeRedemption).filter(PrizeRedemption.id == claim_id).first()
    if claim is None:
        raise NotFoundError("Claim not found")
    if claim.status == RedemptionStatusEnum.REJECTED and new_status != claim.status:
        raise InvalidRequestError("A rejected claim cannot be reopened")

    if new_status == RedemptionStatusEnum.REJECTED and claim.status != RedemptionStatusEnum.REJECTED:
        claim.user.points += claim.points_used
        claim.prize.stock += 1
        logger.info("Refunded %d points to user %s", claim.points_used, claim.user_id)

    claim.status = new_status
    if notes is not None:
        claim.notes = notes
    claim.processed_at = datetime.now(timezone.utc)
    db.flush()
    return claim
