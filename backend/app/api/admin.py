"""Admin back-office routes — quiz authoring, prize claims, wallet deposits, prize catalogue."""

import logging
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import require_admin
from app.core.errors import NotFoundError
from app.db.models import (
    Prize,
    PrizeRedemption,
    Quiz,
    QuizStatusEnum,
    RedemptionStatusEnum,
    TransactionStatusEnum,
    User,
    WalletTransaction,
)
from app.db.session import get_db
from app.schemas.prize import (
    ClaimUpdate,
    PrizeCreate,
    PrizeRead,
    PrizeUpdate,
    RedemptionRead,
    RedemptionStatus,
)
from app.schemas.quiz import (
    QuestionAdminRead,
    QuestionCreate,
    QuestionUpdate,
    QuizAdminRead,
    QuizCreate,
    QuizSummary,
    QuizUpdate,
)
from app.schemas.wallet import (
    TransactionDecision,
    TransactionStatus,
    WalletTransactionRead,
)
from app.services import authoring
from app.services.prizes import update_claim_status
from app.services.unit_of_work import transaction
from app.services.wallet import process_transaction

logger = logging.getLogger(__name__)
router = APIRouter()


# ── Quizzes ───────────────────────────────────────────────────────────────────


@router.get("/quizzes", response_model=list[QuizSummary])
def list_quizzes(
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    return db.query(Quiz).order_by(Quiz.created_at.desc()).all()


@router.post("/quizzes", response_model=QuizAdminRead, status_code=status.HTTP_201_CREATED)
def create_quiz(
    body: QuizCreate,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    """Create a quiz, optionally with its questions in the same request."""
    fields = body.model_dump(exclude={"questions", "title", "status"})
    with transaction(db, "quiz creation"):
        quiz = authoring.create_quiz(
            db,
            body.title,
            questions=[q.model_dump() for q in body.questions],
            status=QuizStatusEnum(body.status.value),
            **fields,
        )
    db.refresh(quiz)
    return quiz


@router.get("/quizzes/{quiz_id}", response_model=QuizAdminRead)
def get_quiz(
    quiz_id: uuid.UUID,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    return authoring.get_quiz(db, quiz_id)


@router.patch("/quizzes/{quiz_id}", response_model=QuizAdminRead)
def update_quiz(
    quiz_id: uuid.UUID,
    body: QuizUpdate,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    changes = body.model_dump(exclude_unset=True)
    if "status" in changes:
        changes["status"] = QuizStatusEnum(changes["status"].value)
    with transaction(db, "quiz update"):
        quiz = authoring.update_quiz(db, authoring.get_quiz(db, quiz_id), **changes)
    db.refresh(quiz)
    return quiz


@router.delete("/quizzes/{quiz_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_quiz(
    quiz_id: uuid.UUID,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    with transaction(db, "quiz deletion"):
        authoring.delete_quiz(db, authoring.get_quiz(db, quiz_id))


@router.post(
    "/quizzes/{quiz_id}/questions",
    response_model=QuestionAdminRead,
    status_code=status.HTTP_201_CREATED,
)
def add_question(
    quiz_id: uuid.UUID,
    body: QuestionCreate,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    with transaction(db, "question creation"):
        quiz = authoring.get_quiz(db, quiz_id)
        question = authoring.add_question(db, quiz, body.text, body.options, body.position)
    db.refresh(question)
    return question


@router.patch("/questions/{question_id}", response_model=QuestionAdminRead)
def update_question(
    question_id: uuid.UUID,
    body: QuestionUpdate,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    with transaction(db, "question update"):
        question = authoring.update_question(
            db,
            authoring.get_question(db, question_id),
            text=body.text,
            options=body.options,
            position=body.position,
        )
    db.refresh(question)
    return question


@router.delete("/questions/{question_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_question(
    question_id: uuid.UUID,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    with transaction(db, "question deletion"):
        authoring.delete_question(db, authoring.get_question(db, question_id))


# ── Prize claims ──────────────────────────────────────────────────────────────


@router.get("/claims", response_model=list[RedemptionRead])
def list_claims(
    claim_status: RedemptionStatus | None = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    """Prize claims, newest first, optionally filtered by status."""
    q = db.query(PrizeRedemption)
    if claim_status is not None:
        q = q.filter(PrizeRedemption.status == RedemptionStatusEnum(claim_status.value))
    claims = q.order_by(PrizeRedemption.requested_at.desc()).offset(skip).limit(limit).all()
    return [RedemptionRead.from_claim(c) for c in claims]


@router.put("/claims/{claim_id}", response_model=RedemptionRead)
def process_claim(
    claim_id: uuid.UUID,
    body: ClaimUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Approve, fulfil or reject a claim. Rejection refunds the points."""
    with transaction(db, "claim update"):
        claim = update_claim_status(
            db, claim_id, RedemptionStatusEnum(body.status.value), notes=body.notes
        )
    logger.info("Admin %s set claim %s to %s", admin.id, claim_id, body.status.value)
    db.refresh(claim)
    return RedemptionRead.from_claim(claim)


# ── Wallet deposits ───────────────────────────────────────────────────────────


@router.get("/wallet-transactions", response_model=list[WalletTransactionRead])
def list_wallet_transactions(
    tx_status: TransactionStatus | None = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    q = db.query(WalletTransaction)
    if tx_status is not None:
        q = q.filter(WalletTransaction.status == TransactionStatusEnum(tx_status.value))
    return q.order_by(WalletTransaction.created_at.desc()).offset(skip).limit(limit).all()


@router.patch("/wallet-transactions/{transaction_id}", response_model=WalletTransactionRead)
def decide_wallet_transaction(
    transaction_id: uuid.UUID,
    body: TransactionDecision,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Approve (credits the wallet) or reject a pending deposit."""
    with transaction(db, "wallet transaction update"):
        tx = process_transaction(
            db,
            transaction_id,
            approve=body.action == "approve",
            processed_by=admin.email,
            notes=body.notes,
        )
    db.refresh(tx)
    return tx


# ── Prize catalogue ───────────────────────────────────────────────────────────


@router.post("/prizes", response_model=PrizeRead, status_code=status.HTTP_201_CREATED)
def create_prize(
    body: PrizeCreate,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    prize = Prize(**body.model_dump())
    with transaction(db, "prize creation"):
        db.add(prize)
    db.refresh(prize)
    return prize


@router.patch("/prizes/{prize_id}", response_model=PrizeRead)
def update_prize(
    prize_id: uuid.UUID,
    body: PrizeUpdate,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    with transaction(db, "prize update"):
        prize = db.query(Prize).filter(Prize.id == prize_id).first()
        if prize is None:
            raise NotFoundError("Prize not found", details={"prize_id": str(prize_id)})
        for name, value in body.model_dump(exclude_unset=True).items():
            setattr(prize, name, value)
    db.refresh(prize)
    return prize
