"""User registration, login, profile and account-recovery routes."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.core.security import (
    create_access_token,
    hash_password,
    mask_email,
    verify_password,
)
from app.db.models import User
from app.db.session import get_db
from app.schemas.common import SuccessResponse
from app.schemas.user import (
    AuthResponse,
    ForgotEmailRequest,
    ForgotEmailResponse,
    PasswordChange,
    ProfileUpdate,
    UserCreate,
    UserLogin,
    UserRead,
)
from app.services.unit_of_work import transaction

logger = logging.getLogger(__name__)
router = APIRouter()


def _auth_response(user: User) -> AuthResponse:
    token = create_access_token(data={"sub": str(user.id), "role": user.role.value})
    return AuthResponse(access_token=token, user=UserRead.model_validate(user))


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(body: UserCreate, db: Session = Depends(get_db)):
    """Create a player account."""
    email = body.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )
    if body.phone and db.query(User).filter(User.phone == body.phone).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Phone number already registered",
        )

    try:
        hashed = hash_password(body.password)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    user = User(email=email, hashed_password=hashed, name=body.name, phone=body.phone)
    with transaction(db, "registration"):
        db.add(user)
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return _auth_response(user)


@router.post("/login", response_model=AuthResponse)
def login(body: UserLogin, db: Session = Depends(get_db)):
    """Authenticate and return a JWT access token + user profile."""
    user = db.query(User).filter(User.email == body.email.lower()).first()
    if not user or not verify_password(body.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account deactivated",
        )
    return _auth_response(user)


@router.get("/me", response_model=UserRead)
def me(current_user: User = Depends(get_current_user)):
    """Return the authenticated user's profile, including points and balance."""
    return current_user


@router.post("/forgot-email", response_model=ForgotEmailResponse)
def forgot_email(body: ForgotEmailRequest, db: Session = Depends(get_db)):
    """Look up the account registered to a phone number and return its masked email."""
    user = db.query(User).filter(User.phone == body.phone).first()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No account found with this phone number",
        )
    return ForgotEmailResponse(masked_email=mask_email(user.email))


@router.patch("/me", response_model=UserRead)
def update_profile(
    body: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Change name, email or phone; email and phone stay unique across accounts."""
    changes = body.model_dump(exclude_unset=True)
    if "email" in changes:
        changes["email"] = changes["email"].lower()
        taken = (
            db.query(User)
            .filter(User.email == changes["email"], User.id != current_user.id)
            .first()
        )
        if taken:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email already in use",
            )
    if changes.get("phone"):
        taken = (
            db.query(User)
            .filter(User.phone == changes["phone"], User.id != current_user.id)
            .first()
        )
        if taken:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Phone number already registered",
            )

    with transaction(db, "profile update"):
        for name, value in changes.items():
            setattr(current_user, name, value)
    db.refresh(current_user)
    logger.info("User %s updated %s", current_user.id, sorted(changes))
    return current_user


@router.put("/me/password", response_model=SuccessResponse)
def change_password(
    body: PasswordChange,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Replace the caller's password after checking the current one."""
    if not verify_password(body.current_password, current_user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect",
        )
    if verify_password(body.new_password, current_user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="New password must be different from current password",
        )

    try:
        hashed = hash_password(body.new_password)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    with transaction(db, "password change"):
        current_user.hashed_password = hashed
    logger.info("User %s changed their password", current_user.id)
    return SuccessResponse(message="Password changed successfully")
