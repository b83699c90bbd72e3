"""Password hashing, JWT tokens and small identity helpers."""

import re
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from app.config import settings

# ── Password hashing ──────────────────────────────────────────────────────────


def hash_password(plain: str) -> str:
    """Return the bcrypt hash of *plain*.

    Raises:
        ValueError: If the password is longer than bcrypt's 72-byte limit
    """
    encoded = plain.encode("utf-8")
    if len(encoded) > 72:
        raise ValueError(
            f"Password is {len(encoded)} bytes, but bcrypt has a "
            f"72-byte limit. Please use a shorter password."
        )
    return bcrypt.hashpw(encoded, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Check *plain* against *hashed*; malformed hashes never match."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


# ── JWT tokens ────────────────────────────────────────────────────────────────


def create_access_token(
    data: dict,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed JWT access token."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict | None:
    """Decode and validate a JWT. Returns payload dict or None on failure."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None


# ── Phone / email helpers (account recovery) ─────────────────────────────────

PHONE_PATTERN = re.compile(r"^(03\d{9}|\+92\d{10})$")


def normalize_phone(phone: str) -> str:
    """'+923001234567' → '03001234567'; local numbers pass through unchanged."""
    phone = phone.strip()
    if phone.startswith("+92"):
        return "0" + phone[3:]
    return phone


def mask_email(email: str) -> str:
    """Hide most of the local part: 'alan@example.com' → 'a***n@example.com'."""
    local, _, domain = email.partition("@")
    if len(local) <= 2:
        return f"{local[:1]}***@{domain}"
    return f"{local[0]}***{local[-1]}@{domain}"
