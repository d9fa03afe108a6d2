from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError
from slotbook.core.config import settings

ALGORITHM = "HS256"

ROLE_ADMIN = "admin"
ROLE_PARTNER = "partner"


def create_access_token(
    subject: str,
    role: str = ROLE_PARTNER,
    partner_id: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Mint a token in the same shape the external auth service issues."""
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode = {"exp": expire, "sub": str(subject), "role": role}
    if partner_id is not None:
        to_encode["partner_id"] = str(partner_id)
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """Returns the claims dict or None if token is invalid/expired."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None
    if not payload.get("sub"):
        return None
    return payload
