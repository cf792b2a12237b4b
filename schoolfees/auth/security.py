import secrets
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from jose import jwt

from schoolfees.core.config import settings


def verify_admin_credentials(email: str, password: str) -> bool:
    """Check login against the configured administrator account."""
    email_ok = secrets.compare_digest(email.strip().lower(), settings.admin_email.strip().lower())
    password_ok = secrets.compare_digest(password.encode("utf-8"), settings.admin_password.encode("utf-8"))
    return email_ok and password_ok


def create_access_token(
    *, subject: Dict, expires_minutes: Optional[int] = None
) -> str:
    if expires_minutes is None:
        expires_minutes = settings.access_token_expire_minutes

    to_encode = subject.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(
        to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm
    )
    return encoded_jwt


def decode_access_token(token: str) -> Dict:
    """Raises jose.JWTError when the token is malformed, badly signed or expired."""
    return jwt.decode(
        token,
        settings.jwt_secret_key,
        algorithms=[settings.jwt_algorithm],
    )
