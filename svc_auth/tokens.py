"""
Signed tokens carrying an ``email:password:role`` subject.
"""

import os
import time
from typing import NamedTuple, Optional

from jose import JWTError, jwt

SECRET = os.getenv("TOKEN_SECRET", "change-me-flight-booking-secret")
EXPIRATION_MS = int(os.getenv("TOKEN_EXPIRATION_MS", "3600000"))
ALGORITHM = "HS256"


class Subject(NamedTuple):
    email: str
    password: str
    role: str


def generate_token(email: str, password: str, role: str,
                   secret: str = SECRET, expiration_ms: int = EXPIRATION_MS) -> str:
    issued_at = int(time.time())
    claims = {
        "sub": f"{email}:{password}:{role}",
        "iat": issued_at,
        "exp": issued_at + expiration_ms // 1000,
    }
    return jwt.encode(claims, secret, algorithm=ALGORITHM)


def decode_subject(token: str, secret: str = SECRET) -> str:
    """Verify signature and expiry and return the raw subject.

    Raises ``JWTError`` when the token is not acceptable.
    """
    claims = jwt.decode(token, secret, algorithms=[ALGORITHM])
    subject = claims.get("sub")
    if not subject:
        raise JWTError("Token has no subject")
    return subject


def parse_subject(subject: str) -> Optional[Subject]:
    # email carries no ':' and role is last, so the password may contain ':'
    email, sep, rest = subject.partition(":")
    password, sep2, role = rest.rpartition(":")
    if not sep or not sep2 or not email:
        return None
    return Subject(email, password, role)


def read_token(token: str, secret: str = SECRET) -> Optional[Subject]:
    try:
        return parse_subject(decode_subject(token, secret))
    except JWTError:
        return None


def strip_bearer(header: Optional[str]) -> Optional[str]:
    if not header or not header.startswith("Bearer "):
        return None
    return header[len("Bearer "):].strip() or None
