"""Password hashing and bearer-credential helpers."""

import hashlib
from typing import Optional

import bcrypt
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from workbench.core.exceptions import AuthenticationError, InvalidTokenError

# bcrypt only looks at the first 72 bytes and refuses longer input
BCRYPT_MAX_BYTES = 72

# JWT bearer scheme
security_scheme = HTTPBearer(auto_error=False)


def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > BCRYPT_MAX_BYTES


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    pwd_bytes = password.encode("utf-8")
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(pwd_bytes, salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash.

    A password bcrypt cannot hash never matches, so callers see the same
    ``False`` as for a wrong password.
    """
    if password_too_long(plain_password):
        return False
    pwd_bytes = plain_password.encode("utf-8")
    hashed_bytes = hashed_password.encode("utf-8")
    return bcrypt.checkpw(pwd_bytes, hashed_bytes)


def hash_token(token: str) -> str:
    """Digest used to store and look up persisted tokens."""
    return hashlib.sha256(token.encode()).hexdigest()


def require_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials],
    authorization: Optional[str],
) -> str:
    """Return the token parsed by ``security_scheme``.

    ``authorization`` is the raw header, only used to tell an absent header
    from one that carries no Bearer token.

    Raises:
        AuthenticationError: If the header is absent.
        InvalidTokenError: If the scheme is not Bearer or no token follows it.
    """
    if credentials is not None and credentials.credentials.strip():
        return credentials.credentials.strip()
    if not authorization or not authorization.strip():
        raise AuthenticationError("Authorization header missing")
    raise InvalidTokenError("Bearer token missing")
