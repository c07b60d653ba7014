"""Token service: issue, persist and verify typed JWTs."""

import calendar
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy.orm import Session

from workbench.core.config import Settings
from workbench.core.exceptions import InvalidTokenError, ResourceNotFoundError, TokenExpiredError
from workbench.core.security import hash_token
from workbench.models.token import Token, TokenType
from workbench.models.user import User, normalize_email
from workbench.schemas.schemas import AuthTokensOut, TokenOut

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Naive UTC timestamp, the form stored in the tokens table."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _epoch(value: datetime) -> int:
    # naive values are UTC
    return calendar.timegm(value.utctimetuple())


@dataclass
class TokenPayload:
    user_id: int
    token_type: TokenType
    issued_at: datetime
    expires: datetime


class TokenService:
    """Signs and checks access, refresh, reset-password and verify-email tokens."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def issue(
        self,
        subject_id: int,
        expires: datetime,
        token_type: TokenType,
        secret: Optional[str] = None,
        issued_at: Optional[datetime] = None,
    ) -> str:
        """Sign a typed token. Equal arguments (and equal ``issued_at``) give an equal token."""
        payload = {
            "sub": str(subject_id),
            "iat": _epoch(issued_at or utcnow()),
            "exp": _epoch(expires),
            "type": TokenType(token_type).value,
        }
        return jwt.encode(
            payload,
            secret or self.settings.JWT_SECRET,
            algorithm=self.settings.JWT_ALGORITHM,
        )

    def persist(
        self,
        db: Session,
        token: str,
        user_id: int,
        expires: datetime,
        token_type: TokenType,
        blacklisted: bool = False,
    ) -> Token:
        if expires.tzinfo is not None:
            expires = expires.astimezone(timezone.utc).replace(tzinfo=None)
        record = Token(
            token_hash=hash_token(token),
            user_id=user_id,
            type=TokenType(token_type),
            expires=expires,
            blacklisted=blacklisted,
        )
        db.add(record)
        db.flush()
        return record

    def decode(self, token: str, expected_type: TokenType) -> TokenPayload:
        """Check signature, expiry and ``type`` claim without touching storage.

        Raises:
            TokenExpiredError: Signature is valid but ``exp`` has passed.
            InvalidTokenError: Malformed, tampered or of another type.
        """
        try:
            claims = jwt.decode(
                token,
                self.settings.JWT_SECRET,
                algorithms=[self.settings.JWT_ALGORITHM],
            )
        except ExpiredSignatureError as exc:
            raise TokenExpiredError() from exc
        except JWTError as exc:
            raise InvalidTokenError() from exc

        if claims.get("type") != TokenType(expected_type).value:
            raise InvalidTokenError("Invalid token type")
        try:
            user_id = int(claims["sub"])
            issued_at = datetime.fromtimestamp(int(claims["iat"]), tz=timezone.utc)
            expires = datetime.fromtimestamp(int(claims["exp"]), tz=timezone.utc)
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidTokenError() from exc

        return TokenPayload(
            user_id=user_id,
            token_type=TokenType(expected_type),
            issued_at=issued_at.replace(tzinfo=None),
            expires=expires.replace(tzinfo=None),
        )

    def verify(self, db: Session, token: str, expected_type: TokenType) -> Token:
        """Decode ``token`` and require a live stored record for it.

        Access tokens are never stored, so they can never pass here.
        """
        if TokenType(expected_type) == TokenType.access:
            raise InvalidTokenError("Access tokens are not stored")

        payload = self.decode(token, expected_type)
        record = (
            db.query(Token)
            .filter(
                Token.token_hash == hash_token(token),
                Token.type == TokenType(expected_type),
                Token.user_id == payload.user_id,
                Token.blacklisted.is_(False),
            )
            .first()
        )
        if not record:
            raise InvalidTokenError("Token not found")
        return record

    def issue_auth_tokens(
        self, db: Session, user: User, issued_at: Optional[datetime] = None
    ) -> AuthTokensOut:
        """Issue a fresh access token and a persisted refresh token."""
        now = issued_at or utcnow()
        access_expires = now + timedelta(minutes=self.settings.JWT_ACCESS_EXPIRATION_MINUTES)
        access_token = self.issue(user.id, access_expires, TokenType.access, issued_at=now)

        refresh_expires = now + timedelta(days=self.settings.JWT_REFRESH_EXPIRATION_DAYS)
        refresh_token = self.issue(user.id, refresh_expires, TokenType.refresh, issued_at=now)
        self.persist(db, refresh_token, user.id, refresh_expires, TokenType.refresh)

        return AuthTokensOut(
            access=TokenOut(token=access_token, expires=access_expires),
            refresh=TokenOut(token=refresh_token, expires=refresh_expires),
        )

    def issue_reset_password_token(self, db: Session, email: str) -> str:
        user = db.query(User).filter(User.email == normalize_email(email)).first()
        if not user:
            raise ResourceNotFoundError("No users found with this email", code="USER_NOT_FOUND")

        expires = utcnow() + timedelta(minutes=self.settings.JWT_RESET_PASSWORD_EXPIRATION_MINUTES)
        token = self.issue(user.id, expires, TokenType.reset_password)
        self.persist(db, token, user.id, expires, TokenType.reset_password)
        return token

    def issue_verify_email_token(self, db: Session, user: User) -> str:
        expires = utcnow() + timedelta(minutes=self.settings.JWT_VERIFY_EMAIL_EXPIRATION_MINUTES)
        token = self.issue(user.id, expires, TokenType.verify_email)
        self.persist(db, token, user.id, expires, TokenType.verify_email)
        return token

    def delete_for_user(self, db: Session, user_id: int, token_type: TokenType) -> int:
        deleted = (
            db.query(Token)
            .filter(Token.user_id == user_id, Token.type == TokenType(token_type))
            .delete(synchronize_session=False)
        )
        db.flush()
        return deleted

    def purge_expired(self, db: Session, now: Optional[datetime] = None) -> int:
        """Delete every stored token whose expiry has passed."""
        cutoff = now or utcnow()
        if cutoff.tzinfo is not None:
            cutoff = cutoff.astimezone(timezone.utc).replace(tzinfo=None)
        deleted = db.query(Token).filter(Token.expires < cutoff).delete(synchronize_session=False)
        db.flush()
        logger.info("Purged %d expired tokens", deleted)
        return deleted
