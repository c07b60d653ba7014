"""Auth service: login, logout, refresh rotation, password reset, email verification."""

import logging
from datetime import timedelta
from typing import Any, Dict, Tuple

from sqlalchemy.orm import Session

from workbench.core.exceptions import (
    AuthenticationError,
    EmailVerificationFailedError,
    PasswordResetFailedError,
    RefreshFailedError,
    ResourceNotFoundError,
)
from workbench.core.security import hash_password, hash_token, verify_password
from workbench.models.token import Token, TokenType
from workbench.models.user import User
from workbench.schemas.schemas import AuthTokensOut
from workbench.services.token_service import TokenService, utcnow
from workbench.services.user_service import user_service

logger = logging.getLogger(__name__)


def _diagnostic(flow: str, exc: Exception) -> Dict[str, Any]:
    # logged by the error handler, never returned to the caller
    return {"flow": flow, "cause": type(exc).__name__, "detail": getattr(exc, "code", None)}


class AuthService:
    """Handles authentication flows on top of a TokenService."""

    def __init__(self, token_service: TokenService):
        self.tokens = token_service

    @staticmethod
    def _revoke(db: Session, record: Token) -> None:
        # identical tokens issued in the same second share a digest; drop every copy
        db.query(Token).filter(
            Token.token_hash == record.token_hash,
            Token.type == record.type,
        ).delete(synchronize_session=False)
        db.flush()

    @staticmethod
    def login(db: Session, email: str, password: str) -> User:
        """Return the user for valid credentials.

        Raises:
            AuthenticationError: Same message for unknown email and wrong password.
        """
        user = user_service.get_by_email(db, email)
        if not user or not verify_password(password, user.hashed_password):
            raise AuthenticationError("Incorrect email or password", code="INCORRECT_CREDENTIALS")
        return user

    @staticmethod
    def logout(db: Session, refresh_token: str) -> None:
        record = (
            db.query(Token)
            .filter(
                Token.token_hash == hash_token(refresh_token),
                Token.type == TokenType.refresh,
                Token.blacklisted.is_(False),
            )
            .first()
        )
        if not record:
            raise ResourceNotFoundError("Not found")
        AuthService._revoke(db, record)
        logger.info("User %s logged out", record.user_id)

    def refresh_auth(self, db: Session, refresh_token: str) -> Tuple[User, AuthTokensOut]:
        """Consume ``refresh_token`` and issue a new pair."""
        try:
            record = self.tokens.verify(db, refresh_token, TokenType.refresh)
            consumed = self.tokens.decode(refresh_token, TokenType.refresh)
            user = user_service.require(db, record.user_id)
            AuthService._revoke(db, record)
            # tokens are deterministic per second; the new pair must not equal the consumed one
            issued_at = max(utcnow(), consumed.issued_at + timedelta(seconds=1))
            tokens = self.tokens.issue_auth_tokens(db, user, issued_at=issued_at)
        except Exception as exc:
            raise RefreshFailedError(diagnostic=_diagnostic("refresh_auth", exc)) from exc
        return user, tokens

    def reset_password(self, db: Session, reset_token: str, new_password: str) -> None:
        """Set a new password and revoke every outstanding reset token of the user."""
        try:
            record = self.tokens.verify(db, reset_token, TokenType.reset_password)
            user = user_service.require(db, record.user_id)
            user.hashed_password = hash_password(new_password)
            self.tokens.delete_for_user(db, user.id, TokenType.reset_password)
        except Exception as exc:
            raise PasswordResetFailedError(diagnostic=_diagnostic("reset_password", exc)) from exc
        logger.info("Password reset for user %s", user.id)

    def verify_email(self, db: Session, verify_token: str) -> User:
        try:
            record = self.tokens.verify(db, verify_token, TokenType.verify_email)
            user = user_service.require(db, record.user_id)
            self.tokens.delete_for_user(db, user.id, TokenType.verify_email)
            user.is_email_verified = True
            db.flush()
        except Exception as exc:
            raise EmailVerificationFailedError(diagnostic=_diagnostic("verify_email", exc)) from exc
        return user
