"""Persisted tokens (refresh, reset-password, verify-email)."""

import enum

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Integer, String, func

from workbench.db.base import Base


class TokenType(str, enum.Enum):
    access = "access"
    refresh = "refresh"
    reset_password = "resetPassword"
    verify_email = "verifyEmail"


class Token(Base):
    """Stored token for single-use validation and revocation.

    Only the SHA-256 digest of the signed token is kept.
    """
    __tablename__ = "tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    token_hash = Column(String(64), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(Enum(TokenType), nullable=False)
    expires = Column(DateTime, nullable=False)
    blacklisted = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
