"""Declarative base shared by all models."""

from sqlalchemy import Column, DateTime, func
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# largest value a signed INT primary key holds
MAX_ID = 2**31 - 1


class TimestampMixin:
    """Adds created_at / updated_at columns."""

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)
