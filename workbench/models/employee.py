"""Employee model."""

from sqlalchemy import Column, Date, ForeignKey, Integer, String

from workbench.db.base import Base, TimestampMixin


class Employee(TimestampMixin, Base):
    """Employee record linked one-to-one with a user account."""
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    job_title = Column(String(100), nullable=False)
    phone_number = Column(String(30), nullable=True)
    date_of_hire = Column(Date, nullable=True)
