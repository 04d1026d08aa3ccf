"""
Mixins for SQLAlchemy models.
Provides reusable column sets for audit timestamps.
"""
from sqlalchemy import Column, DateTime
from sqlalchemy.sql import func


class TimestampMixin:
    """
    Adds audit timestamp columns to any model.

    Provides:
    - created_at: Automatic timestamp (UTC) when record is created
    - updated_at: Automatic timestamp (UTC) when record is modified

    Usage:
        class MyModel(Base, TimestampMixin):
            __tablename__ = "my_table"
            id = Column(String, primary_key=True)
            # created_at and updated_at are inherited automatically
    """

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="UTC timestamp when record was created"
    )

    updated_at = Column(
        DateTime(timezone=True),
        onupdate=func.now(),
        comment="UTC timestamp when record was last updated"
    )
