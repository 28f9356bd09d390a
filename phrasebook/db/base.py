"""
Database Base Classes and Common Utilities

This module provides the foundation for all database models in the application.

Key Concepts:
--------------
1. DeclarativeBase: SQLAlchemy's base class that enables ORM functionality
2. CommonTableAttributes: id / created_at / updated_at shared by every table
3. Naming convention: deterministic constraint names, so the CHECK constraint
   on phrases is always called ``ck_phrases_processing_state`` and Alembic
   can refer to it by name

Learning Resources:
- SQLAlchemy Declarative Base: https://docs.sqlalchemy.org/en/20/orm/declarative_config.html
- Constraint Naming Conventions: https://alembic.sqlalchemy.org/en/latest/naming.html
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, MetaData, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, registry


# ================================
# Naming Convention for Constraints
# ================================
# Format examples:
# - ix_phrases_category: Index on 'phrases' table, 'category' column
# - uq_settings_key: Unique constraint on 'settings.key'
# - ck_phrases_processing_state: Named check constraint
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

orm_registry = registry(metadata=metadata)


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


# ================================
# Base DeclarativeBase Class
# ================================
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Usage:
        class Phrase(Base):
            __tablename__ = "phrases"
            id: Mapped[int] = mapped_column(primary_key=True)
    """

    registry = orm_registry
    metadata = metadata

    __tablename__: str


# ================================
# Common Table Attributes Mixin
# ================================
class CommonTableAttributes:
    """
    Mixin that provides common fields and methods to all models.

    Common Fields Added:
    --------------------
    - id: Primary key (auto-incrementing integer)
    - created_at: When the record was created (set once, never changes)
    - updated_at: When the record was last modified (updates automatically)

    Timestamps are timezone-aware UTC. Conversion to a display timezone
    (e.g. for the activity heatmap) happens in the application layer.
    """

    id: Mapped[int] = mapped_column(
        primary_key=True,
        autoincrement=True,
        comment="Auto-incrementing primary key"
    )

    # default=utcnow runs once on INSERT; the column is never rewritten
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        comment="Timestamp when record was created (UTC)"
    )

    # onupdate also fires for Core update() statements that don't set it
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
        comment="Timestamp when record was last updated (UTC)"
    )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self.id})"


# ================================
# Convenient Base Model
# ================================
class BaseModel(Base, CommonTableAttributes):
    """
    Ready-to-use base class for all application models.

    Every model automatically gets:
    - Primary key (id)
    - Creation timestamp (created_at)
    - Update timestamp (updated_at)
    - A short __repr__()
    """

    __abstract__ = True


# ================================
# String Length Constraints
# ================================
String50 = String(50)  # Example: category labels, settings key
String255 = String(255)  # Example: API keys, model identifiers
String500 = String(500)  # Example: phrase source attribution
