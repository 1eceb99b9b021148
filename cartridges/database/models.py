"""
SQLAlchemy models for the relational cartridge store.
Provides cross-database compatibility using SQLAlchemy ORM.
"""

from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base

from cartridges.schemas import utcnow

Base: Any = declarative_base()


class CartridgeRecord(Base):
    """Cartridge table - one row per memory cartridge"""

    __tablename__ = "cartridges"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    episodic_memory = Column(JSON, nullable=False, default=dict)
    semantic_memory = Column(JSON, nullable=False, default=dict)
    procedural_memory = Column(JSON, nullable=False, default=dict)
    metadata_ = Column("metadata", JSON, nullable=False, default=dict)
    is_active = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("idx_cartridge_updated", "updated_at"),
        Index("idx_cartridge_active", "is_active"),
    )


class MessageRecord(Base):
    """Chat messages table"""

    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    content = Column(Text, nullable=False)
    role = Column(String(16), nullable=False)
    # Plain columns: deleting a cartridge leaves these references dangling.
    cartridge_id = Column(Integer)
    selected_cartridge_id = Column(Integer)
    match_score = Column(Integer)
    token_count = Column(Integer)
    cost = Column(String(32))
    metadata_ = Column("metadata", JSON, default=dict)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("idx_message_created", "created_at"),
        Index("idx_message_cartridge", "cartridge_id"),
    )
