"""
Relational cartridge store backed by SQLAlchemy.

Works with SQLite, PostgreSQL and MySQL connection strings. Memory
compartments and metadata are stored as JSON documents in their camelCase
wire form.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from loguru import logger
from sqlalchemy import create_engine, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ..database.models import Base, CartridgeRecord, MessageRecord
from ..schemas import (
    Cartridge,
    CartridgeCreate,
    CartridgeUpdate,
    Message,
    MessageCreate,
    utcnow,
)
from ..utils.exceptions import StorageError
from .base import CartridgeStore

_JSON_COLUMNS = {
    "episodic_memory": "episodic_memory",
    "semantic_memory": "semantic_memory",
    "procedural_memory": "procedural_memory",
    "metadata": "metadata_",
}


class SQLAlchemyCartridgeStore(CartridgeStore):
    """Store variant persisting cartridges and messages in a SQL database.

    Sessions are synchronous; each coroutine runs its statements to
    completion without suspending, matching the single-request model of the
    selector.
    """

    def __init__(self, database_connect: str, *, echo: bool = False):
        self.database_connect = database_connect
        self.engine = self._create_engine(database_connect, echo=echo)
        self.database_type = self.engine.dialect.name
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)
        Base.metadata.create_all(self.engine)
        logger.info(f"Initialized SQLAlchemy cartridge store for {self.database_type}")

    def _create_engine(self, database_connect: str, *, echo: bool):
        """Create SQLAlchemy engine with appropriate configuration"""
        try:
            if database_connect.startswith("sqlite:"):
                in_memory = database_connect in {"sqlite://", "sqlite:///:memory:"}
                if ":///" in database_connect and not in_memory:
                    db_path = database_connect.replace("sqlite:///", "")
                    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

                kwargs: dict[str, Any] = {
                    "json_serializer": json.dumps,
                    "json_deserializer": json.loads,
                    "echo": echo,
                    "connect_args": {"check_same_thread": False},
                }
                if in_memory:
                    # One shared connection, otherwise each session sees a fresh database.
                    kwargs["poolclass"] = StaticPool
                return create_engine(database_connect, **kwargs)

            return create_engine(database_connect, echo=echo, pool_pre_ping=True)
        except Exception as e:
            raise StorageError(f"Failed to create database engine: {e}")

    def close(self) -> None:
        """Dispose of pooled connections."""

        self.engine.dispose()

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _to_cartridge(record: CartridgeRecord) -> Cartridge:
        return Cartridge.model_validate(
            {
                "id": record.id,
                "name": record.name,
                "description": record.description,
                "episodicMemory": record.episodic_memory or {},
                "semanticMemory": record.semantic_memory or {},
                "proceduralMemory": record.procedural_memory or {},
                "metadata": record.metadata_ or {},
                "isActive": bool(record.is_active),
                "createdAt": record.created_at,
                "updatedAt": record.updated_at,
            }
        )

    @staticmethod
    def _to_message(record: MessageRecord) -> Message:
        return Message.model_validate(
            {
                "id": record.id,
                "content": record.content,
                "role": record.role,
                "cartridgeId": record.cartridge_id,
                "selectedCartridgeId": record.selected_cartridge_id,
                "matchScore": record.match_score,
                "tokenCount": record.token_count,
                "cost": record.cost,
                "metadata": record.metadata_ or {},
                "createdAt": record.created_at,
            }
        )

    @staticmethod
    def _column_values(changes: dict[str, Any]) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for name, value in changes.items():
            column = _JSON_COLUMNS.get(name)
            if column is not None:
                values[column] = value.to_wire()
            else:
                values[name] = value
        return values

    # ------------------------------------------------------------------
    # Cartridges
    # ------------------------------------------------------------------

    async def list_cartridges(self) -> list[Cartridge]:
        with self.SessionLocal() as session:
            try:
                records = session.scalars(
                    select(CartridgeRecord).order_by(
                        CartridgeRecord.updated_at.desc(), CartridgeRecord.id.desc()
                    )
                ).all()
            except SQLAlchemyError as e:
                raise StorageError(f"Failed to list cartridges: {e}")
            return [self._to_cartridge(record) for record in records]

    async def get_cartridge(self, cartridge_id: int) -> Cartridge | None:
        with self.SessionLocal() as session:
            try:
                record = session.get(CartridgeRecord, cartridge_id)
            except SQLAlchemyError as e:
                raise StorageError(f"Failed to load cartridge {cartridge_id}: {e}")
            return self._to_cartridge(record) if record else None

    async def create_cartridge(self, data: CartridgeCreate) -> Cartridge:
        now = utcnow()
        values = self._column_values(dict(data))
        with self.SessionLocal() as session:
            try:
                record = CartridgeRecord(created_at=now, updated_at=now, **values)
                session.add(record)
                if record.is_active:
                    session.flush()
                    self._activate_only(session, record.id)
                session.commit()
                session.refresh(record)
            except SQLAlchemyError as e:
                session.rollback()
                raise StorageError(f"Failed to create cartridge: {e}")
            return self._to_cartridge(record)

    async def update_cartridge(
        self, cartridge_id: int, updates: CartridgeUpdate
    ) -> Cartridge | None:
        values = self._column_values(updates.changes())
        values["updated_at"] = utcnow()
        with self.SessionLocal() as session:
            try:
                record = session.get(CartridgeRecord, cartridge_id)
                if record is None:
                    return None
                for column, value in values.items():
                    setattr(record, column, value)
                if record.is_active:
                    session.flush()
                    self._activate_only(session, record.id)
                session.commit()
                session.refresh(record)
            except SQLAlchemyError as e:
                session.rollback()
                raise StorageError(f"Failed to update cartridge {cartridge_id}: {e}")
            return self._to_cartridge(record)

    async def delete_cartridge(self, cartridge_id: int) -> bool:
        with self.SessionLocal() as session:
            try:
                record = session.get(CartridgeRecord, cartridge_id)
                if record is None:
                    return False
                session.delete(record)
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                raise StorageError(f"Failed to delete cartridge {cartridge_id}: {e}")
            return True

    @staticmethod
    def _activate_only(session, cartridge_id: int) -> None:
        # A single UPDATE flips every row, so the transition is atomic.
        session.execute(
            update(CartridgeRecord)
            .values(is_active=CartridgeRecord.id == cartridge_id)
            .execution_options(synchronize_session=False)
        )

    async def set_active(self, cartridge_id: int) -> None:
        with self.SessionLocal() as session:
            try:
                self._activate_only(session, cartridge_id)
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                raise StorageError(f"Failed to activate cartridge {cartridge_id}: {e}")

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    async def list_messages(self, limit: int | None = None) -> list[Message]:
        with self.SessionLocal() as session:
            statement = select(MessageRecord).order_by(
                MessageRecord.created_at.desc(), MessageRecord.id.desc()
            )
            if limit is not None:
                statement = statement.limit(max(limit, 0))
            try:
                records = session.scalars(statement).all()
            except SQLAlchemyError as e:
                raise StorageError(f"Failed to list messages: {e}")
            return [self._to_message(record) for record in reversed(records)]

    async def create_message(self, data: MessageCreate) -> Message:
        values = dict(data)
        values["metadata_"] = values.pop("metadata") or {}
        with self.SessionLocal() as session:
            try:
                record = MessageRecord(created_at=utcnow(), **values)
                session.add(record)
                session.commit()
                session.refresh(record)
            except SQLAlchemyError as e:
                session.rollback()
                raise StorageError(f"Failed to store message: {e}")
            return self._to_message(record)

    async def list_messages_by_cartridge(self, cartridge_id: int) -> list[Message]:
        with self.SessionLocal() as session:
            try:
                records = session.scalars(
                    select(MessageRecord)
                    .where(MessageRecord.cartridge_id == cartridge_id)
                    .order_by(MessageRecord.created_at, MessageRecord.id)
                ).all()
            except SQLAlchemyError as e:
                raise StorageError(
                    f"Failed to list messages for cartridge {cartridge_id}: {e}"
                )
            return [self._to_message(record) for record in records]
