"""Record store — SQLAlchemy persistence for chat sessions and messages."""

import logging
import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
    event,
    select,
    text,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    Session,
    mapped_column,
    relationship,
    sessionmaker,
)
from sqlalchemy.pool import StaticPool

from textbook_qa.config import StoreConfig
from textbook_qa.errors import StoreError
from textbook_qa.models import ChatMessage, ChatSession, Role

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(UTC)


def _new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    pass


class ChatSessionRow(Base):
    __tablename__ = "chat_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    document_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now, nullable=False
    )

    messages: Mapped[list["ChatMessageRow"]] = relationship(
        back_populates="session", cascade="all, delete-orphan"
    )


class ChatMessageRow(Base):
    __tablename__ = "chat_messages"

    # Insertion sequence; history is ordered by it, not by wall-clock time.
    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(
        String(36), unique=True, nullable=False, default=_new_id
    )
    session_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("chat_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(String(16), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    # "metadata" is reserved on declarative classes.
    meta: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now, nullable=False
    )

    session: Mapped[ChatSessionRow] = relationship(back_populates="messages")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    """SQLite ignores foreign keys unless asked per connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def _to_session(row: ChatSessionRow) -> ChatSession:
    return ChatSession(
        id=row.id,
        user_id=row.user_id,
        document_id=row.document_id,
        title=row.title,
        created_at=_utc(row.created_at),
        updated_at=_utc(row.updated_at),
    )


def _to_message(row: ChatMessageRow) -> ChatMessage:
    return ChatMessage(
        id=row.id,
        session_id=row.session_id,
        role=Role(row.role),
        content=row.content,
        created_at=_utc(row.created_at),
        metadata=row.meta,
    )


class RecordStore:
    """Sessions and messages backed by a relational database.

    Every database failure surfaces as :class:`StoreError`; a missing
    session is reported by :meth:`get_session` returning ``None``.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._sessionmaker = sessionmaker(bind=engine, expire_on_commit=False)

    @contextmanager
    def _transaction(self, action: str) -> Iterator[Session]:
        try:
            with self._sessionmaker.begin() as db:
                yield db
        except SQLAlchemyError as exc:
            raise StoreError(f"{action} failed: {exc}") from exc

    def create_schema(self) -> None:
        """Create the tables if they do not exist yet."""
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise StoreError(f"schema creation failed: {exc}") from exc

    def insert_session(self, user_id: str, document_id: str, title: str) -> ChatSession:
        with self._transaction("insert session") as db:
            row = ChatSessionRow(user_id=user_id, document_id=document_id, title=title)
            db.add(row)
            db.flush()
            return _to_session(row)

    def get_session(self, session_id: str) -> ChatSession | None:
        with self._transaction("get session") as db:
            row = db.get(ChatSessionRow, session_id)
            return _to_session(row) if row is not None else None

    def insert_message(
        self,
        session_id: str,
        role: Role,
        content: str,
        metadata: dict | None = None,
    ) -> ChatMessage:
        """Append a message and bump the owning session's ``updated_at``."""
        with self._transaction("insert message") as db:
            now = _now()
            row = ChatMessageRow(
                session_id=session_id,
                role=Role(role).value,
                content=content,
                meta=metadata,
                created_at=now,
            )
            db.add(row)
            db.flush()
            parent = db.get(ChatSessionRow, session_id)
            if parent is not None:
                parent.updated_at = now
            return _to_message(row)

    def find_messages(self, session_id: str) -> list[ChatMessage]:
        """Messages of a session in insertion order."""
        stmt = (
            select(ChatMessageRow)
            .where(ChatMessageRow.session_id == session_id)
            .order_by(ChatMessageRow.seq.asc())
        )
        with self._transaction("find messages") as db:
            return [_to_message(row) for row in db.scalars(stmt)]

    def find_sessions(self, user_id: str, document_id: str) -> list[ChatSession]:
        """Sessions of a user for one textbook, most recently updated first."""
        stmt = (
            select(ChatSessionRow)
            .where(
                ChatSessionRow.user_id == user_id,
                ChatSessionRow.document_id == document_id,
            )
            .order_by(ChatSessionRow.updated_at.desc())
        )
        with self._transaction("find sessions") as db:
            return [_to_session(row) for row in db.scalars(stmt)]

    def health_check(self) -> dict:
        start = time.perf_counter()
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            return {"status": "unhealthy", "error": str(exc)}
        latency = (time.perf_counter() - start) * 1000
        return {"status": "healthy", "latency_ms": round(latency, 2)}


def create_store_engine(config: StoreConfig | None = None) -> Engine:
    """Create the SQLAlchemy engine for the configured database URL."""
    cfg = config or StoreConfig()
    kwargs: dict = {"echo": cfg.echo}
    if cfg.database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if cfg.database_url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise each checkout sees an empty DB.
            kwargs["poolclass"] = StaticPool
        engine = create_engine(cfg.database_url, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine
    return create_engine(cfg.database_url, **kwargs)


def get_store(config: StoreConfig | None = None) -> RecordStore:
    """Build a record store and make sure its schema exists."""
    store = RecordStore(create_store_engine(config))
    store.create_schema()
    logger.info("Record store ready (%s)", store.engine.url.render_as_string())
    return store
