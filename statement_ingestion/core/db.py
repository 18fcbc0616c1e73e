"""DB connection and helpers for the statement ingestion pipeline."""

from collections.abc import Callable
from typing import Any

from sqlalchemy import Column, Integer, String, Table, Text, create_engine, insert, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .models import BatchState, CategorizationRule
from .utils import utcnow_iso

Base = declarative_base()


class CategoryRuleRow(Base):
    """A persisted categorization rule; lower priority values are tried first."""

    __tablename__ = "category_rules"
    id = Column(Integer, primary_key=True)
    keyword = Column(String, nullable=False)
    category = Column(String, nullable=False)
    priority = Column(Integer, nullable=False, default=0, index=True)


batches_table = Table(
    "batches",
    Base.metadata,
    Column("id", String, primary_key=True),
    Column("status", String, nullable=False),
    Column("created_at", String, nullable=False),
    Column("completed_at", String, nullable=True),
    Column("error", Text, nullable=True),
    Column("result", Text, nullable=True),
)


def get_engine(url: str | None = None) -> Engine:
    """Create a SQLAlchemy engine using the configured database URL."""
    if url is None:
        from .settings import get_settings

        url = get_settings().database_url
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args)


def init_db(engine: Engine) -> None:
    """Create the batches and category_rules tables if they do not exist."""
    Base.metadata.create_all(engine)


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


class BatchRepository:
    """Persistence of batch status rows, finalized batch results and stored rules."""

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal) -> None:
        """Initialize the repository with a SQLAlchemy session factory."""
        self.session_factory = session_factory

    def create_batch(self, batch_id: str) -> None:
        """Insert a pending batch row."""
        with self.session_factory() as session:
            session.execute(insert(batches_table).values(id=batch_id, status="pending", created_at=utcnow_iso()))
            session.commit()

    def update_status(self, batch_id: str, status: str, error: str | None = None) -> None:
        """Move a batch to a new status; terminal statuses also stamp completed_at."""
        values: dict[str, Any] = {"status": status}
        if status in ("completed", "error", "cancelled"):
            values["completed_at"] = utcnow_iso()
        if error is not None:
            values["error"] = error
        with self.session_factory() as session:
            session.execute(update(batches_table).where(batches_table.c.id == batch_id).values(**values))
            session.commit()

    def save_result(self, batch_id: str, state: BatchState) -> None:
        """Store the batch state as JSON."""
        with self.session_factory() as session:
            stmt = update(batches_table).where(batches_table.c.id == batch_id).values(result=state.model_dump_json())
            session.execute(stmt)
            session.commit()

    def get_status(self, batch_id: str) -> dict[str, Any] | None:
        """Retrieve the status row and the latest counters for a batch."""
        stmt = select(
            batches_table.c.status,
            batches_table.c.created_at,
            batches_table.c.completed_at,
            batches_table.c.error,
            batches_table.c.result,
        ).where(batches_table.c.id == batch_id)
        with self.session_factory() as session:
            row = session.execute(stmt).first()
        if not row:
            return None
        status = {
            "status": row.status,
            "created_at": row.created_at,
            "completed_at": row.completed_at,
            "error": row.error,
        }
        if row.result:
            state = BatchState.model_validate_json(row.result)
            status.update(uploaded=state.uploaded, validated=state.validated, processed=state.processed, failed=state.failed)
        return status

    def get_result(self, batch_id: str) -> BatchState | None:
        """Load the stored batch state, if the batch has produced one."""
        with self.session_factory() as session:
            row = session.execute(select(batches_table.c.result).where(batches_table.c.id == batch_id)).first()
        if not row or not row.result:
            return None
        return BatchState.model_validate_json(row.result)

    def load_rules(self) -> list[CategorizationRule]:
        """Return stored rules in priority order (empty if none are stored)."""
        with self.session_factory() as session:
            rows = session.query(CategoryRuleRow).order_by(CategoryRuleRow.priority, CategoryRuleRow.id).all()
            return [CategorizationRule(keyword=row.keyword, category=row.category) for row in rows]

    def replace_rules(self, rules: list[CategorizationRule]) -> None:
        """Replace the stored rule table, keeping the given order as priority."""
        with self.session_factory() as session:
            session.query(CategoryRuleRow).delete()
            for priority, rule in enumerate(rules):
                session.add(CategoryRuleRow(keyword=rule.keyword, category=rule.category, priority=priority))
            session.commit()


def get_repository() -> BatchRepository:
    """Get a BatchRepository bound to the default session factory."""
    return BatchRepository(SessionLocal)
