import json
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import Column, DateTime, Float, Integer, String, Text, create_engine, text
from sqlalchemy.orm import declarative_base, sessionmaker

from softwhere import config

Base = declarative_base()

QUOTE_TABLE = "quotes"


def utcnow() -> datetime:
    """Naive UTC timestamp, the form stored in the created_at column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _as_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class QuoteModel(Base):
    __tablename__ = QUOTE_TABLE
    id = Column(Integer, primary_key=True, index=True)
    quote_id = Column(String, unique=True, nullable=False, index=True)
    name = Column(String)
    email = Column(String)
    phone = Column(String)
    project_type = Column(String, index=True)
    complexity = Column(String)
    source = Column(String, index=True)  # "ai" | "formula"
    development_cost = Column(Float)
    deadline_weeks = Column(Integer)
    support_cost = Column(Float)
    project_json = Column(Text)  # JSON text
    estimate_json = Column(Text)  # JSON text
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)


def get_engine(db_path: str):
    engine = create_engine(f"sqlite:///{db_path}", connect_args={"check_same_thread": False})
    return engine


def init_db(db_path: str = config.DB_PATH):
    """
    Ensure the sqlite DB file exists and create tables.
    """
    if db_path != ":memory:" and not os.path.exists(db_path):
        open(db_path, "a").close()

    engine = get_engine(db_path)
    Base.metadata.create_all(bind=engine)
    return engine


def _row_to_dict(r: QuoteModel) -> Dict[str, Any]:
    return {
        "quoteId": r.quote_id,
        "customerInfo": {"name": r.name, "email": r.email, "phone": r.phone},
        "projectDetails": json.loads(r.project_json) if r.project_json else {},
        "estimate": json.loads(r.estimate_json) if r.estimate_json else {},
        "createdAt": r.created_at.isoformat() if r.created_at else None,
    }


class QuoteStore:
    def __init__(self, db_path: str = config.DB_PATH):
        self.db_path = db_path
        self.engine = init_db(db_path)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def insert(self, quote: Dict[str, Any]) -> str:
        session = self.SessionLocal()
        try:
            customer = quote.get("customerInfo") or {}
            project = quote.get("projectDetails") or {}
            estimate = quote.get("estimate") or {}
            model = QuoteModel(
                quote_id=quote["quoteId"],
                name=customer.get("name"),
                email=customer.get("email"),
                phone=customer.get("phone"),
                project_type=project.get("projectType"),
                complexity=project.get("complexity"),
                source=estimate.get("source"),
                development_cost=estimate.get("developmentCost"),
                deadline_weeks=estimate.get("deadlineWeeks"),
                support_cost=estimate.get("supportCost"),
                project_json=json.dumps(project),
                estimate_json=json.dumps(estimate),
                created_at=quote.get("createdAt") or utcnow(),
            )
            session.add(model)
            session.commit()
            return model.quote_id
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get(self, quote_id: str) -> Optional[Dict[str, Any]]:
        session = self.SessionLocal()
        try:
            row = session.query(QuoteModel).filter_by(quote_id=quote_id).first()
            return _row_to_dict(row) if row else None
        finally:
            session.close()

    def list(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        project_type: Optional[str] = None,
        source: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        session = self.SessionLocal()
        try:
            q = session.query(QuoteModel)
            if start_date is not None:
                q = q.filter(QuoteModel.created_at >= _as_naive_utc(start_date))
            if end_date is not None:
                q = q.filter(QuoteModel.created_at <= _as_naive_utc(end_date))
            if project_type:
                q = q.filter(QuoteModel.project_type == project_type)
            if source:
                q = q.filter(QuoteModel.source == source)
            rows = q.order_by(QuoteModel.created_at.desc(), QuoteModel.id.desc()).all()
            return [_row_to_dict(r) for r in rows]
        finally:
            session.close()

    def ping(self) -> bool:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True

