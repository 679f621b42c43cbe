import os
from contextlib import contextmanager
from datetime import date, datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker
from dotenv import load_dotenv

from errors import DependencyError

# Load environment variables
load_dotenv()

# Database Setup
# Default to local SQLite, but allow override for Postgres
DB_URL = os.getenv("DATABASE_URL", "sqlite:///expense_tracker.db")

CURRENCY = "INR"
NOT_SPECIFIED = "Not specified"


def make_engine(url: str):
    return create_engine(url, connect_args={"check_same_thread": False} if "sqlite" in url else {})


engine = make_engine(DB_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

# --- Models ---

class ExpenseCategory(Base):
    """Reference data; seeded once by ``seed_db.py`` and only read afterwards."""

    __tablename__ = "expense_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    name_hindi = Column(String, nullable=True)

    expenses = relationship("Expense", back_populates="category")


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    amount = Column(Float, nullable=False)
    currency = Column(String(3), nullable=False, default=CURRENCY)
    description = Column(String, nullable=False)
    category_id = Column(Integer, ForeignKey("expense_categories.id"), nullable=False)
    transaction_type = Column(String, nullable=False, default="expense")  # 'expense' or 'income'

    # Context
    payment_method = Column(String, nullable=True)  # UPI, Cash, Card, Net Banking...
    merchant_name = Column(String, nullable=True)
    location = Column(String, nullable=True)
    transaction_date = Column(Date, nullable=False, default=date.today)

    # Provenance
    ai_suggested_category = Column(Boolean, nullable=False, default=False)
    ai_confidence_score = Column(Float, nullable=True)  # 0.0 to 1.0, only when AI suggested

    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    category = relationship("ExpenseCategory", back_populates="expenses")

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_expenses_amount_positive"),
        CheckConstraint(
            "transaction_type IN ('expense', 'income')", name="ck_expenses_transaction_type"
        ),
        Index("ix_expenses_user_date", "user_id", "transaction_date"),
    )

# --- Init DB ---
def init_db(bind=None):
    Base.metadata.create_all(bind=bind or engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope(factory=None):
    """Open a session for one operation and always close it, rolling back on error."""
    db = (factory or SessionLocal)()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def database_error(exc: Exception) -> DependencyError:
    """Wrap a SQLAlchemy failure without leaking statement text to callers."""
    return DependencyError(
        f"Database error ({type(exc).__name__})",
        details={"error_type": type(exc).__name__},
    )
