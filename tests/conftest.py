import os

# Keep the suite hermetic: no real database file, no real language model.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["OPENAI_API_KEY"] = ""

from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, Expense, ExpenseCategory, get_db
from errors import DependencyError
from mcp_server import app, get_expense_agent
from seed_db import seed_categories


class FakeAgent:
    """Stands in for ``llm.ExpenseAgent`` and records the prompts it gets."""

    def __init__(self, obj=None, text="", error=None):
        self.obj = obj
        self.text = text
        self.error = error
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.text

    def generate_object(self, prompt, schema):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return schema.model_validate(self.obj)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    seed_categories(session)
    yield session
    session.close()


@pytest.fixture
def add_row(db):
    """Insert an expense row directly, bypassing extraction."""

    def _add(
        amount,
        category="Miscellaneous",
        on=date(2024, 3, 10),
        transaction_type="expense",
        payment_method=None,
        user_id=1,
        description="test entry",
    ):
        category_id = db.query(ExpenseCategory.id).filter(ExpenseCategory.name == category).scalar()
        expense = Expense(
            user_id=user_id,
            amount=amount,
            description=description,
            category_id=category_id,
            transaction_type=transaction_type,
            payment_method=payment_method,
            transaction_date=on,
        )
        db.add(expense)
        db.commit()
        return expense

    return _add


@pytest.fixture
def failed_flush(db):
    """Leave ``db`` needing a rollback, as after a failed statement."""

    def _fail():
        category_id = db.query(ExpenseCategory.id).filter(ExpenseCategory.name == "Shopping").scalar()
        db.add(
            Expense(
                user_id=1,
                amount=0,
                description="violates amount check",
                category_id=category_id,
                transaction_type="expense",
                transaction_date=date(2024, 3, 1),
            )
        )
        with pytest.raises(IntegrityError):
            db.flush()

    return _fail


@pytest.fixture
def fake_agent():
    return FakeAgent


@pytest.fixture
def failing_agent():
    return FakeAgent(error=DependencyError("Language model request failed: timeout"))


@pytest.fixture
def client(db, session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_expense_agent] = lambda: None
    yield TestClient(app)
    app.dependency_overrides.clear()
