from datetime import date

import pytest
from sqlalchemy.exc import IntegrityError

from categories import CATEGORIES
from database import Expense, ExpenseCategory, database_error, session_scope
from seed_db import seed_categories


def test_seed_is_idempotent(db):
    assert db.query(ExpenseCategory).count() == len(CATEGORIES) == 15
    assert seed_categories(db) == 0
    assert db.query(ExpenseCategory).count() == 15


def test_amount_must_be_positive(db):
    category_id = db.query(ExpenseCategory.id).filter(ExpenseCategory.name == "Shopping").scalar()
    db.add(
        Expense(
            user_id=1,
            amount=0,
            description="nothing",
            category_id=category_id,
            transaction_type="expense",
            transaction_date=date(2024, 3, 1),
        )
    )

    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_session_scope_rolls_back_on_error(session_factory):
    with session_factory() as session:
        seed_categories(session)

    with pytest.raises(RuntimeError):
        with session_scope(session_factory) as session:
            session.add(ExpenseCategory(name="Pets", name_hindi="पालतू"))
            session.flush()
            raise RuntimeError("boom")

    with session_factory() as session:
        assert session.query(ExpenseCategory).filter(ExpenseCategory.name == "Pets").count() == 0


def test_database_error_wraps_driver_errors():
    error = database_error(IntegrityError("INSERT", {}, Exception("constraint failed")))

    assert error.message == "Database error (IntegrityError)"
    assert error.details == {"error_type": "IntegrityError"}


def test_created_at_is_set_on_insert(db, add_row):
    expense = add_row(250, "Shopping")
    db.refresh(expense)

    assert expense.created_at is not None
