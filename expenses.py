"""
expenses.py
-----------
Record natural language expense entries and list a user's expenses with
summary statistics.  Both operations return a result object with a
``success`` flag; collaborator failures are reported, never raised.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional

import pandas as pd
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from categorizer import extract_expense
from database import CURRENCY, NOT_SPECIFIED, Expense, ExpenseCategory, database_error
from errors import ExpenseTrackerError, NotFoundError, ValidationError
from filters import ExpenseFilter
from insights import format_inr, generate_spending_insights, load_transactions, summarize_transactions
from llm import ExpenseAgent
from schemas import (
    AddExpenseRequest,
    AddExpenseResponse,
    CategoryTotal,
    ExpenseGroup,
    ExpenseOut,
    ExpenseSummary,
    ViewExpensesRequest,
    ViewExpensesResponse,
)

logger = logging.getLogger(__name__)

TOP_CATEGORY_COUNT = 5


def find_category(db: Session, name: str) -> ExpenseCategory:
    category = db.query(ExpenseCategory).filter(ExpenseCategory.name == name).one_or_none()
    if category is None:
        raise NotFoundError(f"Category not found: {name}", details={"category": name})
    return category


def add_expense(
    db: Session,
    req: AddExpenseRequest,
    agent: Optional[ExpenseAgent] = None,
    today: Optional[date] = None,
) -> AddExpenseResponse:
    """Extract, categorize and store one expense or income entry."""
    logger.info(
        "Starting expense processing user_id=%s entry=%r amount=%s date=%s payment_method=%s",
        req.user_id, req.natural_language_entry, req.amount, req.transaction_date, req.payment_method,
    )

    try:
        if req.category is not None and not req.category.strip():
            raise ValidationError("Category must not be blank")

        extracted, used_ai = extract_expense(req.natural_language_entry, agent)
        logger.info("Extracted %s (ai=%s)", extracted.model_dump(), used_ai)

        if req.category:
            category_name = req.category.strip()
            ai_suggested, confidence = False, None
        else:
            category_name = extracted.category
            ai_suggested, confidence = True, extracted.confidence

        final_amount = req.amount or extracted.amount
        final_date = req.transaction_date or today or date.today()

        category = find_category(db, category_name)

        expense = Expense(
            user_id=req.user_id,
            amount=final_amount,
            currency=CURRENCY,
            description=extracted.description,
            category_id=category.id,
            transaction_type=extracted.transaction_type,
            payment_method=req.payment_method or NOT_SPECIFIED,
            merchant_name=extracted.merchant_name,
            location=req.location,
            transaction_date=final_date,
            ai_suggested_category=ai_suggested,
            ai_confidence_score=confidence,
        )
        db.add(expense)
        db.commit()
        db.refresh(expense)
    except ExpenseTrackerError as exc:
        db.rollback()
        logger.error("Error adding expense: %s", exc.message)
        return AddExpenseResponse(success=False, message=f"Failed to add expense: {exc.message}")
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Error adding expense: %s", exc)
        return AddExpenseResponse(success=False, message=f"Failed to add expense: {database_error(exc).message}")

    logger.info("Successfully added expense id=%s", expense.id)
    return AddExpenseResponse(
        success=True,
        expense_id=expense.id,
        suggested_category=category_name,
        extracted_amount=extracted.amount,
        message=(
            f"Successfully added {extracted.transaction_type} of ₹{format_inr(final_amount)} "
            f"in {category_name} category"
        ),
    )


def _to_expense_out(expense: Expense, category: Optional[str], category_hindi: Optional[str]) -> ExpenseOut:
    return ExpenseOut(
        id=expense.id,
        amount=expense.amount,
        currency=expense.currency,
        description=expense.description,
        category=category,
        category_hindi=category_hindi,
        transaction_type=expense.transaction_type,
        payment_method=expense.payment_method,
        merchant_name=expense.merchant_name,
        location=expense.location,
        transaction_date=expense.transaction_date,
        ai_suggested=expense.ai_suggested_category,
        ai_confidence=expense.ai_confidence_score,
    )


def group_expenses(expenses: List[ExpenseOut], group_by: str) -> List[ExpenseGroup]:
    """Group listed rows by category, day or month (``YYYY-MM``)."""
    if group_by == "none" or not expenses:
        return []

    df = pd.DataFrame(
        [
            {"category": e.category or "Uncategorized", "date": e.transaction_date, "amount": e.amount}
            for e in expenses
        ]
    )
    if group_by == "category":
        df["key"] = df["category"]
    elif group_by == "date":
        df["key"] = df["date"].map(lambda d: d.isoformat())
    else:
        df["key"] = df["date"].map(lambda d: d.strftime("%Y-%m"))

    grouped = df.groupby("key")["amount"].agg(["sum", "count"]).reset_index()
    if group_by == "category":
        grouped = grouped.sort_values(["sum", "key"], ascending=[False, True])
    else:
        grouped = grouped.sort_values("key", ascending=False)

    return [
        ExpenseGroup(key=row["key"], amount=float(row["sum"]), count=int(row["count"]))
        for _, row in grouped.iterrows()
    ]


def view_expenses(db: Session, req: ViewExpensesRequest) -> ViewExpensesResponse:
    logger.info(
        "Starting expense analysis user_id=%s start=%s end=%s category=%s type=%s limit=%s group_by=%s",
        req.user_id, req.start_date, req.end_date, req.category, req.transaction_type, req.limit, req.group_by,
    )

    try:
        expense_filter = ExpenseFilter(
            user_id=req.user_id,
            start_date=req.start_date,
            end_date=req.end_date,
            category=req.category,
            transaction_type=None if req.transaction_type == "all" else req.transaction_type,
        )
        rows = (
            db.query(Expense, ExpenseCategory.name, ExpenseCategory.name_hindi)
            .outerjoin(ExpenseCategory, Expense.category_id == ExpenseCategory.id)
            .filter(*expense_filter.clauses())
            .order_by(Expense.transaction_date.desc(), Expense.created_at.desc(), Expense.id.desc())
            .limit(req.limit)
            .all()
        )
        data = summarize_transactions(load_transactions(db, expense_filter))
    except ExpenseTrackerError as exc:
        logger.error("Error retrieving expenses: %s", exc.message)
        return ViewExpensesResponse(success=False, insights=[f"Failed to retrieve expenses: {exc.message}"])
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Error retrieving expenses: %s", exc)
        return ViewExpensesResponse(
            success=False, insights=[f"Failed to retrieve expenses: {database_error(exc).message}"]
        )

    expenses = [_to_expense_out(expense, name, name_hindi) for expense, name, name_hindi in rows]
    summary = ExpenseSummary(
        total_expenses=data.total_expenses,
        total_income=data.total_income,
        net_amount=data.net_savings,
        transaction_count=data.transaction_count,
        top_categories=[
            CategoryTotal(category=c.category, amount=c.amount, count=c.count)
            for c in data.category_breakdown[:TOP_CATEGORY_COUNT]
        ],
    )

    logger.info("Successfully retrieved %d expenses", len(expenses))
    return ViewExpensesResponse(
        success=True,
        expenses=expenses,
        summary=summary,
        insights=generate_spending_insights(data),
        groups=group_expenses(expenses, req.group_by),
    )
