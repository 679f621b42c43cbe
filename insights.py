import logging
import math
import re
from datetime import date
from typing import List, Optional

import pandas as pd
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database import NOT_SPECIFIED, Expense, ExpenseCategory, database_error
from errors import ExpenseTrackerError
from filters import ExpenseFilter
from llm import ExpenseAgent
from periods import resolve_periods
from schemas import (
    CategoryBreakdown,
    DailyTrend,
    FinancialData,
    FinancialHealth,
    InsightsRequest,
    InsightsResponse,
    InsightsSummary,
    PaymentMethodBreakdown,
    Period,
    PeriodComparison,
)

logger = logging.getLogger(__name__)

TRANSACTION_COLUMNS = ["amount", "transaction_type", "category", "payment_method", "transaction_date"]
UNCATEGORIZED = "Uncategorized"

# Used when the model answered but nothing usable could be parsed.
EMPTY_ADVICE_RECOMMENDATIONS = [
    "Monitor your top spending categories and set monthly limits",
    "Consider using more UPI payments for better expense tracking",
    "Look for opportunities to reduce food delivery expenses by cooking at home",
]

# Used when the model is not configured or the call failed.
UNAVAILABLE_ADVICE_RECOMMENDATIONS = [
    "Monitor your spending patterns regularly",
    "Set monthly budgets for each expense category",
    "Consider investing your savings in SIP or mutual funds",
]


def format_inr(amount: float) -> str:
    """Format rupees with Indian digit grouping, e.g. 150000 -> '1,50,000'."""
    if not math.isfinite(amount):
        return str(amount)

    negative = amount < 0
    whole, frac = f"{abs(amount):.2f}".split(".")

    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])

    text = whole if frac == "00" else f"{whole}.{frac}"
    return f"-{text}" if negative else text


# --- Aggregation ---

def transactions_to_df(rows) -> pd.DataFrame:
    return pd.DataFrame(
        [{col: getattr(row, col) for col in TRANSACTION_COLUMNS} for row in rows],
        columns=TRANSACTION_COLUMNS,
    )


def load_transactions(db: Session, expense_filter: ExpenseFilter) -> pd.DataFrame:
    rows = (
        db.query(
            Expense.amount,
            Expense.transaction_type,
            ExpenseCategory.name.label("category"),
            Expense.payment_method,
            Expense.transaction_date,
        )
        .outerjoin(ExpenseCategory, Expense.category_id == ExpenseCategory.id)
        .filter(*expense_filter.clauses())
        .all()
    )
    return transactions_to_df(rows)


def summarize_transactions(df: pd.DataFrame) -> FinancialData:
    """Totals and breakdowns for a frame with ``TRANSACTION_COLUMNS``."""
    if df.empty:
        return FinancialData()

    df = df.copy()
    df["amount"] = pd.to_numeric(df["amount"], errors="coerce").fillna(0.0)
    df["category"] = df["category"].fillna(UNCATEGORIZED)
    df["payment_method"] = df["payment_method"].fillna(NOT_SPECIFIED).replace("", NOT_SPECIFIED)

    totals = df.groupby("transaction_type")["amount"].sum()
    total_income = float(totals.get("income", 0.0))
    total_expenses = float(totals.get("expense", 0.0))

    expenses = df[df["transaction_type"] == "expense"]

    by_category = (
        expenses.groupby("category")["amount"]
        .agg(["sum", "count"])
        .reset_index()
        .sort_values(["sum", "category"], ascending=[False, True])
    )
    category_breakdown = [
        CategoryBreakdown(
            category=row["category"],
            amount=float(row["sum"]),
            percentage=float(row["sum"]) / total_expenses * 100 if total_expenses > 0 else 0.0,
            count=int(row["count"]),
        )
        for _, row in by_category.iterrows()
    ]

    by_day = expenses.groupby("transaction_date")["amount"].sum().sort_index()
    daily_trends = [DailyTrend(date=day, amount=float(amount)) for day, amount in by_day.items()]

    by_method = (
        df.groupby("payment_method")["amount"]
        .agg(["sum", "count"])
        .reset_index()
        .sort_values(["sum", "payment_method"], ascending=[False, True])
    )
    payment_methods = [
        PaymentMethodBreakdown(method=row["payment_method"], amount=float(row["sum"]), count=int(row["count"]))
        for _, row in by_method.iterrows()
    ]

    return FinancialData(
        total_income=total_income,
        total_expenses=total_expenses,
        category_breakdown=category_breakdown,
        daily_trends=daily_trends,
        payment_methods=payment_methods,
    )


def get_financial_data(db: Session, user_id: int, period: Period) -> FinancialData:
    """Aggregate a user's rows with ``transaction_date`` inside the closed period."""
    expense_filter = ExpenseFilter(user_id=user_id, start_date=period.start, end_date=period.end)
    return summarize_transactions(load_transactions(db, expense_filter))


def percent_change(current: float, previous: float) -> float:
    return (current - previous) / max(previous, 1) * 100


def compare_periods(current: FinancialData, previous: FinancialData, previous_period: Period) -> PeriodComparison:
    return PeriodComparison(
        previous_period=str(previous_period),
        income_change=percent_change(current.total_income, previous.total_income),
        expense_change=percent_change(current.total_expenses, previous.total_expenses),
        savings_change=current.net_savings - previous.net_savings,
    )


# --- Scoring ---

def calculate_financial_health(data: FinancialData) -> FinancialHealth:
    """Score out of 100: savings rate (40), category concentration (30), regularity (30)."""
    score = 0
    areas = []

    savings_rate = data.savings_rate
    if savings_rate >= 20:
        score += 40
    elif savings_rate >= 10:
        score += 30
    elif savings_rate >= 0:
        score += 20
    if savings_rate < 20:
        areas.append("Increase savings rate")

    top_category_pct = data.category_breakdown[0].percentage if data.category_breakdown else 0.0
    if top_category_pct <= 40:
        score += 30
    elif top_category_pct <= 50:
        score += 20
    else:
        score += 10
    if top_category_pct > 40:
        areas.append("Diversify spending across categories")

    active_days = len(data.daily_trends)
    score += 30 if active_days >= 7 else 20
    if active_days < 7:
        areas.append("Maintain regular expense tracking")

    if score >= 80:
        status = "Excellent"
    elif score >= 60:
        status = "Good"
    elif score >= 40:
        status = "Fair"
    else:
        status = "Needs Improvement"

    return FinancialHealth(score=score, status=status, areas=areas)


# --- Formatting ---

def _category_amount(data: FinancialData, name: str) -> float:
    return sum(c.amount for c in data.category_breakdown if c.category == name)


def generate_spending_insights(data: FinancialData) -> List[str]:
    """Rule-based observations about a period's income, categories and payment habits."""
    insights = []
    income, spend = data.total_income, data.total_expenses

    if income > spend:
        savings = income - spend
        insights.append(
            f"💰 Great job! You're saving ₹{format_inr(savings)} ({savings / income * 100:.1f}% of income)"
        )
    elif spend > income:
        insights.append(f"⚠️ You're spending ₹{format_inr(spend - income)} more than your income this period")

    food = _category_amount(data, "Food & Dining")
    if food > spend * 0.4:
        insights.append(
            f"🍽️ Food expenses are {food / spend * 100:.1f}% of spending. Consider home cooking to save money"
        )

    transport = _category_amount(data, "Transportation")
    if transport > spend * 0.3:
        insights.append(
            f"🚗 Transportation costs are high ({transport / spend * 100:.1f}%). "
            "Consider shared rides or public transport"
        )

    total_count = data.transaction_count
    upi_count = sum(p.count for p in data.payment_methods if "upi" in p.method.lower())
    if upi_count > total_count * 0.7:
        insights.append(f"📱 You're using UPI for {upi_count / total_count * 100:.1f}% of transactions - very digital!")

    if total_count > 20:
        insights.append(f"📊 You have {total_count} transactions this period - quite active spending")

    return insights


def build_recommendation_prompt(current: FinancialData, previous: Optional[FinancialData] = None) -> str:
    lines = [
        "Based on this Indian user's financial data, provide 3-5 specific, actionable recommendations:",
        "",
        "Current Period:",
        f"- Income: ₹{format_inr(current.total_income)}",
        f"- Expenses: ₹{format_inr(current.total_expenses)}",
        f"- Net Savings: ₹{format_inr(current.net_savings)}",
        "",
        "Top Expense Categories:",
    ]
    lines.extend(
        f"- {c.category}: ₹{format_inr(c.amount)} ({c.percentage:.1f}%)" for c in current.category_breakdown[:5]
    )

    if previous is not None:
        lines += [
            "",
            "Previous Period Comparison:",
            f"- Income Change: {percent_change(current.total_income, previous.total_income):.1f}%",
            f"- Expense Change: {percent_change(current.total_expenses, previous.total_expenses):.1f}%",
        ]

    lines += [
        "",
        "Provide Indian-context financial advice focusing on:",
        "1. Practical savings tips for Indian lifestyle",
        "2. Category-specific recommendations",
        "3. Investment suggestions suitable for India",
        "4. Budget optimization tips",
        "",
        "Format as a simple list with one recommendation per line.",
    ]
    return "\n".join(lines)


def parse_recommendations(text: str, limit: int = 5) -> List[str]:
    recommendations = []
    for line in text.splitlines():
        line = re.sub(r"^\d+\.\s*", "", line.strip())
        line = re.sub(r"^[-*]\s*", "", line).strip()
        if len(line) > 10:
            recommendations.append(line)
    return recommendations[:limit]


def generate_recommendations(
    agent: Optional[ExpenseAgent],
    current: FinancialData,
    previous: Optional[FinancialData] = None,
) -> List[str]:
    """Ask the model for advice; never raises, falls back to fixed tips instead."""
    if agent is None:
        return list(UNAVAILABLE_ADVICE_RECOMMENDATIONS)

    try:
        text = agent.generate(build_recommendation_prompt(current, previous))
    except Exception:
        logger.warning("AI recommendations failed, using fallback tips", exc_info=True)
        return list(UNAVAILABLE_ADVICE_RECOMMENDATIONS)

    return parse_recommendations(text) or list(EMPTY_ADVICE_RECOMMENDATIONS)


# --- getInsights ---

def get_insights(
    db: Session,
    req: InsightsRequest,
    agent: Optional[ExpenseAgent] = None,
    today: Optional[date] = None,
) -> InsightsResponse:
    logger.info(
        "Starting financial analysis user_id=%s analysis_type=%s comparison=%s advice=%s",
        req.user_id, req.analysis_type, req.include_comparison, req.include_advice,
    )

    try:
        current_period, previous_period = resolve_periods(req.analysis_type, req.start_date, req.end_date, today)
        current = get_financial_data(db, req.user_id, current_period)
    except ExpenseTrackerError as exc:
        logger.error("Error generating insights: %s", exc.message)
        return InsightsResponse(success=False, recommendations=[f"Failed to generate insights: {exc.message}"])
    except SQLAlchemyError as exc:
        db.rollback()
        error = database_error(exc)
        logger.error("Error generating insights: %s", exc)
        return InsightsResponse(success=False, recommendations=[f"Failed to generate insights: {error.message}"])

    previous = None
    if req.include_comparison:
        try:
            previous = get_financial_data(db, req.user_id, previous_period)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.warning("Comparison period unavailable, continuing without it: %s", exc)

    recommendations = generate_recommendations(agent, current, previous) if req.include_advice else []

    summary = InsightsSummary(
        period=str(current_period),
        total_income=current.total_income,
        total_expenses=current.total_expenses,
        net_savings=current.net_savings,
        savings_rate=current.savings_rate,
        top_expense_categories=current.category_breakdown,
        spending_trends=current.daily_trends,
        payment_method_breakdown=current.payment_methods,
        comparison=compare_periods(current, previous, previous_period) if previous is not None else None,
        highlights=generate_spending_insights(current),
    )

    logger.info("Successfully generated insights for user_id=%s", req.user_id)
    return InsightsResponse(
        success=True,
        insights=summary,
        recommendations=recommendations,
        financial_health=calculate_financial_health(current),
    )
