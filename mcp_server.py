"""Lightweight MCP-aligned server exposing expense tracker tools over FastAPI."""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI
from sqlalchemy.orm import Session

from database import get_db, init_db
from expenses import add_expense, view_expenses
from insights import get_insights
from llm import ExpenseAgent, get_agent
from schemas import (
    AddExpenseRequest,
    AddExpenseResponse,
    InsightsRequest,
    InsightsResponse,
    ViewExpensesRequest,
    ViewExpensesResponse,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting expense tracker tools server...")
    init_db()
    yield


app = FastAPI(title="Indian Expense Tracker MCP Server", version="0.1.0", lifespan=lifespan)


def get_expense_agent() -> Optional[ExpenseAgent]:
    return get_agent()


@app.post("/tools/add_expense", response_model=AddExpenseResponse)
def add_expense_tool(
    req: AddExpenseRequest,
    db: Session = Depends(get_db),
    agent: Optional[ExpenseAgent] = Depends(get_expense_agent),
):
    """Add an expense from a natural language entry with automatic categorization."""
    return add_expense(db, req, agent)


@app.post("/tools/view_expenses", response_model=ViewExpensesResponse)
def view_expenses_tool(req: ViewExpensesRequest, db: Session = Depends(get_db)):
    """List expenses with filters, a summary and spending insights."""
    return view_expenses(db, req)


@app.post("/tools/expense_insights", response_model=InsightsResponse)
def expense_insights_tool(
    req: InsightsRequest,
    db: Session = Depends(get_db),
    agent: Optional[ExpenseAgent] = Depends(get_expense_agent),
):
    """Period analysis with comparison, AI recommendations and a health score."""
    return get_insights(db, req, agent)


@app.get("/health")
def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)

    uvicorn.run("mcp_server:app", host="0.0.0.0", port=8001, reload=True)
