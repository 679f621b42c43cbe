from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from categories import CATEGORY_NAMES

TransactionType = Literal["expense", "income"]
AnalysisType = Literal["weekly", "monthly", "yearly", "custom"]


# --- Language model extraction ---

class ExtractedExpense(BaseModel):
    """Structured fields pulled out of a natural language entry."""

    model_config = ConfigDict(populate_by_name=True)

    amount: float = Field(..., gt=0, allow_inf_nan=False)
    description: str
    category: str
    transaction_type: TransactionType = Field(..., alias="transactionType")
    merchant_name: Optional[str] = Field(None, alias="merchantName")
    confidence: float = Field(..., ge=0, le=1)

    @field_validator("category")
    @classmethod
    def category_must_be_known(cls, v: str) -> str:
        if v not in CATEGORY_NAMES:
            raise ValueError(f"unknown category: {v}")
        return v


# --- addExpense ---

class AddExpenseRequest(BaseModel):
    user_id: int = Field(..., gt=0, description="User ID for the expense entry")
    natural_language_entry: str = Field(
        ..., min_length=1, description="e.g. 'I spent ₹500 on groceries at Big Bazaar'"
    )
    amount: Optional[float] = Field(
        None, gt=0, allow_inf_nan=False, description="Amount in rupees (extracted if not provided)"
    )
    transaction_date: Optional[date] = Field(None, description="Defaults to today")
    payment_method: Optional[str] = Field(None, description="UPI, Cash, Card, Net Banking, ...")
    location: Optional[str] = None
    category: Optional[str] = Field(
        None, description="Explicit category; skips the AI suggestion when given"
    )


class AddExpenseResponse(BaseModel):
    success: bool
    expense_id: Optional[int] = None
    suggested_category: Optional[str] = None
    extracted_amount: Optional[float] = None
    message: str


# --- viewExpenses ---

class ViewExpensesRequest(BaseModel):
    user_id: int = Field(..., gt=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    category: Optional[str] = None
    transaction_type: Literal["expense", "income", "all"] = "all"
    limit: int = Field(50, ge=1, le=500, description="Maximum number of records to return")
    group_by: Literal["category", "date", "month", "none"] = "none"


class ExpenseOut(BaseModel):
    id: int
    amount: float
    currency: str
    description: str
    category: Optional[str]
    category_hindi: Optional[str]
    transaction_type: str
    payment_method: Optional[str]
    merchant_name: Optional[str]
    location: Optional[str]
    transaction_date: date
    ai_suggested: bool
    ai_confidence: Optional[float]


class CategoryTotal(BaseModel):
    category: str
    amount: float
    count: int


class ExpenseSummary(BaseModel):
    total_expenses: float = 0.0
    total_income: float = 0.0
    net_amount: float = 0.0
    transaction_count: int = 0
    top_categories: List[CategoryTotal] = []


class ExpenseGroup(BaseModel):
    key: str
    amount: float
    count: int


class ViewExpensesResponse(BaseModel):
    success: bool
    expenses: List[ExpenseOut] = []
    summary: ExpenseSummary = ExpenseSummary()
    insights: List[str] = []
    groups: List[ExpenseGroup] = []


# --- Aggregation ---

class Period(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: date
    end: date

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def __str__(self) -> str:
        return f"{self.start.isoformat()} to {self.end.isoformat()}"


class CategoryBreakdown(BaseModel):
    category: str
    amount: float
    percentage: float
    count: int


class DailyTrend(BaseModel):
    date: date
    amount: float


class PaymentMethodBreakdown(BaseModel):
    method: str
    amount: float
    count: int


class FinancialData(BaseModel):
    total_income: float = 0.0
    total_expenses: float = 0.0
    category_breakdown: List[CategoryBreakdown] = []
    daily_trends: List[DailyTrend] = []
    payment_methods: List[PaymentMethodBreakdown] = []

    @property
    def net_savings(self) -> float:
        return self.total_income - self.total_expenses

    @property
    def savings_rate(self) -> float:
        if self.total_income > 0:
            return (self.total_income - self.total_expenses) / self.total_income * 100
        return 0.0

    @property
    def transaction_count(self) -> int:
        return sum(p.count for p in self.payment_methods)


class FinancialHealth(BaseModel):
    score: int
    status: str
    areas: List[str] = []


# --- getInsights ---

class InsightsRequest(BaseModel):
    user_id: int = Field(..., gt=0)
    analysis_type: AnalysisType = "monthly"
    start_date: Optional[date] = Field(None, description="Start date for custom analysis")
    end_date: Optional[date] = Field(None, description="End date for custom analysis")
    include_comparison: bool = Field(True, description="Include comparison with previous period")
    include_advice: bool = Field(True, description="Include AI-powered financial advice")


class PeriodComparison(BaseModel):
    previous_period: str
    income_change: float
    expense_change: float
    savings_change: float


class InsightsSummary(BaseModel):
    period: str = ""
    total_income: float = 0.0
    total_expenses: float = 0.0
    net_savings: float = 0.0
    savings_rate: float = 0.0
    top_expense_categories: List[CategoryBreakdown] = []
    spending_trends: List[DailyTrend] = []
    payment_method_breakdown: List[PaymentMethodBreakdown] = []
    comparison: Optional[PeriodComparison] = None
    highlights: List[str] = []


class InsightsResponse(BaseModel):
    success: bool
    insights: InsightsSummary = InsightsSummary()
    recommendations: List[str] = []
    financial_health: FinancialHealth = FinancialHealth(
        score=0, status="Error", areas=["Unable to calculate"]
    )


# --- Periodic report ---

class ReportRequest(BaseModel):
    user_ids: List[int] = Field(default_factory=lambda: [1], min_length=1)
    report_type: Literal["weekly", "monthly"] = "weekly"
    include_insights: bool = True
    include_comparison: bool = True


class ReportResult(BaseModel):
    success: bool
    reports_generated: int
    summary: str
    insights: List[str] = []
