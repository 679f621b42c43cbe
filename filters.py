from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from database import Expense, ExpenseCategory
from errors import InvalidRangeError, ValidationError

TRANSACTION_TYPES = ("expense", "income")


@dataclass(frozen=True)
class ExpenseFilter:
    """Typed row filter for the expenses table.

    Every field maps to exactly one bound-parameter clause; values are never
    interpolated into SQL text.  ``category`` matches the category name, so
    queries using it must join ``ExpenseCategory``.
    """

    user_id: int
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    category: Optional[str] = None
    transaction_type: Optional[str] = None

    def __post_init__(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise InvalidRangeError(
                f"Start date {self.start_date.isoformat()} is after end date {self.end_date.isoformat()}",
                details={"start_date": self.start_date.isoformat(), "end_date": self.end_date.isoformat()},
            )
        if self.transaction_type is not None and self.transaction_type not in TRANSACTION_TYPES:
            raise ValidationError(f"Unknown transaction type: {self.transaction_type}")

    def clauses(self) -> List:
        conditions = [Expense.user_id == self.user_id]
        if self.start_date:
            conditions.append(Expense.transaction_date >= self.start_date)
        if self.end_date:
            conditions.append(Expense.transaction_date <= self.end_date)
        if self.category:
            conditions.append(ExpenseCategory.name == self.category)
        if self.transaction_type:
            conditions.append(Expense.transaction_type == self.transaction_type)
        return conditions
