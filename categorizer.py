"""
categorizer.py
--------------
Turn a natural language expense entry into structured fields.  The
language model is tried first; when it is missing or fails, a keyword
parser produces a lower-confidence result so ingestion never stalls.
"""

import logging
import math
import re
from typing import Optional, Tuple

from categories import CATEGORY_KEYWORDS, CATEGORY_NAMES, DEFAULT_CATEGORY, INCOME_KEYWORDS
from errors import DependencyError
from llm import ExpenseAgent
from schemas import ExtractedExpense

logger = logging.getLogger(__name__)

FALLBACK_AMOUNT = 100.0
FALLBACK_CONFIDENCE = 0.7
MAX_DESCRIPTION_LENGTH = 100

AMOUNT_RE = re.compile(r"₹\s?(\d+(?:,\d+)*(?:\.\d+)?)")
MERCHANT_RE = re.compile(r"\bat\s+([A-Za-z\s]+)", re.IGNORECASE)

EXTRACTION_PROMPT = """Analyze this Indian expense entry and extract structured information:
"{entry}"

Extract and return a JSON response with:
- amount (number): Amount in rupees
- description (string): Clean description
- category (string): One of these Indian categories: {categories}
- transactionType (string): "expense" or "income"
- merchantName (string): Store/merchant name if identifiable, otherwise null
- confidence (number): Your confidence in categorization (0-1)

Examples:
"Paid ₹500 for groceries at BigBazaar" → {{"amount": 500, "description": "Groceries at BigBazaar", "category": "Food & Dining", "transactionType": "expense", "merchantName": "BigBazaar", "confidence": 0.95}}
"Got salary ₹50000" → {{"amount": 50000, "description": "Salary", "category": "Miscellaneous", "transactionType": "income", "merchantName": null, "confidence": 0.9}}"""


def build_extraction_prompt(entry: str) -> str:
    return EXTRACTION_PROMPT.format(entry=entry, categories=", ".join(CATEGORY_NAMES))


def parse_expense_with_fallback(entry: str) -> ExtractedExpense:
    """Keyword/regex extraction used when the language model is unavailable.

    Pure and total: any string, including an empty one, yields a valid
    record with confidence 0.7.
    """
    lowered = entry.lower()

    amount = FALLBACK_AMOUNT
    match = AMOUNT_RE.search(entry)
    if match:
        parsed = float(match.group(1).replace(",", ""))
        # very long digit runs overflow to inf
        if parsed > 0 and math.isfinite(parsed):
            amount = parsed

    if any(keyword in lowered for keyword in INCOME_KEYWORDS):
        transaction_type = "income"
    else:
        transaction_type = "expense"

    category = DEFAULT_CATEGORY
    for keyword, mapped in CATEGORY_KEYWORDS:
        if keyword in lowered:
            category = mapped
            break

    merchant_match = MERCHANT_RE.search(entry)
    merchant_name = merchant_match.group(1).strip() if merchant_match else None

    return ExtractedExpense(
        amount=amount,
        description=entry[:MAX_DESCRIPTION_LENGTH],
        category=category,
        transaction_type=transaction_type,
        merchant_name=merchant_name or None,
        confidence=FALLBACK_CONFIDENCE,
    )


def extract_expense(entry: str, agent: Optional[ExpenseAgent]) -> Tuple[ExtractedExpense, bool]:
    """Return the extracted fields and whether the language model produced them."""
    if agent is None:
        logger.warning("No language model configured, using fallback parser")
        return parse_expense_with_fallback(entry), False

    try:
        return agent.generate_object(build_extraction_prompt(entry), ExtractedExpense), True
    except DependencyError as exc:
        logger.warning("AI extraction failed, using fallback parser: %s", exc.message)
    except Exception:
        logger.warning("Unexpected AI extraction failure, using fallback parser", exc_info=True)
    return parse_expense_with_fallback(entry), False
