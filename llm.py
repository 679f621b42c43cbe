"""
llm.py
------
Thin wrapper around the OpenAI chat completions API used as the expense
assistant.  Callers treat it as a black box: a prompt goes in, free text or
a validated pydantic object comes out, and every failure surfaces as a
``DependencyError`` so the caller can take its deterministic fallback.
"""

import logging
import os
from functools import lru_cache
from typing import Optional, Type, TypeVar

import openai
from dotenv import load_dotenv
from openai import OpenAI
from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from errors import DependencyError

load_dotenv()

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL") or None
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o")

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

AGENT_INSTRUCTIONS = """You are an intelligent expense tracking assistant specialized in Indian financial contexts. You help users manage their personal finances with deep understanding of Indian spending patterns, payment methods, and cultural contexts.

Key Capabilities:
- Parse natural language expense entries in both English and Hindi contexts
- Automatically categorize expenses based on Indian spending patterns
- Understand Indian payment methods (UPI, Cash, Card, Net Banking, RTGS, NEFT)
- Recognize Indian merchants, brands, and locations
- Provide culturally relevant financial insights and advice
- Handle Indian currency (₹ Rupees) and amounts

Indian Context Understanding:
- Food: street food, dhabas, restaurants, groceries, tiffin services
- Transportation: auto-rickshaw, taxi, metro, bus, petrol/diesel, cab aggregators
- Bills: mobile recharge, DTH, electricity, water, gas cylinder, internet
- Shopping: local markets, malls, online platforms (Flipkart, Amazon, etc.)
- Healthcare: government hospitals, private clinics, medical shops, lab tests
- Education: school fees, coaching classes, books, stationery
- Entertainment: movies, streaming subscriptions, events, gaming
- Travel: train tickets, flight bookings, hotel stays, pilgrimages

Always respond in a helpful, culturally aware manner and suggest appropriate categories for expenses."""


def _strip_code_fences(content: str) -> str:
    return content.replace("```json", "").replace("```", "").strip()


class ExpenseAgent:
    def __init__(self, client: OpenAI, model: str = OPENAI_MODEL, instructions: str = AGENT_INSTRUCTIONS):
        self.client = client
        self.model = model
        self.instructions = instructions

    def _complete(self, prompt: str, **kwargs) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": self.instructions},
                    {"role": "user", "content": prompt},
                ],
                **kwargs,
            )
        except openai.OpenAIError as exc:
            raise DependencyError(
                f"Language model request failed: {exc}",
                details={"error_type": type(exc).__name__, "model": self.model},
            ) from exc

        if not response.choices:
            raise DependencyError(
                "Language model returned no choices",
                details={"error_type": "empty_response", "model": self.model},
            )
        return response.choices[0].message.content or ""

    def generate(self, prompt: str) -> str:
        """Free-text completion."""
        return self._complete(prompt, temperature=0.3)

    def generate_object(self, prompt: str, schema: Type[T]) -> T:
        """JSON-mode completion validated against ``schema``."""
        content = self._complete(
            prompt,
            temperature=0.1,
            response_format={"type": "json_object"},
        )
        try:
            return schema.model_validate_json(_strip_code_fences(content))
        except SchemaError as exc:
            raise DependencyError(
                "Language model returned output that does not match the schema",
                details={"error_type": "schema_mismatch", "errors": exc.errors()},
            ) from exc


@lru_cache()
def get_agent() -> Optional[ExpenseAgent]:
    """Shared agent, or None when no API key is configured."""
    if not OPENAI_API_KEY:
        logger.info("OPENAI_API_KEY not set; AI features will use fallbacks")
        return None
    return ExpenseAgent(OpenAI(api_key=OPENAI_API_KEY, base_url=OPENAI_BASE_URL))
