from types import SimpleNamespace

import httpx
import openai
import pytest

from errors import DependencyError
from llm import ExpenseAgent, get_agent
from schemas import ExtractedExpense


class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def make_agent(content=None, error=None):
    completions = FakeCompletions(content=content, error=error)
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return ExpenseAgent(client, model="gpt-4o"), completions


def test_generate_returns_text_and_sends_system_prompt():
    agent, completions = make_agent(content="1. Save more\n2. Spend less")

    assert agent.generate("advise me") == "1. Save more\n2. Spend less"

    messages = completions.calls[0]["messages"]
    assert messages[0]["role"] == "system"
    assert "Indian" in messages[0]["content"]
    assert messages[1] == {"role": "user", "content": "advise me"}


def test_generate_handles_empty_content():
    agent, _ = make_agent(content=None)
    assert agent.generate("anything") == ""


def test_generate_object_parses_fenced_json():
    content = (
        '```json\n{"amount": 500, "description": "Groceries at BigBazaar", "category": "Food & Dining", '
        '"transactionType": "expense", "merchantName": "BigBazaar", "confidence": 0.95}\n```'
    )
    agent, completions = make_agent(content=content)

    result = agent.generate_object("extract", ExtractedExpense)

    assert result.amount == 500
    assert result.merchant_name == "BigBazaar"
    assert completions.calls[0]["response_format"] == {"type": "json_object"}


def test_generate_object_rejects_schema_mismatch():
    agent, _ = make_agent(content='{"amount": "lots"}')

    with pytest.raises(DependencyError) as exc_info:
        agent.generate_object("extract", ExtractedExpense)

    assert exc_info.value.details["error_type"] == "schema_mismatch"


def test_api_errors_become_dependency_errors():
    error = openai.APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"))
    agent, _ = make_agent(error=error)

    with pytest.raises(DependencyError) as exc_info:
        agent.generate("advise me")

    assert exc_info.value.details["error_type"] == "APIConnectionError"


def test_no_agent_without_api_key():
    get_agent.cache_clear()
    assert get_agent() is None


def test_empty_choices_become_dependency_errors():
    completions = FakeCompletions()
    completions.create = lambda **kwargs: SimpleNamespace(choices=[])
    agent = ExpenseAgent(SimpleNamespace(chat=SimpleNamespace(completions=completions)))

    with pytest.raises(DependencyError) as exc_info:
        agent.generate("advise me")

    assert exc_info.value.details["error_type"] == "empty_response"
