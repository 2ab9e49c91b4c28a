# tests/test_difficulty_service.py
"""Tests for the difficulty classifier."""

import httpx
import pytest
from openai import APIConnectionError, APIStatusError
from unittest.mock import Mock

from conftest import openai_client


@pytest.mark.parametrize("raw,expected", [
    ("Easy", "easy"),
    ("MEDIUM.", "medium"),
    ("  hard!\n", "hard"),
    ("**Hard**", "hard"),
    ("e", "easy"),
    ("E.", "easy"),
    ("", "medium"),
    (None, "medium"),
    ("very hard", "medium"),
    ("Medium difficulty", "medium"),
    ("difficult", "medium"),
    ("h", "medium"),
    ("42", "medium"),
])
def test_normalize_difficulty(raw, expected):
    from app.services.difficulty_service import normalize_difficulty

    assert normalize_difficulty(raw).value == expected


def test_prompt_asks_for_one_word():
    from app.services.difficulty_service import build_difficulty_prompt

    prompt = build_difficulty_prompt("Tile a backsplash")
    assert '"Tile a backsplash"' in prompt
    assert "Easy, Medium, or Hard" in prompt
    assert "only the one word" in prompt


def test_evaluate_sends_short_deterministic_request():
    from app.services.difficulty_service import DifficultyClassifierService
    from app.schemas.project import Difficulty

    client = openai_client("Hard")
    service = DifficultyClassifierService(client=client)

    assert service.evaluate("Replace a roof") == Difficulty.HARD

    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["temperature"] == 0
    assert kwargs["max_tokens"] == 5
    assert kwargs["messages"][0]["role"] == "user"
    assert "Replace a roof" in kwargs["messages"][0]["content"]


def test_evaluate_blank_title_makes_no_call():
    from app.services.difficulty_service import DifficultyClassifierService
    from app.core.errors import MissingInputError

    client = openai_client("easy")
    service = DifficultyClassifierService(client=client)

    with pytest.raises(MissingInputError):
        service.evaluate("   ")
    client.chat.completions.create.assert_not_called()


def test_evaluate_without_api_key_is_configuration_error():
    from app.services.difficulty_service import DifficultyClassifierService
    from app.core.errors import ConfigurationError

    service = DifficultyClassifierService()
    service.client = None

    with pytest.raises(ConfigurationError):
        service.evaluate("Paint a fence")


def test_evaluate_upstream_status_error_carries_body():
    from app.services.difficulty_service import DifficultyClassifierService
    from app.core.errors import UpstreamError

    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    response = httpx.Response(429, request=request, text="rate limited")
    client = Mock()
    client.chat.completions.create.side_effect = APIStatusError("rate limited", response=response, body=None)

    service = DifficultyClassifierService(client=client)
    with pytest.raises(UpstreamError) as exc_info:
        service.evaluate("Paint a fence")

    assert "rate limited" in exc_info.value.details


def test_classify_never_raises():
    from app.services.difficulty_service import DifficultyClassifierService
    from app.schemas.project import Difficulty

    client = Mock()
    client.chat.completions.create.side_effect = APIConnectionError(
        request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    )
    service = DifficultyClassifierService(client=client)

    assert service.classify("Build a deck") == Difficulty.MEDIUM
    assert service.classify("") == Difficulty.MEDIUM


def test_classify_without_client_defaults_to_medium():
    from app.services.difficulty_service import DifficultyClassifierService
    from app.schemas.project import Difficulty

    service = DifficultyClassifierService()
    service.client = None

    assert service.classify("Build a deck") == Difficulty.MEDIUM


def test_classify_garbled_reply_is_medium():
    from app.services.difficulty_service import DifficultyClassifierService
    from app.schemas.project import Difficulty

    service = DifficultyClassifierService(client=openai_client("I would say it's moderately hard"))
    assert service.classify("Hang drywall") == Difficulty.MEDIUM
