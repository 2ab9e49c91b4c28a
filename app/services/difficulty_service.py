"""
Difficulty Classifier Service
Rates a DIY project as easy, medium or hard with a one-word OpenAI completion.
"""
import logging
import re

from openai import OpenAI, APIError, APIStatusError

from app.core.config import settings
from app.core.errors import ConfigurationError, MissingInputError, UpstreamError
from app.schemas.project import Difficulty

logger = logging.getLogger(__name__)

DEFAULT_DIFFICULTY = Difficulty.MEDIUM

_NON_LETTERS = re.compile(r"[^a-z]")


def normalize_difficulty(raw) -> Difficulty:
    """
    Map a free-text model reply onto one of the three levels.

    Lower-cases, keeps only a-z, then matches exactly. A lone "e" counts as
    easy. Everything else is medium.
    """
    cleaned = _NON_LETTERS.sub("", str(raw or "").strip().lower())
    if cleaned in ("easy", "medium", "hard"):
        return Difficulty(cleaned)
    if cleaned == "e":
        return Difficulty.EASY
    return DEFAULT_DIFFICULTY


def build_difficulty_prompt(title: str) -> str:
    return f'Rate the DIY difficulty of "{title}" as Easy, Medium, or Hard. Return only the one word.'


class DifficultyClassifierService:
    """Service for rating project difficulty"""

    def __init__(self, client=None) -> None:
        # Initialize OpenAI client only if API key is provided
        self.client = client
        if self.client is None and settings.OPENAI_API_KEY:
            self.client = OpenAI(
                api_key=settings.OPENAI_API_KEY,
                timeout=settings.OPENAI_TIMEOUT,
                max_retries=0,
            )

    def evaluate(self, title: str) -> Difficulty:
        """
        Rate a project title, raising on any failure.

        Raises MissingInputError for a blank title, ConfigurationError when no
        API key is configured and UpstreamError when OpenAI rejects the call.
        """
        title = (title or "").strip()
        if not title:
            raise MissingInputError("Missing title")
        if not self.client:
            raise ConfigurationError("Missing OPENAI_API_KEY")

        model_name = settings.CLASSIFIER_MODEL or "gpt-3.5-turbo"
        logger.info(f"Calling OpenAI model '{model_name}' for difficulty rating: {title!r}")

        try:
            response = self.client.chat.completions.create(
                model=model_name,
                messages=[{"role": "user", "content": build_difficulty_prompt(title)}],
                temperature=0,
                max_tokens=5,
            )
        except APIStatusError as e:
            raise UpstreamError("OpenAI request failed", details=e.response.text if e.response is not None else str(e)) from e
        except APIError as e:
            raise UpstreamError("OpenAI request failed", details=str(e)) from e

        raw = ""
        if response.choices:
            raw = response.choices[0].message.content or ""
        difficulty = normalize_difficulty(raw)
        logger.debug(f"Difficulty reply {raw!r} -> {difficulty.value}")
        return difficulty

    def classify(self, title: str) -> Difficulty:
        """Rate a project title; never raises, falls back to medium."""
        try:
            return self.evaluate(title)
        except Exception as e:
            logger.warning(f"Difficulty rating failed, using '{DEFAULT_DIFFICULTY.value}': {e}")
            return DEFAULT_DIFFICULTY


difficulty_service = DifficultyClassifierService()
