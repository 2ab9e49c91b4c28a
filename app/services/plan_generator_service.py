"""
Plan Generation Service
Generates DIY project plans using OpenAI API.
"""
from typing import List
import json
import logging
import re

from openai import OpenAI, APIError, APIStatusError
from pydantic import ValidationError

from app.core.config import settings
from app.core.errors import ConfigurationError, GenerationError, MissingInputError, UpstreamError
from app.schemas.project import CostEstimate, Difficulty, Plan
from app.services.difficulty_service import normalize_difficulty

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a helpful DIY home improvement assistant. "
    "Always return valid JSON only, no markdown code blocks."
)

_LEADING_FENCE = re.compile(r"^```[A-Za-z0-9_-]*[ \t]*\n?")
_TRAILING_FENCE = re.compile(r"\n?```$")


def strip_code_fences(text: str) -> str:
    """Remove a leading ```lang fence and a trailing ``` fence if present"""
    cleaned = (text or "").strip()
    if cleaned.startswith("```"):
        cleaned = _LEADING_FENCE.sub("", cleaned, count=1)
        cleaned = _TRAILING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def build_plan_prompt(term: str) -> str:
    return (
        f'Create a detailed DIY project plan for: "{term}"\n'
        "\n"
        "Return a JSON object with the following structure:\n"
        "{\n"
        '  "title": "Project title",\n'
        '  "difficulty": "easy" or "medium" or "hard",\n'
        '  "time_estimate": "rough time needed, e.g. 2-3 hours",\n'
        '  "savings": {\n'
        '    "pro": professional_cost_as_number,\n'
        '    "diy": diy_cost_as_number\n'
        "  },\n"
        '  "tools_list": ["tool1", "tool2", "tool3"],\n'
        '  "steps_list": ["step 1 instruction", "step 2 instruction", ...]\n'
        "}\n"
        "\n"
        "Make sure the response is valid JSON only, no markdown formatting."
    )


def _as_str_list(value, field: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise GenerationError(f"Field '{field}' is not a list", details=repr(value)[:200])
    return [str(item).strip() for item in value if str(item).strip()]


def parse_plan(content: str) -> Plan:
    """
    Parse a completion into a Plan.

    Raises GenerationError if the text is not a JSON object or is missing
    the title. Never returns a partially populated plan.
    """
    cleaned = strip_code_fences(content)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse plan JSON: {e}\nResponse: {content}")
        raise GenerationError("Failed to parse the generated plan", details=str(e)) from e

    if not isinstance(data, dict):
        raise GenerationError("Generated plan is not a JSON object", details=cleaned[:200])

    title = str(data.get("title") or "").strip()
    if not title:
        raise GenerationError("Generated plan has no title", details=cleaned[:200])

    raw_difficulty = data.get("difficulty")
    try:
        difficulty = Difficulty(str(raw_difficulty).strip().lower())
    except ValueError:
        difficulty = normalize_difficulty(raw_difficulty)

    savings = data.get("savings") or {}
    if not isinstance(savings, dict):
        raise GenerationError("Field 'savings' is not an object", details=repr(savings)[:200])

    time_estimate = data.get("time_estimate")

    try:
        return Plan(
            title=title,
            difficulty=difficulty,
            cost=CostEstimate(
                professional=float(savings.get("pro") or 0),
                diy=float(savings.get("diy") or 0),
            ),
            time_estimate=str(time_estimate).strip() if time_estimate else None,
            tools=_as_str_list(data.get("tools_list"), "tools_list"),
            steps=_as_str_list(data.get("steps_list"), "steps_list"),
        )
    except (TypeError, ValueError, ValidationError) as e:
        raise GenerationError("Generated plan has invalid values", details=str(e)) from e


class PlanGeneratorService:
    """Service for generating DIY project plans"""

    def __init__(self, client=None) -> None:
        # Initialize OpenAI client only if API key is provided
        self.client = client
        if self.client is None and settings.OPENAI_API_KEY:
            self.client = OpenAI(
                api_key=settings.OPENAI_API_KEY,
                timeout=settings.OPENAI_TIMEOUT,
                max_retries=0,
            )

    def generate(self, term: str) -> Plan:
        """
        Generate a plan for a search term.

        A single OpenAI call; no fallback and no retry. The caller decides
        whether to try again.
        """
        term = (term or "").strip()
        if not term:
            raise MissingInputError("No search term provided")
        if not self.client:
            raise ConfigurationError("OpenAI API key is not configured")

        model_name = settings.OPENAI_MODEL or "gpt-4o-mini"
        logger.info(f"Calling OpenAI model '{model_name}' for plan generation: {term!r}")

        try:
            response = self.client.chat.completions.create(
                model=model_name,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_plan_prompt(term)},
                ],
                temperature=0.7,
                max_tokens=2000,
            )
        except APIStatusError as e:
            logger.error(f"OpenAI API error during plan generation: {e}")
            raise UpstreamError("OpenAI request failed", details=e.response.text if e.response is not None else str(e)) from e
        except APIError as e:
            logger.error(f"OpenAI API error during plan generation: {e}")
            raise UpstreamError("OpenAI request failed", details=str(e)) from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise GenerationError("No response from OpenAI")

        plan = parse_plan(content)
        logger.info(f"Generated plan '{plan.title}' with {len(plan.steps)} steps and {len(plan.tools)} tools")
        return plan


plan_generator_service = PlanGeneratorService()
