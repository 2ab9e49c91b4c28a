"""Shared test fixtures."""

import json
from unittest.mock import Mock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base
from app.models import Project  # noqa: F401  (registers the table)
from app.core.session import Viewer


ALICE = Viewer(id="user-alice")
BOB = Viewer(id="user-bob")
GUEST = Viewer()


def completion(text):
    """Build an object shaped like an OpenAI chat completion."""
    response = Mock()
    response.choices = [Mock()]
    response.choices[0].message.content = text
    return response


def openai_client(*replies):
    """Mock OpenAI client returning the given completion texts in order."""
    client = Mock()
    client.chat.completions.create.side_effect = [completion(text) for text in replies]
    return client


def plan_json(**overrides):
    data = {
        "title": "Install a Ceiling Fan",
        "difficulty": "easy",
        "time_estimate": "2-3 hours",
        "savings": {"pro": 250, "diy": 90},
        "tools_list": ["Screwdriver", "Voltage tester", "Ladder"],
        "steps_list": [
            "Turn off the breaker",
            "Remove the old fixture",
            "Mount the bracket",
            "Wire and hang the fan",
        ],
    }
    data.update(overrides)
    return json.dumps(data)


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def sample_plan():
    from app.schemas.project import CostEstimate, Difficulty, Plan

    return Plan(
        title="Fix a Leaky Faucet",
        difficulty=Difficulty.EASY,
        cost=CostEstimate(professional=150, diy=25),
        time_estimate="1 hour",
        tools=["Adjustable wrench", "Replacement washer"],
        steps=["Shut off the water", "Take apart the handle", "Replace the washer"],
    )
