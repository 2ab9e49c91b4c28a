# tests/test_planning_pipeline.py
"""Tests for concurrent generation + classification and the merge rule."""

import asyncio
import threading
from unittest.mock import Mock

import pytest

from app.schemas.project import Difficulty, Plan
from app.services.planning_service import PlanningPipeline
from app.services.progress_tracker import ProgressTracker


def _plan(difficulty=Difficulty.EASY):
    return Plan(
        title="Install a Ceiling Fan",
        difficulty=difficulty,
        tools=["Screwdriver", "Ladder"],
        steps=["Turn off power", "Mount bracket", "Hang fan"],
    )


def _blocking(release, value):
    def call(_term):
        release.wait(5)
        return value
    return call


async def _wait_for(predicate):
    for _ in range(500):
        if predicate():
            return
        await asyncio.sleep(0.01)
    raise AssertionError("condition not reached")


def test_classifier_wins_when_it_resolves_last():
    async def scenario():
        release = threading.Event()
        generator = Mock()
        generator.generate.return_value = _plan(Difficulty.EASY)
        classifier = Mock()
        classifier.classify.side_effect = _blocking(release, Difficulty.HARD)

        draft = PlanningPipeline(generator, classifier).start("install a ceiling fan")
        await _wait_for(lambda: draft.plan is not None)

        # Generator's guess is shown first and the user starts working
        assert draft.plan.difficulty == Difficulty.EASY
        tracker = ProgressTracker.from_plan(draft.plan)
        tracker.toggle_step(1)

        release.set()
        plan = await draft.wait()
        return draft, plan, tracker

    draft, plan, tracker = asyncio.run(scenario())

    assert plan.difficulty == Difficulty.HARD
    assert draft.generator_difficulty == Difficulty.EASY
    assert draft.classified_difficulty == Difficulty.HARD
    assert tracker.completed_step_ids == [1]


def test_classifier_wins_when_it_resolves_first():
    async def scenario():
        release = threading.Event()
        generator = Mock()
        generator.generate.side_effect = _blocking(release, _plan(Difficulty.EASY))
        classifier = Mock()
        classifier.classify.return_value = Difficulty.MEDIUM

        draft = PlanningPipeline(generator, classifier).start("install a ceiling fan")
        await _wait_for(lambda: draft.classified_difficulty is not None)
        assert draft.plan is None

        release.set()
        return await draft.wait()

    plan = asyncio.run(scenario())
    assert plan.difficulty == Difficulty.MEDIUM


def test_blank_term_schedules_nothing():
    from app.core.errors import MissingInputError

    generator = Mock()
    classifier = Mock()
    pipeline = PlanningPipeline(generator, classifier)

    async def scenario():
        with pytest.raises(MissingInputError):
            pipeline.start("   ")

    asyncio.run(scenario())
    generator.generate.assert_not_called()
    classifier.classify.assert_not_called()


def test_start_requires_running_loop():
    generator = Mock()
    classifier = Mock()

    with pytest.raises(RuntimeError):
        PlanningPipeline(generator, classifier).start("install a ceiling fan")

    generator.generate.assert_not_called()
    classifier.classify.assert_not_called()

def test_generation_error_surfaces_from_wait():
    from app.core.errors import GenerationError

    generator = Mock()
    generator.generate.side_effect = GenerationError("Failed to parse the generated plan")
    classifier = Mock()
    classifier.classify.return_value = Difficulty.EASY

    with pytest.raises(GenerationError):
        asyncio.run(PlanningPipeline(generator, classifier).run("build a shed"))


def test_closed_draft_discards_late_results():
    async def scenario():
        release = threading.Event()
        generator = Mock()
        generator.generate.side_effect = _blocking(release, _plan())
        classifier = Mock()
        classifier.classify.side_effect = _blocking(release, Difficulty.HARD)

        draft = PlanningPipeline(generator, classifier).start("install a ceiling fan")
        draft.close()
        release.set()
        await draft.wait()
        return draft

    draft = asyncio.run(scenario())

    assert draft.done
    assert draft.plan is None
    assert draft.classified_difficulty is None
