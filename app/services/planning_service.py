"""
Planning Service
Runs plan generation and difficulty rating side by side for one search term.

The two OpenAI calls resolve independently. The classifier's difficulty
always wins: it is applied to the plan whenever it arrives, before or after
the generated plan itself. A closed draft drops any late result.
"""
from typing import List, Optional
import asyncio
import logging

from app.core.errors import MissingInputError, PlannerError
from app.schemas.project import Difficulty, Plan
from app.services.difficulty_service import DifficultyClassifierService, difficulty_service
from app.services.plan_generator_service import PlanGeneratorService, plan_generator_service

logger = logging.getLogger(__name__)


class PlanDraft:
    """A plan being assembled from the generator and classifier results"""

    def __init__(self, term: str):
        self.term = term
        self.plan: Optional[Plan] = None
        self.generator_difficulty: Optional[Difficulty] = None
        self.classified_difficulty: Optional[Difficulty] = None
        self.error: Optional[PlannerError] = None
        self.closed = False
        self._tasks: List[asyncio.Task] = []

    @property
    def difficulty(self) -> Optional[Difficulty]:
        return self.plan.difficulty if self.plan else self.classified_difficulty

    def apply_plan(self, plan: Plan) -> bool:
        if self.closed:
            logger.debug(f"Discarding generated plan for closed draft {self.term!r}")
            return False
        self.generator_difficulty = plan.difficulty
        if self.classified_difficulty is not None:
            plan = plan.model_copy(update={"difficulty": self.classified_difficulty})
        self.plan = plan
        return True

    def apply_classification(self, difficulty: Difficulty) -> bool:
        if self.closed:
            logger.debug(f"Discarding difficulty for closed draft {self.term!r}")
            return False
        self.classified_difficulty = difficulty
        if self.plan is not None and self.plan.difficulty != difficulty:
            logger.info(f"Classifier changed difficulty of '{self.plan.title}': {self.plan.difficulty.value} -> {difficulty.value}")
            self.plan = self.plan.model_copy(update={"difficulty": difficulty})
        return True

    def fail(self, error: PlannerError) -> None:
        if self.closed:
            return
        self.error = error

    def close(self) -> None:
        """Abandon the draft; in-flight calls keep running but their results are dropped"""
        self.closed = True

    @property
    def done(self) -> bool:
        return all(task.done() for task in self._tasks)

    async def wait(self) -> Plan:
        """Wait for both results and return the merged plan"""
        await asyncio.gather(*self._tasks)
        if self.error is not None:
            raise self.error
        return self.plan


class PlanningPipeline:
    """Starts generation and classification together for a search term"""

    def __init__(
        self,
        generator: Optional[PlanGeneratorService] = None,
        classifier: Optional[DifficultyClassifierService] = None,
    ):
        self.generator = generator or plan_generator_service
        self.classifier = classifier or difficulty_service

    def start(self, term: str) -> PlanDraft:
        """Schedule both calls on the running loop and return the draft immediately"""
        term = (term or "").strip()
        if not term:
            raise MissingInputError("No search term provided")

        loop = asyncio.get_running_loop()
        draft = PlanDraft(term)
        draft._tasks = [
            loop.create_task(self._generate(draft)),
            loop.create_task(self._classify(draft)),
        ]
        return draft

    async def run(self, term: str) -> PlanDraft:
        draft = self.start(term)
        await draft.wait()
        return draft

    async def _generate(self, draft: PlanDraft) -> None:
        loop = asyncio.get_running_loop()
        try:
            plan = await loop.run_in_executor(None, self.generator.generate, draft.term)
        except PlannerError as e:
            logger.error(f"Plan generation failed for {draft.term!r}: {e}")
            draft.fail(e)
            return
        draft.apply_plan(plan)

    async def _classify(self, draft: PlanDraft) -> None:
        loop = asyncio.get_running_loop()
        # classify() never raises; failures come back as medium
        difficulty = await loop.run_in_executor(None, self.classifier.classify, draft.term)
        draft.apply_classification(difficulty)


planning_pipeline = PlanningPipeline()
