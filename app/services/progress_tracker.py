"""
Progress Tracker
Completed-step and owned-tool state for one project, with derived values.
"""
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence
import logging

from app.schemas.project import Plan, ProjectStatus, ProjectStep, ProjectTool, ToolCategory

logger = logging.getLogger(__name__)


@dataclass
class ProgressSnapshot:
    """What gets written back after a toggle"""
    completed_step_ids: List[int]
    owned_tool_ids: List[int]
    status: ProjectStatus


def number_steps(instructions: Iterable[str]) -> List[ProjectStep]:
    return [ProjectStep(id=i, instruction=text) for i, text in enumerate(instructions, start=1)]


def number_tools(names: Iterable[str]) -> List[ProjectTool]:
    # Generated plans carry names only; price and category are unknown
    return [
        ProjectTool(id=i, name=name, price=0, category=ToolCategory.TOOL, search_hint=name)
        for i, name in enumerate(names, start=1)
    ]


def derive_status(step_ids: Iterable[int], completed_step_ids: Iterable[int]) -> ProjectStatus:
    step_ids = set(step_ids)
    if step_ids and step_ids.issubset(set(completed_step_ids)):
        return ProjectStatus.COMPLETED
    return ProjectStatus.IN_PROGRESS


def completion_percent(step_count: int, completed_count: int) -> float:
    if step_count <= 0:
        return 0.0
    return 100.0 * completed_count / step_count


class ProgressTracker:
    """
    Tracks which steps are done and which tools are already owned.

    Derived values are computed on every access. Each effective toggle calls
    ``persist`` with a ProgressSnapshot; a failing write is logged and kept in
    ``last_error`` but the toggle itself stays applied.
    """

    def __init__(
        self,
        steps: Sequence[ProjectStep],
        tools: Sequence[ProjectTool],
        completed_step_ids: Iterable[int] = (),
        owned_tool_ids: Iterable[int] = (),
        can_edit: bool = True,
        persist: Optional[Callable[[ProgressSnapshot], None]] = None,
    ):
        self.steps = list(steps)
        self.tools = list(tools)
        self.can_edit = can_edit
        self.persist = persist
        self.last_error: Optional[str] = None
        self._step_ids = {step.id for step in self.steps}
        self._tool_ids = {tool.id for tool in self.tools}
        self._completed = {i for i in completed_step_ids if i in self._step_ids}
        self._owned = {i for i in owned_tool_ids if i in self._tool_ids}

    @classmethod
    def from_plan(cls, plan: Plan, **kwargs) -> "ProgressTracker":
        return cls(number_steps(plan.steps), number_tools(plan.tools), **kwargs)

    @property
    def completed_step_ids(self) -> List[int]:
        return sorted(self._completed)

    @property
    def owned_tool_ids(self) -> List[int]:
        return sorted(self._owned)

    @property
    def status(self) -> ProjectStatus:
        return derive_status(self._step_ids, self._completed)

    @property
    def completion_percent(self) -> float:
        return completion_percent(len(self.steps), len(self._completed))

    @property
    def remaining_cost(self) -> float:
        return sum(tool.price for tool in self.tools if tool.id not in self._owned)

    def snapshot(self) -> ProgressSnapshot:
        return ProgressSnapshot(
            completed_step_ids=self.completed_step_ids,
            owned_tool_ids=self.owned_tool_ids,
            status=self.status,
        )

    def toggle_step(self, step_id: int) -> bool:
        """Flip a step's completion. Returns False if nothing changed."""
        return self._toggle(self._completed, self._step_ids, step_id, "step")

    def toggle_tool(self, tool_id: int) -> bool:
        """Flip whether a tool is owned. Returns False if nothing changed."""
        return self._toggle(self._owned, self._tool_ids, tool_id, "tool")

    def _toggle(self, selected: set, known: set, item_id: int, kind: str) -> bool:
        if not self.can_edit:
            logger.debug(f"Ignoring {kind} toggle {item_id}: viewer cannot edit")
            return False
        if item_id not in known:
            logger.debug(f"Ignoring toggle of unknown {kind} {item_id}")
            return False

        selected.symmetric_difference_update({item_id})
        self._write()
        return True

    def _write(self) -> None:
        if self.persist is None:
            return
        try:
            self.persist(self.snapshot())
            self.last_error = None
        except Exception as e:
            logger.error(f"Failed to save progress: {e}", exc_info=True)
            self.last_error = str(e)
