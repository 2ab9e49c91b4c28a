"""
Project Store Service
Saves, loads, lists and mutates DIY projects.

Ownership and visibility are enforced in the queries themselves: updates and
deletes are filtered on owner_id, and a write that touches no row is an error.
"""
from datetime import datetime, timezone
from typing import Iterable, List, Optional
import logging
import uuid

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.errors import (
    AuthenticationRequiredError,
    AuthorizationError,
    MissingInputError,
    NotFoundError,
    PrivacyError,
)
from app.core.session import Viewer
from app.models.project import Project
from app.schemas.project import (
    Difficulty,
    Plan,
    ProjectDetail,
    ProjectStatus,
    ProjectStep,
    ProjectSummary,
    ProjectTool,
    ToolCategory,
)
from app.services.progress_tracker import (
    completion_percent,
    derive_status,
    number_steps,
    number_tools,
)

logger = logging.getLogger(__name__)


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _require_title(title: str) -> str:
    title = (title or "").strip()
    if not title:
        raise MissingInputError("Project title cannot be empty")
    return title


def _valid_ids(ids: Iterable[int], entries: Iterable[dict]) -> List[int]:
    known = {entry.get("id") for entry in entries}
    return sorted({i for i in ids if i in known})


def project_steps(project: Project) -> List[ProjectStep]:
    return [
        ProjectStep(id=item["id"], instruction=item.get("instruction", ""), tips=item.get("tips"))
        for item in (project.steps_json or [])
    ]


def project_tools(project: Project) -> List[ProjectTool]:
    tools = []
    for item in project.tools_json or []:
        category = item.get("category") or ToolCategory.TOOL.value
        tools.append(ProjectTool(
            id=item["id"],
            name=item.get("name", ""),
            price=item.get("price") or 0,
            category=category if category in ("tool", "material") else ToolCategory.TOOL,
            search_hint=item.get("search_hint") or item.get("name", ""),
        ))
    return tools


def can_view(project: Project, viewer: Viewer) -> bool:
    return bool(project.is_public) or viewer.owns(project.owner_id)


def to_summary(project: Project, viewer: Viewer) -> ProjectSummary:
    steps = project.steps_json or []
    completed = _valid_ids(project.completed_steps or [], steps)
    return ProjectSummary(
        id=project.id,
        title=project.title,
        difficulty=project.difficulty,
        status=derive_status((s["id"] for s in steps), completed),
        is_public=bool(project.is_public),
        is_owner=viewer.owns(project.owner_id),
        step_count=len(steps),
        completed_count=len(completed),
        completion_percent=completion_percent(len(steps), len(completed)),
        professional_cost=project.professional_cost or 0,
        diy_cost=project.diy_cost or 0,
        created_at=project.created_at,
    )


def to_detail(project: Project, viewer: Viewer) -> ProjectDetail:
    steps = project_steps(project)
    tools = project_tools(project)
    completed = _valid_ids(project.completed_steps or [], project.steps_json or [])
    owned = _valid_ids(project.owned_items or [], project.tools_json or [])
    is_owner = viewer.owns(project.owner_id)
    professional = project.professional_cost or 0
    diy = project.diy_cost or 0
    return ProjectDetail(
        id=project.id,
        owner_id=project.owner_id,
        is_public=bool(project.is_public),
        title=project.title,
        difficulty=project.difficulty,
        time_estimate=project.time_estimate,
        professional_cost=professional,
        diy_cost=diy,
        savings=professional - diy,
        steps=steps,
        tools=tools,
        completed_step_ids=completed,
        owned_tool_ids=owned,
        status=derive_status((s.id for s in steps), completed),
        completion_percent=completion_percent(len(steps), len(completed)),
        remaining_cost=sum(t.price for t in tools if t.id not in owned),
        is_owner=is_owner,
        can_edit=is_owner,
        can_delete=is_owner,
        created_at=project.created_at,
        updated_at=project.updated_at,
    )


class ProjectStoreService:
    """Persistence for saved projects, scoped to a database session"""

    def __init__(self, db: Session):
        self.db = db

    # ---------- Queries ----------

    def list_projects(self, viewer: Viewer) -> List[Project]:
        """The viewer's own projects, newest first"""
        if not viewer.is_authenticated:
            raise AuthenticationRequiredError("Sign in to see your projects")
        return (
            self.db.query(Project)
            .filter(Project.owner_id == viewer.id)
            .order_by(Project.created_at.desc())
            .all()
        )

    def search_projects(self, term: str, viewer: Viewer) -> List[Project]:
        """
        Case-insensitive title search.

        Anonymous viewers only see public projects; signed-in viewers also
        see their own private ones.
        """
        term = (term or "").strip()
        if not term:
            return []

        query = self.db.query(Project).filter(
            Project.title.ilike(f"%{_escape_like(term)}%", escape="\\")
        )
        if viewer.is_authenticated:
            query = query.filter(or_(Project.is_public.is_(True), Project.owner_id == viewer.id))
        else:
            query = query.filter(Project.is_public.is_(True))

        logger.info(f"Searching projects for {term!r} as {'user' if viewer.is_authenticated else 'guest'}")
        return query.order_by(Project.created_at.desc()).all()

    def load(self, project_id: str, viewer: Viewer) -> Project:
        project = self.db.query(Project).filter(Project.id == project_id).first()
        if not project:
            raise NotFoundError("Project not found")
        if not can_view(project, viewer):
            logger.warning(f"Blocked access to private project {project_id} by viewer {viewer.id}")
            raise PrivacyError("This project is private")
        return project

    # ---------- Mutations ----------

    def save(
        self,
        plan: Plan,
        viewer: Viewer,
        is_public: bool = False,
        completed_step_ids: Iterable[int] = (),
        owned_tool_ids: Iterable[int] = (),
        difficulty: Optional[Difficulty] = None,
    ) -> Project:
        """
        Insert a new project owned by the viewer.

        A rated ``difficulty`` replaces the one carried by the plan.
        """
        if not viewer.is_authenticated:
            raise AuthenticationRequiredError("Sign in to save projects")
        title = _require_title(plan.title)

        difficulty = difficulty or plan.difficulty

        steps = [step.model_dump(exclude_none=True) for step in number_steps(plan.steps)]
        tools = [tool.model_dump(mode="json") for tool in number_tools(plan.tools)]
        completed = _valid_ids(completed_step_ids, steps)
        owned = _valid_ids(owned_tool_ids, tools)
        now = datetime.now(timezone.utc)

        project = Project(
            id=str(uuid.uuid4()),
            owner_id=viewer.id,
            is_public=is_public,
            title=title,
            difficulty=Difficulty(difficulty).value,
            time_estimate=plan.time_estimate,
            professional_cost=plan.cost.professional,
            diy_cost=plan.cost.diy,
            steps_json=steps,
            tools_json=tools,
            completed_steps=completed,
            owned_items=owned,
            status=derive_status((s["id"] for s in steps), completed).value,
            created_at=now,
            updated_at=now,
        )
        try:
            self.db.add(project)
            self.db.commit()
            self.db.refresh(project)
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Saved project {project.id} '{project.title}' for {viewer.id}")
        return project

    def update_progress(
        self,
        project_id: str,
        viewer: Viewer,
        completed_step_ids: Iterable[int],
        owned_tool_ids: Iterable[int],
    ) -> Project:
        project = self._get(project_id)
        completed = _valid_ids(completed_step_ids, project.steps_json or [])
        owned = _valid_ids(owned_tool_ids, project.tools_json or [])
        return self._update_owned(project_id, viewer, {
            Project.completed_steps: completed,
            Project.owned_items: owned,
            Project.status: derive_status((s["id"] for s in project.steps_json or []), completed).value,
        })

    def update_details(
        self,
        project_id: str,
        viewer: Viewer,
        title: Optional[str] = None,
        steps: Optional[List[str]] = None,
    ) -> Project:
        """Edit the title and/or replace the steps (which resets step progress)"""
        project = self._get(project_id)
        values = {}
        if title is not None:
            values[Project.title] = _require_title(title)
        if steps is not None:
            new_steps = [step.model_dump(exclude_none=True) for step in number_steps(steps)]
            values[Project.steps_json] = new_steps
            values[Project.completed_steps] = []
            values[Project.status] = ProjectStatus.IN_PROGRESS.value
        else:
            values[Project.status] = derive_status(
                (s["id"] for s in project.steps_json or []), project.completed_steps or []
            ).value
        return self._update_owned(project_id, viewer, values)

    def set_visibility(self, project_id: str, viewer: Viewer, is_public: bool) -> Project:
        self._get(project_id)
        return self._update_owned(project_id, viewer, {Project.is_public: is_public})

    def delete(self, project_id: str, viewer: Viewer) -> None:
        self._get(project_id)
        try:
            deleted = (
                self.db.query(Project)
                .filter(Project.id == project_id, Project.owner_id == viewer.id)
                .delete(synchronize_session=False)
            )
            if deleted == 0:
                self.db.rollback()
                logger.warning(f"Delete of project {project_id} by {viewer.id} matched no owned row")
                raise AuthorizationError("Only the owner can delete this project")
            self.db.commit()
        except AuthorizationError:
            raise
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"Deleted project {project_id}")

    # ---------- Helpers ----------

    def _get(self, project_id: str) -> Project:
        project = self.db.query(Project).filter(Project.id == project_id).first()
        if not project:
            raise NotFoundError("Project not found")
        return project

    def _update_owned(self, project_id: str, viewer: Viewer, values: dict) -> Project:
        values[Project.updated_at] = datetime.now(timezone.utc)
        try:
            updated = (
                self.db.query(Project)
                .filter(Project.id == project_id, Project.owner_id == viewer.id)
                .update(values, synchronize_session=False)
            )
            if updated == 0:
                self.db.rollback()
                logger.warning(f"Update of project {project_id} by {viewer.id} matched no owned row")
                raise AuthorizationError("Only the owner can change this project")
            self.db.commit()
        except AuthorizationError:
            raise
        except Exception:
            self.db.rollback()
            raise

        project = self._get(project_id)
        self.db.refresh(project)
        return project
