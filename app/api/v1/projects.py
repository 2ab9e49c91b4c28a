"""
Project API endpoints
Endpoints for generating, saving and tracking DIY project plans
"""
import asyncio

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
import logging

from app.core.errors import AuthenticationRequiredError, AuthorizationError
from app.core.session import Viewer, get_viewer
from app.database import get_db
from app.models.project import Project
from app.schemas.project import (
    DashboardResponse,
    GenerateRequest,
    GenerateResponse,
    ProgressResponse,
    ProgressUpdateRequest,
    ProjectDetail,
    ProjectEditRequest,
    ProjectStatus,
    SaveProjectRequest,
    SaveProjectResponse,
    SearchResponse,
    VisibilityRequest,
)
from app.services.difficulty_service import difficulty_service
from app.services.plan_generator_service import plan_generator_service
from app.services.planning_service import PlanningPipeline
from app.services.progress_tracker import ProgressTracker
from app.services.project_store_service import (
    ProjectStoreService,
    project_steps,
    project_tools,
    to_detail,
    to_summary,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects", tags=["Projects"])


def _tracker_for(project: Project, viewer: Viewer, store: ProjectStoreService) -> ProgressTracker:
    def persist(snapshot):
        store.update_progress(project.id, viewer, snapshot.completed_step_ids, snapshot.owned_tool_ids)

    return ProgressTracker(
        project_steps(project),
        project_tools(project),
        completed_step_ids=project.completed_steps or [],
        owned_tool_ids=project.owned_items or [],
        can_edit=viewer.owns(project.owner_id),
        persist=persist,
    )


def _progress_response(tracker: ProgressTracker, changed: bool) -> ProgressResponse:
    return ProgressResponse(
        completed_step_ids=tracker.completed_step_ids,
        owned_tool_ids=tracker.owned_tool_ids,
        status=tracker.status,
        completion_percent=tracker.completion_percent,
        remaining_cost=tracker.remaining_cost,
        changed=changed,
        persist_error=tracker.last_error,
    )


@router.post(
    "/generate",
    response_model=GenerateResponse,
    responses={
        400: {"description": "Missing search term"},
        500: {"description": "OpenAI API key not configured"},
        502: {"description": "Plan generation failed"},
    },
)
async def generate_plan(request: GenerateRequest):
    """
    Generate a DIY plan preview for a search term.

    Plan generation and difficulty rating run concurrently; the rated
    difficulty replaces the generator's guess. Nothing is saved.
    """
    logger.info(f"Plan generation request received: term={request.term!r}")
    pipeline = PlanningPipeline(plan_generator_service, difficulty_service)
    draft = await pipeline.run(request.term)
    return GenerateResponse(
        plan=draft.plan,
        generator_difficulty=draft.generator_difficulty,
        classified_difficulty=draft.classified_difficulty,
    )


@router.post("/", response_model=SaveProjectResponse, status_code=status.HTTP_201_CREATED)
async def save_project(
    request: SaveProjectRequest,
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db),
):
    """
    Save a previewed plan for the signed-in viewer.

    Difficulty is re-rated from the title before saving.
    """
    if not viewer.is_authenticated:
        raise AuthenticationRequiredError("Sign in to save projects")

    loop = asyncio.get_running_loop()
    difficulty = await loop.run_in_executor(None, difficulty_service.classify, request.plan.title)

    store = ProjectStoreService(db)
    project = store.save(
        request.plan,
        viewer,
        is_public=request.is_public,
        completed_step_ids=request.completed_step_ids,
        owned_tool_ids=request.owned_tool_ids,
        difficulty=difficulty,
    )
    return SaveProjectResponse(id=project.id, difficulty=project.difficulty)


@router.get("/", response_model=DashboardResponse)
async def get_dashboard(
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db),
):
    """The viewer's projects split into in-progress and completed, newest first"""
    projects = ProjectStoreService(db).list_projects(viewer)
    summaries = [to_summary(project, viewer) for project in projects]
    return DashboardResponse(
        in_progress=[s for s in summaries if s.status == ProjectStatus.IN_PROGRESS],
        completed=[s for s in summaries if s.status == ProjectStatus.COMPLETED],
        total=len(summaries),
    )


@router.get("/search", response_model=SearchResponse)
async def search_projects(
    q: str = Query("", max_length=200, description="Title text to search for"),
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db),
):
    """Search public projects (and the viewer's own) by title"""
    projects = ProjectStoreService(db).search_projects(q, viewer)
    results = [to_summary(project, viewer) for project in projects]
    return SearchResponse(query=q.strip(), results=results, total=len(results))


@router.get("/{project_id}", response_model=ProjectDetail)
async def get_project(
    project_id: str,
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db),
):
    """Get a project by ID; private projects are only visible to their owner"""
    project = ProjectStoreService(db).load(project_id, viewer)
    return to_detail(project, viewer)


@router.patch("/{project_id}/progress", response_model=ProjectDetail)
async def update_progress(
    project_id: str,
    request: ProgressUpdateRequest,
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db),
):
    """Replace the completed steps and owned tools"""
    project = ProjectStoreService(db).update_progress(
        project_id, viewer, request.completed_step_ids, request.owned_tool_ids
    )
    return to_detail(project, viewer)


@router.post("/{project_id}/steps/{step_id}/toggle", response_model=ProgressResponse)
async def toggle_step(
    project_id: str,
    step_id: int,
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db),
):
    """Mark a step done, or undo it"""
    store = ProjectStoreService(db)
    tracker = _tracker_for(store.load(project_id, viewer), viewer, store)
    if not tracker.can_edit:
        raise AuthorizationError("Only the owner can update progress")
    changed = tracker.toggle_step(step_id)
    return _progress_response(tracker, changed)


@router.post("/{project_id}/tools/{tool_id}/toggle", response_model=ProgressResponse)
async def toggle_tool(
    project_id: str,
    tool_id: int,
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db),
):
    """Mark a tool as already owned, or undo it"""
    store = ProjectStoreService(db)
    tracker = _tracker_for(store.load(project_id, viewer), viewer, store)
    if not tracker.can_edit:
        raise AuthorizationError("Only the owner can update progress")
    changed = tracker.toggle_tool(tool_id)
    return _progress_response(tracker, changed)


@router.patch("/{project_id}", response_model=ProjectDetail)
async def edit_project(
    project_id: str,
    request: ProjectEditRequest,
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db),
):
    """Edit the title and/or steps. New steps reset step progress."""
    project = ProjectStoreService(db).update_details(
        project_id, viewer, title=request.title, steps=request.steps
    )
    return to_detail(project, viewer)


@router.put("/{project_id}/visibility", response_model=ProjectDetail)
async def set_visibility(
    project_id: str,
    request: VisibilityRequest,
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db),
):
    project = ProjectStoreService(db).set_visibility(project_id, viewer, request.is_public)
    return to_detail(project, viewer)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: str,
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db),
):
    """Delete a project; only the owner may do this"""
    ProjectStoreService(db).delete(project_id, viewer)
    return None
