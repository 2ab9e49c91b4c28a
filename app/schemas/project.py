"""
Project Schemas
Request and response models for DIY plan generation and saved projects
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class Difficulty(str, Enum):
    """Three-level DIY difficulty"""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class ProjectStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class ToolCategory(str, Enum):
    TOOL = "tool"
    MATERIAL = "material"


class CostEstimate(BaseModel):
    """Professional vs. do-it-yourself cost"""
    professional: float = Field(0, ge=0, description="Cost of hiring a professional")
    diy: float = Field(0, ge=0, description="Cost of doing it yourself")

    @property
    def savings(self) -> float:
        return self.professional - self.diy


class Plan(BaseModel):
    """Generated DIY plan (not yet saved)"""
    title: str = Field(..., min_length=1, description="Project title")
    difficulty: Difficulty = Field(..., description="easy, medium or hard")
    cost: CostEstimate = Field(default_factory=CostEstimate)
    time_estimate: Optional[str] = Field(None, description="Rough time estimate, free text")
    tools: List[str] = Field(default_factory=list, description="Tool and material names")
    steps: List[str] = Field(default_factory=list, description="Step instructions")

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, value):
        return value.strip() if isinstance(value, str) else value


class ProjectStep(BaseModel):
    id: int = Field(..., ge=1)
    instruction: str
    tips: Optional[str] = None


class ProjectTool(BaseModel):
    id: int = Field(..., ge=1)
    name: str
    price: float = 0
    category: ToolCategory = ToolCategory.TOOL
    search_hint: str = ""


# ---------- Requests ----------

class GenerateRequest(BaseModel):
    """Plan generation request"""
    term: str = Field(..., max_length=500, description="What the user wants to do, e.g. 'fix a leaky faucet'")


class GenerateResponse(BaseModel):
    plan: Plan
    generator_difficulty: Difficulty = Field(..., description="Difficulty guessed by the plan generator")
    classified_difficulty: Difficulty = Field(..., description="Difficulty from the classifier (wins)")


class SaveProjectRequest(BaseModel):
    """Persist a previewed plan"""
    plan: Plan
    is_public: bool = False
    completed_step_ids: List[int] = Field(default_factory=list)
    owned_tool_ids: List[int] = Field(default_factory=list)


class SaveProjectResponse(BaseModel):
    id: str
    difficulty: Difficulty


class ProgressUpdateRequest(BaseModel):
    completed_step_ids: List[int] = Field(default_factory=list)
    owned_tool_ids: List[int] = Field(default_factory=list)


class ProjectEditRequest(BaseModel):
    """Edit title and/or steps; replacing steps resets step progress"""
    title: Optional[str] = None
    steps: Optional[List[str]] = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, value):
        return value.strip() if isinstance(value, str) else value


class VisibilityRequest(BaseModel):
    is_public: bool


class DifficultyRequest(BaseModel):
    title: Optional[str] = None


class DifficultyResponse(BaseModel):
    difficulty: Difficulty


# ---------- Responses ----------

class ProjectSummary(BaseModel):
    """Row shown on the dashboard and in search results"""
    id: str
    title: str
    difficulty: Difficulty
    status: ProjectStatus
    is_public: bool
    is_owner: bool
    step_count: int
    completed_count: int
    completion_percent: float
    professional_cost: float
    diy_cost: float
    created_at: Optional[datetime] = None


class ProjectDetail(BaseModel):
    """Full saved project with derived progress values"""
    id: str
    owner_id: str
    is_public: bool
    title: str
    difficulty: Difficulty
    time_estimate: Optional[str] = None
    professional_cost: float
    diy_cost: float
    savings: float
    steps: List[ProjectStep]
    tools: List[ProjectTool]
    completed_step_ids: List[int]
    owned_tool_ids: List[int]
    status: ProjectStatus
    completion_percent: float
    remaining_cost: float
    is_owner: bool
    can_edit: bool
    can_delete: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DashboardResponse(BaseModel):
    in_progress: List[ProjectSummary]
    completed: List[ProjectSummary]
    total: int


class SearchResponse(BaseModel):
    query: str
    results: List[ProjectSummary]
    total: int


class ProgressResponse(BaseModel):
    """Result of a progress change"""
    completed_step_ids: List[int]
    owned_tool_ids: List[int]
    status: ProjectStatus
    completion_percent: float
    remaining_cost: float
    changed: bool = True
    persist_error: Optional[str] = None
