from pydantic import BaseModel, Field, model_validator
from typing import List, Optional, Literal, Dict
from datetime import date, datetime

Pattern = Literal["DAILY", "WEEKLY", "MONTHLY", "YEARLY"]
TaskType = Literal["NORMAL", "RECURRING", "IDEA", "INBOX"]
UserTaskType = Literal["NORMAL", "IDEA", "INBOX"]
RolloverMode = Literal["per_date", "consolidated"]


# Templates

class TemplateBase(BaseModel):
    title: str
    memo: Optional[str] = None
    category: Optional[str] = None
    importance: int = Field(3, ge=1, le=5)
    pattern: Pattern
    interval: int = Field(1, ge=1)
    weekdays: Optional[List[int]] = None
    day_of_month: Optional[int] = None
    month_of_year: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    active: bool = True

class TemplateCreate(TemplateBase):
    pass

class TemplateUpdate(BaseModel):
    title: Optional[str] = None
    memo: Optional[str] = None
    category: Optional[str] = None
    importance: Optional[int] = Field(None, ge=1, le=5)
    pattern: Optional[Pattern] = None
    interval: Optional[int] = Field(None, ge=1)
    weekdays: Optional[List[int]] = None
    day_of_month: Optional[int] = None
    month_of_year: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    active: Optional[bool] = None

class TemplateOut(TemplateBase):
    id: str
    start_date: date
    description: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class TemplatePreview(BaseModel):
    template_id: str
    start: date
    end: date
    dates: List[date]


# Subtasks

class SubTaskCreate(BaseModel):
    title: str
    sort_order: Optional[int] = None

class SubTaskUpdate(BaseModel):
    title: Optional[str] = None
    completed: Optional[bool] = None
    sort_order: Optional[int] = None

class SubTaskOut(BaseModel):
    id: str
    parent_task_id: str
    title: str
    completed: bool
    sort_order: int

    class Config:
        from_attributes = True


# Tasks

class NewTask(BaseModel):
    """Every field a task row can be created with.

    Generated occurrences and user tasks share one table; which fields are
    allowed depends on ``task_type``, checked here rather than at each call
    site.
    """
    title: str
    memo: Optional[str] = None
    category: Optional[str] = None
    importance: int = Field(3, ge=1, le=5)
    due_date: Optional[date] = None
    task_type: TaskType = "NORMAL"
    recurring_template_id: Optional[str] = None
    recurring_pattern: Optional[Pattern] = None
    carried_from_task_id: Optional[str] = None
    carried_from_template_id: Optional[str] = None
    carried_through: Optional[date] = None
    rollover_count: int = 0
    archived: bool = False
    sort_order: float = 0.0

    @model_validator(mode="after")
    def check_variant(self) -> "NewTask":
        if not self.title or not self.title.strip():
            raise ValueError("Task title cannot be empty")
        if self.task_type == "RECURRING":
            if not self.recurring_template_id or not self.recurring_pattern:
                raise ValueError("RECURRING tasks need recurring_template_id and recurring_pattern")
            if self.due_date is None:
                raise ValueError("RECURRING tasks need a due_date")
        elif self.recurring_template_id or self.recurring_pattern:
            raise ValueError(f"{self.task_type} tasks cannot reference a recurring template")
        if (self.carried_from_template_id is None) != (self.carried_through is None):
            raise ValueError("carried_from_template_id and carried_through go together")
        return self

class TaskCreate(BaseModel):
    title: str
    memo: Optional[str] = None
    category: Optional[str] = None
    importance: int = Field(3, ge=1, le=5)
    due_date: Optional[date] = None
    task_type: UserTaskType = "NORMAL"
    subtasks: List[str] = []

class TaskUpdate(BaseModel):
    title: Optional[str] = None
    memo: Optional[str] = None
    category: Optional[str] = None
    importance: Optional[int] = Field(None, ge=1, le=5)
    due_date: Optional[date] = None
    clear_due_date: bool = False
    task_type: Optional[UserTaskType] = None
    archived: Optional[bool] = None
    sort_order: Optional[float] = None

class TaskOut(BaseModel):
    id: str
    display_number: str
    title: str
    memo: Optional[str] = None
    category: Optional[str] = None
    importance: int
    due_date: Optional[date] = None  # None when the task has no due date
    completed: bool
    completed_at: Optional[datetime] = None
    task_type: TaskType
    recurring_template_id: Optional[str] = None
    recurring_pattern: Optional[Pattern] = None
    carried_from_task_id: Optional[str] = None
    carried_from_template_id: Optional[str] = None
    carried_through: Optional[date] = None
    rollover_count: int = 0
    archived: bool = False
    sort_order: float = 0.0
    subtasks: List[SubTaskOut] = []
    created_at: datetime
    updated_at: datetime


# Completions

class CompletionOut(BaseModel):
    id: str
    original_task_id: str
    template_id: Optional[str] = None
    task_title: str
    completion_date: date
    completion_time: datetime

    class Config:
        from_attributes = True

class CompletionStatsOut(BaseModel):
    subject_id: str
    title: str
    current_streak: int
    longest_streak: int
    total_completions: int
    last_completed_date: Optional[date] = None
    is_completed_today: bool
    completion_dates: List[date] = []

class TaskCompletionCount(BaseModel):
    title: str
    count: int

class PeriodStatsOut(BaseModel):
    start: date
    end: date
    total_completions: int
    daily_completions: Dict[date, int]
    task_completions: Dict[str, TaskCompletionCount]


# Engine runs

class GenerateRequest(BaseModel):
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    lookahead_days: Optional[int] = Field(None, ge=0, le=365)

class GenerationResultOut(BaseModel):
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    created: int = 0
    skipped: int = 0
    created_task_ids: List[str] = []
    last_task_generation: Optional[date] = None

class MissedOccurrencesOut(BaseModel):
    template_id: str
    title: str
    pattern: Pattern
    missed_dates: List[date]

class RolloverCandidatesOut(BaseModel):
    single: List[TaskOut] = []
    recurring: List[MissedOccurrencesOut] = []
    summary: str = ""

class RolloverRequest(BaseModel):
    task_ids: Optional[List[str]] = None
    template_ids: Optional[List[str]] = None
    include_single: bool = True
    include_recurring: bool = True
    mode: Optional[RolloverMode] = None
    resolve_missed: bool = False

class RolloverResultOut(BaseModel):
    created_task_ids: List[str] = []
    resolved_task_ids: List[str] = []
    skipped: int = 0

class CarryoverResultOut(BaseModel):
    processed: int = 0
    created_task_ids: List[str] = []
    skipped: int = 0
    last_shopping_processed: Optional[date] = None

class ExpiryResultOut(BaseModel):
    today: date
    deleted: Dict[str, int] = {}
    deleted_task_ids: List[str] = []
    total: int = 0

class MaintenanceResultOut(BaseModel):
    today: date
    generation: GenerationResultOut
    shopping: CarryoverResultOut
    rollover: Optional[RolloverResultOut] = None
    expiry: ExpiryResultOut

class MetadataOut(BaseModel):
    last_task_generation: Optional[date] = None
    last_shopping_processed: Optional[date] = None
