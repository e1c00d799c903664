from datetime import datetime
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

TaskId = Union[int, str]


class Task(BaseModel):
    model_config = ConfigDict(populate_by_name=True)  # Allow both alias and field name

    id: TaskId
    name: Optional[str] = ""
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    priority: Optional[str] = None
    has_desk_tickets: Optional[bool] = Field(default=False, alias="hasDeskTickets")


class CustomFieldValue(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    field_id: Optional[TaskId] = Field(default=None, alias="id")
    name: Optional[str] = None
    value: Any = None


class TaskPage(BaseModel):
    """Raw task list plus the ``included`` side object returned with it."""

    tasks: List[Task] = Field(default_factory=list)
    included: Dict[str, Any] = Field(default_factory=dict)


class EnrichedTask(Task):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    custom_fields: List[CustomFieldValue] = Field(default_factory=list)
    impact: Optional[str] = None
    product_area: Optional[str] = None
    # None means the ticket lookup failed, which is not the same as zero tickets
    ticket_count: Optional[int] = None
    bug_score: int = 0
