# paniyal/schemas/task.py
from pydantic import BaseModel, Field, computed_field
from datetime import date, datetime
from typing import Optional, List

from paniyal.config.settings import settings
from paniyal.models.task import TaskStatus
from paniyal.schemas.user import UserBasic
from paniyal.utils.location import parse_location

class TaskCreate(BaseModel):
    title: str
    description: str
    assigned_to: int
    # Only used by the master-admin, who picks the assigning admin
    assigned_by: Optional[int] = None
    coordinates: str
    due_date: date

class TaskStatusUpdate(BaseModel):
    status: TaskStatus

class LocationOut(BaseModel):
    name: str
    coordinates: Optional[List[float]] = None

class TaskOut(BaseModel):
    id: int
    title: str
    description: str
    status: TaskStatus
    assigned_by: int
    assigned_to: int
    coordinates: str
    due_date: date
    document: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    assigned_by_user: Optional[UserBasic] = Field(None, validation_alias="assigner")
    assigned_to_user: Optional[UserBasic] = Field(None, validation_alias="assignee")

    model_config = {
        "from_attributes": True,
        "populate_by_name": True,
    }

    @computed_field
    @property
    def location(self) -> Optional[LocationOut]:
        parsed = parse_location(self.coordinates)
        return LocationOut(**parsed.as_dict()) if parsed else None

    @computed_field
    @property
    def document_url(self) -> Optional[str]:
        return settings.document_url(self.document) if self.document else None
