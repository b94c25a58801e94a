from pydantic import BaseModel
from typing import Dict

class StatusCounts(BaseModel):
    pending: int = 0
    in_progress: int = 0
    completed: int = 0

class DepartmentTaskCounts(StatusCounts):
    total: int = 0

class OverviewOut(BaseModel):
    total_users: int
    total_admins: int
    total_tasks: int
    department_counts: Dict[str, int]
    task_status_counts: StatusCounts
    tasks_per_department: Dict[str, DepartmentTaskCounts]

class AdminSummaryOut(BaseModel):
    department: str
    team_size: int
    total_tasks: int
    task_status_counts: StatusCounts
