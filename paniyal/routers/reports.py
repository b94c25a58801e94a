# paniyal/routers/reports.py
import csv
import io
from datetime import datetime
from typing import Dict, Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, aliased, joinedload

from paniyal.database import get_db
from paniyal.models import Task, TaskStatus, User
from paniyal.schemas.reports import OverviewOut, AdminSummaryOut
from paniyal.services import directory
from paniyal.utils.auth import require_admin, require_master_admin
from paniyal.utils.location import parse_location, format_date

router = APIRouter(prefix="/reports", tags=["Reports"])

# Leading characters a spreadsheet treats as the start of a formula
FORMULA_PREFIXES = ("=", "+", "-", "@", "\t", "\r")


def spreadsheet_safe(value: str) -> str:
    """Quote a CSV cell so spreadsheets show it as text"""
    if value and value.startswith(FORMULA_PREFIXES):
        return "'" + value
    return value


def empty_status_counts() -> Dict[str, int]:
    return {task_status.value: 0 for task_status in TaskStatus}


@router.get("/overview", response_model=OverviewOut)
def get_overview(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_master_admin)
):
    """Cross-department dashboard figures"""
    departments = directory.list_departments(db)
    department_counts = {name: count for name, count in departments}

    task_status_counts = empty_status_counts()
    for task_status, count in db.query(Task.status, func.count(Task.id)).group_by(Task.status).all():
        task_status_counts[task_status.value] = count

    # Tasks count towards the department of the assignee
    tasks_per_department = {name: {**empty_status_counts(), "total": 0} for name in department_counts}
    rows = db.query(User.department, Task.status, func.count(Task.id)).join(
        Task, Task.assigned_to == User.id
    ).group_by(User.department, Task.status).all()
    for department, task_status, count in rows:
        if department in tasks_per_department:
            tasks_per_department[department][task_status.value] += count
            tasks_per_department[department]["total"] += count

    return {
        "total_users": db.query(User).count(),
        "total_admins": db.query(User).filter(
            or_(User.is_admin == True, User.is_master_admin == True)
        ).count(),
        "total_tasks": sum(task_status_counts.values()),
        "department_counts": department_counts,
        "task_status_counts": task_status_counts,
        "tasks_per_department": tasks_per_department,
    }


@router.get("/department", response_model=AdminSummaryOut)
def get_department_summary(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Status counts for the tasks the calling admin assigned"""
    task_status_counts = empty_status_counts()
    rows = db.query(Task.status, func.count(Task.id)).filter(
        Task.assigned_by == current_user.id
    ).group_by(Task.status).all()
    for task_status, count in rows:
        task_status_counts[task_status.value] = count

    team_size = db.query(User).filter(
        User.department == current_user.department,
        User.is_admin == False,
        User.is_master_admin == False
    ).count()

    return {
        "department": current_user.department or "",
        "team_size": team_size,
        "total_tasks": sum(task_status_counts.values()),
        "task_status_counts": task_status_counts,
    }


@router.get("/export")
def export_tasks(
    status: Optional[TaskStatus] = None,
    department: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_master_admin)
):
    """All tasks as CSV"""
    assignee = aliased(User)
    query = db.query(Task).join(assignee, Task.assignee).options(
        joinedload(Task.assigner),
        joinedload(Task.assignee)
    )
    if status:
        query = query.filter(Task.status == status)
    if department:
        query = query.filter(assignee.department == department)
    tasks = query.order_by(Task.updated_at.desc(), Task.id.desc()).all()

    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow([
        "ID", "Title", "Status", "Assigned By", "Assigned To", "Department",
        "Location", "Due Date", "Document", "Updated At"
    ])
    for task in tasks:
        location = parse_location(task.coordinates)
        writer.writerow([
            task.id,
            spreadsheet_safe(task.title),
            task.status.value,
            spreadsheet_safe(task.assigner.username),
            spreadsheet_safe(task.assignee.username),
            spreadsheet_safe(task.assignee.department or ""),
            spreadsheet_safe(location.name if location else ""),
            format_date(task.due_date),
            spreadsheet_safe(task.document or ""),
            task.updated_at.isoformat() if task.updated_at else "",
        ])

    csv_content = output.getvalue()
    output.close()

    return Response(
        content=csv_content,
        media_type="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename=tasks_report_{datetime.now().strftime('%Y%m%d_%H%M%S')}.csv"
        },
    )
