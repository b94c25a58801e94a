# paniyal/routers/task.py
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File
from sqlalchemy.orm import Session, joinedload

from paniyal.database import get_db
from paniyal.models import Task, TaskStatus, User
from paniyal.schemas.task import TaskCreate, TaskOut, TaskStatusUpdate
from paniyal.services import workflow
from paniyal.services.file_storage import file_storage
from paniyal.utils.auth import get_current_user, require_admin, require_master_admin
from paniyal.utils.location import has_coordinates, today

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["Tasks"])


@router.get("/", response_model=List[TaskOut])
def get_tasks(
    status: Optional[TaskStatus] = None,
    department: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Tasks visible to the caller, most recently updated first

    - master-admin: every task, optionally filtered by the assignee's department
    - admin: tasks they assigned
    - user: tasks assigned to them
    """
    query = db.query(Task).options(
        joinedload(Task.assigner),
        joinedload(Task.assignee)
    )

    if current_user.is_master_admin:
        if department:
            query = query.join(Task.assignee).filter(User.department == department)
    elif current_user.is_admin:
        query = query.filter(Task.assigned_by == current_user.id)
    else:
        query = query.filter(Task.assigned_to == current_user.id)

    if status:
        query = query.filter(Task.status == status)

    return query.order_by(Task.updated_at.desc(), Task.id.desc()).all()


@router.get("/{task_id}", response_model=TaskOut)
def get_task(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    task = workflow.load_task(db, task_id)
    if not workflow.can_view(current_user, task):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You don't have permission to view this task"
        )
    return task


@router.post("/", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
def create_task(
    task: TaskCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Assign a new task; it starts out pending"""
    title = task.title.strip()
    description = task.description.strip()
    if not title or not description or not task.coordinates:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please fill all required fields: title, description, assignee, location, due date"
        )
    if not has_coordinates(task.coordinates):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid location format. Please select using the map."
        )
    if task.due_date < today():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Due date cannot be in the past."
        )

    assignee = db.query(User).filter(User.id == task.assigned_to).first()
    if not assignee or assignee.is_master_admin:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Assigned user not found"
        )

    if current_user.is_master_admin:
        # Master-admin names the assigning admin; department scoping is relaxed
        if not task.assigned_by:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Please select the assigning admin"
            )
        assigner = db.query(User).filter(User.id == task.assigned_by).first()
        if not assigner or not assigner.is_admin:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Assigning admin not found"
            )
    else:
        assigner = current_user
        if assignee.is_admin or assignee.department != current_user.department:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You can only assign tasks to users in your department"
            )

    db_task = Task(
        title=title,
        description=description,
        assigned_by=assigner.id,
        assigned_to=assignee.id,
        status=TaskStatus.PENDING,
        coordinates=task.coordinates,
        due_date=task.due_date,
    )
    db.add(db_task)
    db.commit()
    db.refresh(db_task)

    logger.info(f"Task {db_task.id} '{title}' assigned to {assignee.username} by {assigner.username}")
    return workflow.load_task(db, db_task.id)


@router.post("/{task_id}/start", response_model=TaskOut)
def start_task(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Assignee marks a pending task as in progress"""
    return workflow.transition(db, task_id, "start", current_user)


@router.post("/{task_id}/approve", response_model=TaskOut)
def approve_task(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    return workflow.transition(db, task_id, "approve", current_user)


@router.post("/{task_id}/reject", response_model=TaskOut)
def reject_task(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Send work in progress back to pending"""
    return workflow.transition(db, task_id, "reject", current_user)


@router.put("/{task_id}/status", response_model=TaskOut)
def set_task_status(
    task_id: int,
    status_update: TaskStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_master_admin)
):
    """Set any status directly, bypassing the workflow"""
    return workflow.set_status(db, task_id, status_update.status, current_user)


@router.post("/{task_id}/document", response_model=TaskOut)
def upload_document(
    task_id: int,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Attach a supporting document (PDF/DOC/DOCX), replacing any earlier one"""
    task = workflow.load_task(db, task_id)
    if task.assigned_to != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the assignee can upload a document for this task"
        )

    storage_path, file_size = file_storage.save_document(file, task_id)
    previous = task.document

    task.document = storage_path
    task.updated_at = datetime.utcnow()
    db.commit()

    if previous and previous != storage_path:
        file_storage.delete_document(previous)

    logger.info(f"Document {storage_path} ({file_size} bytes) attached to task {task_id} by {current_user.username}")
    db.expire_all()
    return workflow.load_task(db, task_id)


@router.delete("/{task_id}")
def delete_task(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_master_admin)
):
    task = workflow.load_task(db, task_id)
    document = task.document
    db.delete(task)
    db.commit()
    file_storage.delete_document(document)
    logger.info(f"Task {task_id} deleted by {current_user.username}")
    return {"message": "Task deleted successfully"}
