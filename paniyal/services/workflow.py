# paniyal/services/workflow.py
"""
Task status workflow

    pending --start--> in_progress --approve--> completed
                            |
                            +------reject-----> pending

`start` belongs to the assignee, `approve`/`reject` to the assigning admin
(or the master-admin). The master-admin can also set any status directly.
Every transition is one conditional UPDATE, so a task that has already moved
on is reported as a conflict instead of being overwritten.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session, joinedload

from paniyal.models import Task, TaskStatus, User

logger = logging.getLogger(__name__)

TRANSITIONS = {
    "start": (TaskStatus.PENDING, TaskStatus.IN_PROGRESS),
    "approve": (TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED),
    "reject": (TaskStatus.IN_PROGRESS, TaskStatus.PENDING),
}


def load_task(db: Session, task_id: int) -> Task:
    task = db.query(Task).options(
        joinedload(Task.assigner),
        joinedload(Task.assignee)
    ).filter(Task.id == task_id).first()
    if not task:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Task not found"
        )
    return task


def can_view(user: User, task: Task) -> bool:
    return user.is_master_admin or user.id in (task.assigned_by, task.assigned_to)


def can_review(user: User, task: Task) -> bool:
    """Approve/reject rights: the admin who assigned the task, or the master-admin"""
    return user.is_master_admin or (user.is_admin and task.assigned_by == user.id)


def _set_status(db: Session, task_id: int, new_status: TaskStatus, expected: Optional[TaskStatus] = None) -> bool:
    query = db.query(Task).filter(Task.id == task_id)
    if expected is not None:
        query = query.filter(Task.status == expected)
    updated = query.update(
        {Task.status: new_status, Task.updated_at: datetime.utcnow()},
        synchronize_session=False
    )
    db.commit()
    return updated == 1


def transition(db: Session, task_id: int, action: str, actor: User) -> Task:
    """Apply a workflow action on behalf of `actor` and return the refreshed task"""
    if action not in TRANSITIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown action: {action}"
        )
    source, target = TRANSITIONS[action]
    task = load_task(db, task_id)

    if action == "start":
        if task.assigned_to != actor.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only the assignee can start this task"
            )
    elif not can_review(actor, task):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You don't have permission to review this task"
        )

    if not _set_status(db, task_id, target, expected=source):
        db.refresh(task)
        logger.warning(
            f"Rejected '{action}' on task {task_id} by {actor.username}: status is {task.status.value}"
        )
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot {action} a task that is {task.status.value}; expected {source.value}"
        )

    logger.info(f"Task {task_id} {source.value} -> {target.value} by {actor.username}")
    db.expire_all()
    return load_task(db, task_id)


def set_status(db: Session, task_id: int, new_status: TaskStatus, actor: User) -> Task:
    """Unconditional status change, master-admin tooling"""
    if not actor.is_master_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Master admin access required"
        )
    load_task(db, task_id)
    _set_status(db, task_id, new_status)
    logger.info(f"Task {task_id} set to {new_status.value} by {actor.username}")
    db.expire_all()
    return load_task(db, task_id)
