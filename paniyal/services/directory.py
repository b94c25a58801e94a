# paniyal/services/directory.py
"""
Department and user management for the master-admin.

Departments are not stored separately: a department exists while at least
one user carries its name. Destructive operations remove dependent tasks in
the same transaction so a failure leaves nothing half-deleted.
"""

import logging
import re
from typing import List, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from paniyal.config.settings import settings
from paniyal.models import Task, User
from paniyal.services.file_storage import file_storage
from paniyal.utils.security import hash_password

logger = logging.getLogger(__name__)


def department_admin_username(department: str) -> str:
    return "Admin_" + re.sub(r"\s+", "_", department)


def list_departments(db: Session) -> List[Tuple[str, int]]:
    """(name, user count) for every department, sorted by name"""
    rows = db.query(User.department, func.count(User.id)).filter(
        User.department.isnot(None),
        User.department != ""
    ).group_by(User.department).all()
    return sorted(rows, key=lambda row: row[0].lower())


def find_department(db: Session, name: str) -> Optional[str]:
    """Existing department whose name matches case-insensitively"""
    for department, _ in list_departments(db):
        if department.lower() == name.lower():
            return department
    return None


def username_taken(db: Session, username: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(User.id).filter(User.username == username)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return query.first() is not None


def validate_password(password: Optional[str]) -> str:
    password = (password or "").strip()
    min_length = settings.LOGIN['min_password_length']
    if len(password) < min_length:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Password must be at least {min_length} characters long"
        )
    return password


def _delete_tasks_of(db: Session, user_ids: List[int]) -> Tuple[int, List[str]]:
    """Delete tasks assigned by or to any of `user_ids`; returns (count, document paths)"""
    if not user_ids:
        return 0, []
    task_filter = or_(Task.assigned_by.in_(user_ids), Task.assigned_to.in_(user_ids))
    documents = [row[0] for row in db.query(Task.document).filter(task_filter, Task.document.isnot(None)).all()]
    deleted = db.query(Task).filter(task_filter).delete(synchronize_session=False)
    return deleted, documents


def create_department(db: Session, name: str) -> User:
    """Create a department by provisioning its admin account"""
    name = (name or "").strip()
    if not name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Department name cannot be empty"
        )
    if find_department(db, name):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f'Department "{name}" already exists'
        )

    admin_username = department_admin_username(name)
    if username_taken(db, admin_username):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f'Admin user "{admin_username}" already exists. Choose a different department name.'
        )

    admin = User(
        username=admin_username,
        password_hash=hash_password(settings.DEFAULT_DEPARTMENT_ADMIN_PASSWORD),
        department=name,
        is_admin=True,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info(f'Department "{name}" created with admin "{admin_username}"')
    return admin


def rename_department(db: Session, current_name: str, new_name: str) -> int:
    """Move every user of `current_name` to `new_name`; returns the number of users moved"""
    new_name = (new_name or "").strip()
    if not new_name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Department name cannot be empty"
        )
    if not db.query(User.id).filter(User.department == current_name).first():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f'Department "{current_name}" not found'
        )
    if new_name == current_name:
        return 0

    clash = find_department(db, new_name)
    if clash and clash != current_name:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f'Department "{new_name}" already exists'
        )

    try:
        moved = db.query(User).filter(User.department == current_name).update(
            {User.department: new_name},
            synchronize_session=False
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f'Error updating department "{current_name}": {e}')
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error updating department: {e}"
        )

    logger.info(f'Department "{current_name}" renamed to "{new_name}" ({moved} users)')
    return moved


def delete_department(db: Session, name: str) -> Tuple[int, int]:
    """Delete a department, its users and their tasks; returns (users, tasks) deleted"""
    user_ids = [row[0] for row in db.query(User.id).filter(User.department == name).all()]
    if not user_ids:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f'Department "{name}" not found'
        )
    if db.query(User.id).filter(User.id.in_(user_ids), User.is_master_admin == True).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete the department of the Master Admin account"
        )

    try:
        deleted_tasks, documents = _delete_tasks_of(db, user_ids)
        deleted_users = db.query(User).filter(User.id.in_(user_ids)).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f'Error deleting department "{name}": {e}')
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error deleting department: {e}"
        )

    file_storage.delete_documents(documents)
    logger.info(f'Department "{name}" deleted: {deleted_users} users, {deleted_tasks} tasks')
    return deleted_users, deleted_tasks


def delete_user(db: Session, user: User, actor: User) -> int:
    """Delete a user and every task they assigned or received; returns tasks deleted"""
    if user.is_master_admin:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete the Master Admin account."
        )
    if user.id == actor.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot delete your own account."
        )

    username = user.username
    try:
        deleted_tasks, documents = _delete_tasks_of(db, [user.id])
        db.query(User).filter(User.id == user.id).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f'Error deleting user "{username}": {e}')
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error deleting user: {e}"
        )

    file_storage.delete_documents(documents)
    logger.info(f'User "{username}" deleted with {deleted_tasks} tasks')
    return deleted_tasks
