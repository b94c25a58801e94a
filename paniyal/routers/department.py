# paniyal/routers/department.py
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from paniyal.database import get_db
from paniyal.models.user import User
from paniyal.schemas.department import (
    DepartmentCreate, DepartmentUpdate, DepartmentOut, DepartmentCreated, DepartmentDeleted
)
from paniyal.services import directory
from paniyal.utils.auth import require_master_admin

router = APIRouter()


@router.get("/", response_model=List[DepartmentOut])
def get_departments(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_master_admin)
):
    return [
        {"name": name, "user_count": count}
        for name, count in directory.list_departments(db)
    ]


@router.post("/", response_model=DepartmentCreated, status_code=status.HTTP_201_CREATED)
def create_department(
    department: DepartmentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_master_admin)
):
    """Create a department together with its default admin account"""
    admin = directory.create_department(db, department.name)
    return {
        "name": admin.department,
        "admin": admin,
        "message": f'Department "{admin.department}" created with admin "{admin.username}"',
    }


@router.put("/{name}")
def update_department(
    name: str,
    department: DepartmentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_master_admin)
):
    """Rename a department for all of its users"""
    new_name = department.name.strip()
    moved = directory.rename_department(db, name, new_name)
    if new_name == name:
        return {"name": name, "updated_users": 0, "message": "No changes detected."}
    return {
        "name": new_name,
        "updated_users": moved,
        "message": f'Department "{name}" updated to "{new_name}"',
    }


@router.delete("/{name}", response_model=DepartmentDeleted)
def delete_department(
    name: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_master_admin)
):
    """Delete a department, all users within it, and all tasks assigned by or to them"""
    deleted_users, deleted_tasks = directory.delete_department(db, name)
    return {
        "name": name,
        "deleted_users": deleted_users,
        "deleted_tasks": deleted_tasks,
        "message": f'Department "{name}" and associated data deleted',
    }
