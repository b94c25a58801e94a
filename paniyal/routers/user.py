# paniyal/routers/user.py
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from paniyal.database import get_db
from paniyal.models import user as user_model
from paniyal.schemas.user import UserBasic, UserCreate, UserOut, UserUpdate, UserUpdated
from paniyal.services import directory
from paniyal.utils.auth import require_admin, require_master_admin
from paniyal.utils.security import create_access_token, hash_password

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=List[UserOut])
def get_all_users(
    db: Session = Depends(get_db),
    current_user: user_model.User = Depends(require_master_admin)
):
    """All users, ordered by department then username"""
    return db.query(user_model.User).order_by(
        user_model.User.department,
        user_model.User.username
    ).all()


@router.get("/assignable", response_model=List[UserBasic])
def get_assignable_users(
    db: Session = Depends(get_db),
    current_user: user_model.User = Depends(require_admin)
):
    """Users the caller can assign tasks to"""
    query = db.query(user_model.User).filter(user_model.User.is_master_admin == False)
    if not current_user.is_master_admin:
        # Admins assign within their own department, to non-admins only
        query = query.filter(
            user_model.User.is_admin == False,
            user_model.User.department == current_user.department
        )
    return query.order_by(user_model.User.username).all()


@router.get("/admins", response_model=List[UserBasic])
def get_admins(
    db: Session = Depends(get_db),
    current_user: user_model.User = Depends(require_master_admin)
):
    """Admins that can be named as the assigner of a task"""
    return db.query(user_model.User).filter(
        user_model.User.is_admin == True
    ).order_by(user_model.User.department, user_model.User.username).all()


@router.get("/{user_id}", response_model=UserOut)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: user_model.User = Depends(require_master_admin)
):
    user = db.query(user_model.User).filter(user_model.User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.post("/", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(
    user: UserCreate,
    db: Session = Depends(get_db),
    current_user: user_model.User = Depends(require_master_admin)
):
    username = user.username.strip()
    department = user.department.strip()
    if not username or not user.password.strip() or not department:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username, Password, and Department are required"
        )
    password = directory.validate_password(user.password)

    if directory.username_taken(db, username):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f'Username "{username}" already exists'
        )

    db_user = user_model.User(
        username=username,
        password_hash=hash_password(password),
        department=department,
        is_admin=user.is_admin,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    logger.info(f'User "{username}" created in {department} by {current_user.username}')
    return db_user


@router.put("/{user_id}", response_model=UserUpdated)
def update_user(
    user_id: int,
    user_update: UserUpdate,
    db: Session = Depends(get_db),
    current_user: user_model.User = Depends(require_master_admin)
):
    db_user = db.query(user_model.User).filter(user_model.User.id == user_id).first()
    if not db_user:
        raise HTTPException(status_code=404, detail="User not found")

    update_data = user_update.model_dump(exclude_unset=True)
    previous_username = db_user.username

    if "username" in update_data:
        username = (update_data.pop("username") or "").strip()
        if not username:
            raise HTTPException(status_code=400, detail="Username and Department are required")
        if username != db_user.username and directory.username_taken(db, username, exclude_id=user_id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f'Username "{username}" already exists'
            )
        db_user.username = username

    if "department" in update_data:
        department = (update_data.pop("department") or "").strip()
        if not department:
            raise HTTPException(status_code=400, detail="Username and Department are required")
        db_user.department = department

    # Password only changes when a new one is supplied
    password = update_data.pop("password", None)
    if password and password.strip():
        db_user.password_hash = hash_password(directory.validate_password(password))

    if update_data.get("is_admin") is not None:
        db_user.is_admin = update_data["is_admin"]

    db.commit()
    db.refresh(db_user)
    logger.info(f'User {user_id} updated by {current_user.username}')

    result = UserUpdated.model_validate(db_user)
    # Tokens carry the username, so a self-rename needs a new one
    if db_user.id == current_user.id and db_user.username != previous_username:
        result.access_token = create_access_token(data={"sub": db_user.username})
    return result


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: user_model.User = Depends(require_master_admin)
):
    """Delete a user along with every task assigned by or to them"""
    db_user = db.query(user_model.User).filter(user_model.User.id == user_id).first()
    if not db_user:
        raise HTTPException(status_code=404, detail="User not found")

    username = db_user.username
    deleted_tasks = directory.delete_user(db, db_user, current_user)
    return {
        "message": f'User "{username}" deleted successfully',
        "deleted_tasks": deleted_tasks,
    }
