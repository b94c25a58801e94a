import logging

from fastapi import APIRouter, HTTPException, Depends, Request, status
from sqlalchemy.orm import Session

from paniyal.config.settings import settings
from paniyal.database import get_db
from paniyal.models.user import User
from paniyal.schemas.tokens import LoginResult
from paniyal.schemas.user import UserLogin, UserOut
from paniyal.services.decoy import login_tracker, decoy_service
from paniyal.utils.auth import get_current_user
from paniyal.utils.security import verify_password, create_access_token

logger = logging.getLogger(__name__)

router = APIRouter()

DECOY_PAGE = "/decoy"

ROLE_PAGES = {
    "master_admin": "/master",
    "admin": "/admin",
    "user": "/user",
}


def client_key(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def decoy_redirect(client: str, message: str) -> LoginResult:
    sequence = decoy_service.start(client)
    return LoginResult(redirect_to=DECOY_PAGE, message=message, decoy_id=sequence.id)


@router.post("/login", response_model=LoginResult)
def login(user: UserLogin, request: Request, db: Session = Depends(get_db)):
    if not user.username or not user.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please enter both username and password."
        )

    client = client_key(request)

    if user.username == settings.LOGIN['decoy_username']:
        return decoy_redirect(client, "Redirecting...")

    if login_tracker.is_locked(client):
        return decoy_redirect(client, "Too many failed attempts. Redirecting...")

    db_user = db.query(User).filter(User.username == user.username).first()
    if not db_user or not verify_password(user.password, db_user.password_hash):
        attempts = login_tracker.record_failure(client)
        if attempts >= login_tracker.max_attempts:
            return decoy_redirect(client, "Too many failed attempts. Redirecting...")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid credentials (attempt {attempts}/{login_tracker.max_attempts})."
        )

    login_tracker.reset(client)
    token = create_access_token(data={"sub": db_user.username})
    logger.info(f"User {db_user.username} logged in as {db_user.role}")
    return LoginResult(
        redirect_to=ROLE_PAGES[db_user.role],
        message=f"Logged in as {db_user.username}",
        access_token=token,
        token_type="bearer",
        user=UserOut.model_validate(db_user),
    )


@router.get("/me", response_model=UserOut)
def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Get current user information"""
    return current_user
