# paniyal/schemas/tokens.py
from pydantic import BaseModel
from typing import Optional
from paniyal.schemas.user import UserOut

class LoginResult(BaseModel):
    """Outcome of a login attempt; `redirect_to` tells the client where to go next"""
    redirect_to: str
    message: str
    access_token: Optional[str] = None
    token_type: Optional[str] = None
    user: Optional[UserOut] = None
    decoy_id: Optional[str] = None
