from pydantic import BaseModel
from typing import Optional
from datetime import datetime

class UserCreate(BaseModel):
    username: str
    password: str
    department: str
    is_admin: bool = False

class UserLogin(BaseModel):
    username: str
    password: str

class UserBasic(BaseModel):
    id: int
    username: str
    department: Optional[str] = None

    model_config = {
        "from_attributes": True
    }

class UserOut(BaseModel):
    id: int
    username: str
    department: Optional[str] = None
    is_admin: bool
    is_master_admin: bool
    role: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class UserUpdate(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None
    department: Optional[str] = None
    is_admin: Optional[bool] = None

class UserUpdated(UserOut):
    # Set when the caller renamed their own account; the old token no longer resolves
    access_token: Optional[str] = None
