# paniyal/schemas/department.py
from pydantic import BaseModel
from paniyal.schemas.user import UserOut

class DepartmentCreate(BaseModel):
    name: str

class DepartmentUpdate(BaseModel):
    name: str

class DepartmentOut(BaseModel):
    name: str
    user_count: int

class DepartmentCreated(BaseModel):
    name: str
    admin: UserOut
    message: str

class DepartmentDeleted(BaseModel):
    name: str
    deleted_users: int
    deleted_tasks: int
    message: str
