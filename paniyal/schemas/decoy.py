from pydantic import BaseModel
from typing import Optional

class DecoyAbort(BaseModel):
    code: str

class DecoyOut(BaseModel):
    id: str
    duration: int
    time_left: int
    stopped: bool
    destructed: bool
    redirect_to: Optional[str] = None
