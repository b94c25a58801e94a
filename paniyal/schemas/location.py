from pydantic import BaseModel
from typing import Optional, List

class GeocodeResult(BaseModel):
    lat: float
    lng: float
    name: str
    # Value to store on a task
    coordinates: str

class ParsedLocationOut(BaseModel):
    name: str
    coordinates: Optional[List[float]] = None
