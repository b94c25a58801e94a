from .user import UserCreate, UserLogin, UserOut, UserBasic, UserUpdate, UserUpdated
from .tokens import LoginResult
from .task import TaskCreate, TaskOut, TaskStatusUpdate, LocationOut
from .department import DepartmentCreate, DepartmentUpdate, DepartmentOut, DepartmentCreated, DepartmentDeleted
from .reports import StatusCounts, DepartmentTaskCounts, OverviewOut, AdminSummaryOut
from .location import GeocodeResult, ParsedLocationOut
from .decoy import DecoyAbort, DecoyOut
