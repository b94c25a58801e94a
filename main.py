import logging

from fastapi import FastAPI, Depends, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from paniyal.config.settings import settings
from paniyal.database import Base, engine, get_db
from paniyal.routers import auth, user, department, task, reports, location, storage, decoy
from paniyal.services.scheduler import maintenance_scheduler, ping_database

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Paniyal Task API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Route registration
app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(user.router, prefix="/users", tags=["Users"])
app.include_router(department.router, prefix="/departments", tags=["Departments"])
app.include_router(task.router)
app.include_router(reports.router)
app.include_router(location.router)
app.include_router(storage.router)
app.include_router(decoy.router)

# Startup and shutdown events
@app.on_event("startup")
async def startup_event():
    logger.info("Starting Paniyal Task API...")
    Base.metadata.create_all(bind=engine)
    if settings.SCHEDULER['enabled']:
        maintenance_scheduler.start()

@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down Paniyal Task API...")
    maintenance_scheduler.stop()

# Root route
@app.get("/")
def read_root():
    return {"message": "Paniyal Task API"}

@app.get("/health")
def health():
    return {"status": "ok"}

@app.get("/health/db")
def health_db(db: Session = Depends(get_db)):
    """Ping the database with a one-row select"""
    try:
        ping_database(db)
    except SQLAlchemyError as e:
        logger.error(f"Error pinging database: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to ping database: {e}")
    return {"message": "Database successfully pinged!", "status": 200}

@app.get("/scheduler/status")
def get_scheduler_status():
    """Get scheduler status and job information"""
    return maintenance_scheduler.get_status()
