# paniyal/services/scheduler.py
"""
Scheduler service for periodic maintenance: a database keep-alive ping and
removal of documents no task points at any more
"""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.orm import Session

from paniyal.config.settings import settings
from paniyal.database import SessionLocal
from paniyal.models import Task
from paniyal.services.file_storage import file_storage

logger = logging.getLogger(__name__)


def ping_database(db: Session) -> bool:
    """Run a one-row select on tasks; raises if the database is unreachable"""
    db.query(Task.id).limit(1).all()
    return True


class MaintenanceScheduler:
    """Background jobs that keep the deployment healthy"""

    def __init__(self):
        self.scheduler = AsyncIOScheduler()
        self.is_running = False

    def start(self):
        """Start the scheduler"""
        if self.is_running:
            return

        self.scheduler.add_job(
            self.keep_database_awake,
            trigger=IntervalTrigger(minutes=settings.SCHEDULER['keepalive_interval_minutes']),
            id='keep_database_awake',
            name='Database Keep-Alive Ping',
            replace_existing=True
        )

        # Orphaned documents are removed daily at midnight
        self.scheduler.add_job(
            self.cleanup_orphaned_documents,
            trigger=CronTrigger(hour=0, minute=0),
            id='cleanup_orphaned_documents',
            name='Cleanup Orphaned Documents',
            replace_existing=True
        )

        self.scheduler.start()
        self.is_running = True
        logger.info("Maintenance scheduler started")

    def stop(self):
        """Stop the scheduler"""
        if self.is_running:
            self.scheduler.shutdown()
            self.is_running = False
            logger.info("Maintenance scheduler stopped")

    async def keep_database_awake(self):
        db = SessionLocal()
        try:
            ping_database(db)
            logger.info("Database keep-alive ping succeeded")
        except Exception as e:
            logger.error(f"Database keep-alive ping failed: {e}")
        finally:
            db.close()

    async def cleanup_orphaned_documents(self):
        db = SessionLocal()
        try:
            file_storage.cleanup_orphaned_files(db)
        except Exception as e:
            logger.error(f"Error cleaning up orphaned documents: {e}")
        finally:
            db.close()

    def get_status(self) -> dict:
        """Scheduler status and job information"""
        return {
            "status": "running" if self.is_running else "stopped",
            "jobs": [
                {
                    "id": job.id,
                    "name": job.name,
                    "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
                }
                for job in self.scheduler.get_jobs()
            ],
        }


maintenance_scheduler = MaintenanceScheduler()
