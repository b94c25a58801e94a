#!/usr/bin/env python3
"""
Create the database tables and the master-admin account
"""

import logging
import os
import sys

from dotenv import load_dotenv

from paniyal.database import Base, engine, SessionLocal
from paniyal.models import User, Task  # noqa: F401  registers the tables
from paniyal.utils.security import hash_password

load_dotenv()

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
logger = logging.getLogger(__name__)


def create_tables(drop_existing: bool = False):
    """Create all tables, optionally dropping them first"""
    if drop_existing:
        Base.metadata.drop_all(bind=engine)
        logger.info("Dropped existing tables")
    Base.metadata.create_all(bind=engine)
    logger.info("All tables created successfully")


def create_master_admin():
    """Create the master-admin account if it does not exist yet"""
    username = os.getenv("MASTER_ADMIN_USERNAME", "master")
    password = os.getenv("MASTER_ADMIN_PASSWORD")
    if not password:
        logger.error("MASTER_ADMIN_PASSWORD is not set; skipping master admin creation")
        return None

    db = SessionLocal()
    try:
        existing = db.query(User).filter(User.username == username).first()
        if existing:
            logger.info(f"Master admin '{username}' already exists")
            return existing

        master = User(
            username=username,
            password_hash=hash_password(password),
            department=None,
            is_admin=False,
            is_master_admin=True,
        )
        db.add(master)
        db.commit()
        db.refresh(master)
        logger.info(f"Master admin '{username}' created")
        return master
    finally:
        db.close()


if __name__ == "__main__":
    create_tables(drop_existing="--drop" in sys.argv)
    create_master_admin()
