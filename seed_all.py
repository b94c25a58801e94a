#!/usr/bin/env python3
"""
Database seeding script
Creates the tables, the master admin and a few demo departments with tasks
"""

import json
import logging
from datetime import date, timedelta

from fastapi import HTTPException

from create_tables import create_tables, create_master_admin
from paniyal.database import SessionLocal
from paniyal.models import Task, TaskStatus, User
from paniyal.services import directory
from paniyal.utils.security import hash_password

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
logger = logging.getLogger(__name__)

DEMO_DEPARTMENTS = ["Field Operations", "Water Supply"]

DEMO_USERS = [
    {"username": "anu", "password": "anu@1234", "department": "Field Operations"},
    {"username": "ravi", "password": "ravi@1234", "department": "Field Operations"},
    {"username": "meera", "password": "meera@1234", "department": "Water Supply"},
]

DEMO_TASKS = [
    {
        "title": "Inspect culvert near bus stand",
        "description": "Check for blockage and photograph the inlet.",
        "assignee": "anu",
        "coordinates": "11.4102,76.6950",
        "due_in_days": 3,
        "status": TaskStatus.PENDING,
    },
    {
        "title": "Survey ward 4 street lights",
        "description": "List every non-working light with pole number.",
        "assignee": "ravi",
        "coordinates": json.dumps({"lat": 11.4064, "lng": 76.7017, "name": "Ward 4"}),
        "due_in_days": 7,
        "status": TaskStatus.IN_PROGRESS,
    },
    {
        "title": "Verify tank chlorination log",
        "description": "Cross-check the register against the dosing pump readings.",
        "assignee": "meera",
        "coordinates": "11.4250,76.6900",
        "due_in_days": 1,
        "status": TaskStatus.COMPLETED,
    },
]


def seed_departments(db):
    for name in DEMO_DEPARTMENTS:
        try:
            directory.create_department(db, name)
        except HTTPException as e:
            logger.info(f"Skipping department {name}: {e.detail}")


def seed_users(db):
    for demo in DEMO_USERS:
        if directory.username_taken(db, demo["username"]):
            logger.info(f"User {demo['username']} already exists")
            continue
        db.add(User(
            username=demo["username"],
            password_hash=hash_password(demo["password"]),
            department=demo["department"],
        ))
    db.commit()


def seed_tasks(db):
    for demo in DEMO_TASKS:
        assignee = db.query(User).filter(User.username == demo["assignee"]).first()
        assigner = db.query(User).filter(
            User.username == directory.department_admin_username(assignee.department)
        ).first()
        if db.query(Task).filter(Task.title == demo["title"]).first():
            continue
        db.add(Task(
            title=demo["title"],
            description=demo["description"],
            assigned_by=assigner.id,
            assigned_to=assignee.id,
            status=demo["status"],
            coordinates=demo["coordinates"],
            due_date=date.today() + timedelta(days=demo["due_in_days"]),
        ))
    db.commit()


def main():
    create_tables()
    create_master_admin()

    db = SessionLocal()
    try:
        seed_departments(db)
        seed_users(db)
        seed_tasks(db)
        logger.info(
            f"Seeded {db.query(User).count()} users and {db.query(Task).count()} tasks"
        )
    finally:
        db.close()


if __name__ == "__main__":
    main()
