# paniyal/models/user.py
from datetime import datetime

from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.orm import relationship

from paniyal.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    department = Column(String, nullable=True, index=True)  # master-admin has none
    is_admin = Column(Boolean, default=False, nullable=False)
    is_master_admin = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    created_tasks = relationship("Task", back_populates="assigner", foreign_keys="Task.assigned_by")
    assigned_tasks = relationship("Task", back_populates="assignee", foreign_keys="Task.assigned_to")

    @property
    def role(self) -> str:
        if self.is_master_admin:
            return "master_admin"
        if self.is_admin:
            return "admin"
        return "user"
