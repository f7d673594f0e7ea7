"""
User model

Users are only referenced for attribution (who created, printed or cut a
roll, who changed a status). Authentication is handled outside this service.
"""
from sqlalchemy import Column, Integer, String, DateTime
from datetime import datetime

from app.db.base import Base


class User(Base):
    """Factory floor user"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    display_name = Column(String(100), nullable=True)
    display_name_ar = Column(String(100), nullable=True)

    # operator, supervisor, manager, admin
    role = Column(String(20), default="operator", nullable=False)

    # Status: active, inactive
    status = Column(String(20), default="active", nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<User {self.username}>"
