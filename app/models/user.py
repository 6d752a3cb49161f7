"""User model."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, String

from app.database import Base


def new_user_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """Account that can sign in and own a profile."""

    __tablename__ = "user"

    id = Column(String(36), primary_key=True, default=new_user_id)
    email = Column(String(256), unique=True, nullable=False, index=True)
    password_hash = Column(String(256), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    last_login_at = Column(DateTime, nullable=True)
