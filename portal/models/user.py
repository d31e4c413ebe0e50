from datetime import datetime

from sqlalchemy import Column, Integer, String, TIMESTAMP

from portal.database import Base

ROLES = ("student", "instructor", "admin")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(String(20), nullable=False, default="student")
    name = Column(String(100))
    email = Column(String(100))
    roll_number = Column(String(32), unique=True, nullable=True)
    created_at = Column(TIMESTAMP, default=datetime.utcnow)
