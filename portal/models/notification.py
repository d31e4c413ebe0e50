from sqlalchemy import Column, BigInteger, Integer, String, Text, Boolean, DateTime, JSON, ForeignKey
from sqlalchemy.sql import func

from portal.database import Base


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)

    # academic / exam / grade / system
    category = Column(String(32), nullable=False, index=True)
    # low / medium / high
    priority = Column(String(10), nullable=False, default="medium")

    action_url = Column(String(255), nullable=True)
    data = Column(JSON, nullable=True)

    is_read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
