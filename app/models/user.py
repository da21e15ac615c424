"""User and enhancement preference models."""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.database import Base


class User(Base):
    """Account that can email voice notes to its slug address."""

    __tablename__ = "user"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(256), unique=True, nullable=False, index=True)
    slug = Column(String(6), unique=True, nullable=False, index=True)  # local-part of the inbound address
    approved = Column(Boolean, nullable=False, default=False)
    api_key = Column(String(32), unique=True, nullable=True, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    preferences = relationship("UserPreferences", uselist=False, back_populates="user")


class UserPreferences(Base):
    """Which transcript enhancements a user wants emailed."""

    __tablename__ = "user_preferences"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("user.id"), nullable=False, unique=True, index=True)
    send_cleaned_transcript = Column(Boolean, nullable=False, default=False)
    send_summary = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="preferences")
