"""
Project Database Model
"""
from sqlalchemy import Column, String, Float, Boolean, DateTime, JSON
from sqlalchemy.sql import func
from app.database import Base


class Project(Base):
    """Saved DIY project plan"""
    __tablename__ = "projects"

    id = Column(String, primary_key=True, index=True)
    owner_id = Column(String, nullable=False, index=True)
    is_public = Column(Boolean, nullable=False, default=False, index=True)
    title = Column(String, nullable=False, index=True)
    difficulty = Column(String, nullable=False)
    time_estimate = Column(String, nullable=True)
    professional_cost = Column(Float, nullable=False, default=0)
    diy_cost = Column(Float, nullable=False, default=0)
    steps_json = Column(JSON, nullable=False)  # [{id, instruction, tips?}]
    tools_json = Column(JSON, nullable=False)  # [{id, name, price, category, search_hint}]
    completed_steps = Column(JSON, nullable=False)  # step ids
    owned_items = Column(JSON, nullable=False)  # tool ids
    status = Column(String, nullable=False, default="in_progress", index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Project(id={self.id}, title={self.title}, owner_id={self.owner_id})>"
