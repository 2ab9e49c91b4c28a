"""
Database models
"""
from app.models.project import Project

__all__ = ["Project"]
