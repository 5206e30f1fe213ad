"""API routes."""

from app.api.routes import roadmaps, skills

__all__ = ["roadmaps", "skills"]
