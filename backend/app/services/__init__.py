"""Service layer modules."""

from app.services import (
    roadmap_service,
    skill_service,
    synthesis_service,
    user_service,
)

__all__ = [
    "roadmap_service",
    "skill_service",
    "synthesis_service",
    "user_service",
]
