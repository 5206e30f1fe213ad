"""Database models."""

from app.models.roadmap import Roadmap, RoadmapSkill, SkillResource
from app.models.skill import Skill
from app.models.user import User

__all__ = [
    "User",
    "Skill",
    "Roadmap",
    "RoadmapSkill",
    "SkillResource",
]
