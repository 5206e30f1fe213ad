"""Pydantic schemas."""

from app.schemas.roadmap import (
    GenerateCompleteRequest,
    MilestoneProgressUpdate,
    RoadmapCreate,
    RoadmapSkillDetail,
    RoadmapSkillResponse,
    RoadmapTreeResponse,
    SuggestSkillsRequest,
)
from app.schemas.skill import SkillCatalogEntry, SkillResponse
from app.schemas.synthesis import (
    GeneratedSkill,
    MilestoneSpec,
    ResourceSpec,
    RoadmapSkillSpec,
    SkillEnrichment,
    SkillSuggestion,
)

__all__ = [
    "GenerateCompleteRequest",
    "SuggestSkillsRequest",
    "RoadmapCreate",
    "MilestoneProgressUpdate",
    "RoadmapTreeResponse",
    "RoadmapSkillResponse",
    "RoadmapSkillDetail",
    "SkillCatalogEntry",
    "SkillResponse",
    "GeneratedSkill",
    "MilestoneSpec",
    "ResourceSpec",
    "RoadmapSkillSpec",
    "SkillEnrichment",
    "SkillSuggestion",
]
