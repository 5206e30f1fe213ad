"""Roadmap schemas for API requests and responses."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.models.roadmap import Roadmap, RoadmapSkill
from app.schemas.skill import SkillResponse
from app.schemas.synthesis import MilestoneSpec

# ============================================================================
# Requests
# ============================================================================
# Fields are optional so that missing values reach the service-level
# validation and get its user-facing messages.


class GenerateCompleteRequest(BaseModel):
    """Body of POST /roadmaps/generate-complete."""

    career_goal: str | None = None
    experience: str | None = None
    selected_skill_ids: list[str] | None = None


class SuggestSkillsRequest(BaseModel):
    """Body of POST /roadmaps/generate."""

    career_goal: str | None = None
    experience: str | None = None


class RoadmapCreate(BaseModel):
    """Create a roadmap from an explicit skill list, without AI."""

    title: str | None = None
    career_goal: str | None = None
    experience: str | None = None
    skills: list[str] | None = None


class MilestoneProgressUpdate(BaseModel):
    completed: Any = None


# ============================================================================
# Responses
# ============================================================================


class ResourceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    type: str
    title: str
    url: str
    platform: str | None
    is_free: bool


class PrerequisiteRef(BaseModel):
    id: str
    name: str


class RoadmapSkillResponse(BaseModel):
    """A link as embedded in a roadmap tree."""

    id: str
    skill_id: str
    name: str
    description: str
    type: str
    category: str | None
    order: int
    is_concluded: bool
    conclusion_date: datetime | None
    milestones: list[MilestoneSpec]
    learning_objectives: str
    prerequisites: list[str]
    estimated_hours: int
    resources: list[ResourceResponse]

    @classmethod
    def from_link(cls, link: RoadmapSkill) -> "RoadmapSkillResponse":
        return cls(
            id=link.id,
            skill_id=link.skill.id,
            name=link.skill.name,
            description=link.skill.description,
            type=link.skill.type,
            category=link.skill.category,
            order=link.order,
            is_concluded=link.is_concluded,
            conclusion_date=link.conclusion_date,
            milestones=milestones_of(link),
            learning_objectives=link.learning_objectives or "",
            prerequisites=list(link.prerequisites or []),
            estimated_hours=link.estimated_hours or 0,
            resources=[ResourceResponse.model_validate(r) for r in link.resources],
        )


class RoadmapSkillDetail(BaseModel):
    """A link with its catalog skill nested and prerequisites named."""

    id: str
    roadmap_id: str
    skill_id: str
    skill: SkillResponse
    order: int
    status: str  # "concluido" | "pendente"
    is_concluded: bool
    conclusion_date: datetime | None
    milestones: list[MilestoneSpec]
    learning_objectives: str
    prerequisites: list[PrerequisiteRef]
    estimated_hours: int
    resources: list[ResourceResponse]

    @classmethod
    def from_link(cls, link: RoadmapSkill, names_by_link: dict[str, str]) -> "RoadmapSkillDetail":
        prerequisites = [
            PrerequisiteRef(id=link_id, name=names_by_link[link_id])
            for link_id in link.prerequisites or []
            if link_id in names_by_link
        ]
        return cls(
            id=link.id,
            roadmap_id=link.roadmap_id,
            skill_id=link.skill_id,
            skill=SkillResponse.model_validate(link.skill),
            order=link.order,
            status="concluido" if link.is_concluded else "pendente",
            is_concluded=link.is_concluded,
            conclusion_date=link.conclusion_date,
            milestones=milestones_of(link),
            learning_objectives=link.learning_objectives or "",
            prerequisites=prerequisites,
            estimated_hours=link.estimated_hours or 0,
            resources=[ResourceResponse.model_validate(r) for r in link.resources],
        )


class RoadmapTreeResponse(BaseModel):
    """Roadmap with its ordered links; top-level keys are camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    user_id: int
    title: str
    career_goal: str
    experience: str
    percentual_progress: float
    creation_date: datetime
    skills: list[RoadmapSkillResponse]

    @classmethod
    def from_roadmap(cls, roadmap: Roadmap) -> "RoadmapTreeResponse":
        return cls(
            id=roadmap.id,
            user_id=roadmap.user_id,
            title=roadmap.title,
            career_goal=roadmap.career_goal,
            experience=roadmap.experience,
            percentual_progress=float(roadmap.percentual_progress or 0),
            creation_date=roadmap.creation_date,
            skills=[RoadmapSkillResponse.from_link(link) for link in roadmap.skills],
        )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def milestones_of(link: RoadmapSkill) -> list[MilestoneSpec]:
    return [MilestoneSpec.model_validate(m) for m in link.milestones or []]


def link_names(roadmap: Roadmap) -> dict[str, str]:
    """Map each link id of ``roadmap`` to its catalog skill name."""
    return {link.id: link.skill.name for link in roadmap.skills}

