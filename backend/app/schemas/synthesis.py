"""Typed shapes for generative-service output and pipeline intermediates.

The generator only ever returns untrusted JSON. These models are the single
place where that JSON becomes typed data; validators coerce the common
deviations (numbers as strings, a bare string instead of a list, null
fields) rather than rejecting the whole entry.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator

RESOURCE_TYPES = (
    "course",
    "article",
    "video",
    "documentation",
    "tutorial",
    "project",
    "exercise",
    "podcast",
)

# Labels the generator is prompted with (Portuguese) or tends to use instead
_RESOURCE_TYPE_ALIASES = {
    "curso": "course",
    "cursos": "course",
    "artigo": "article",
    "artigos": "article",
    "blog": "article",
    "vídeo": "video",
    "videos": "video",
    "vídeos": "video",
    "documentação": "documentation",
    "documentacao": "documentation",
    "docs": "documentation",
    "projeto": "project",
    "projetos": "project",
    "exercício": "exercise",
    "exercicio": "exercise",
    "exercícios": "exercise",
}


def _string_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if isinstance(item, (str, int, float)) and str(item).strip()]
    return []


def _positive_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(float(value))
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


# ============================================================================
# Generator output
# ============================================================================


class GeneratedSkill(BaseModel):
    """One entry of the ordering stage output."""

    name: str
    description: str = ""
    estimated_hours: int | None = None
    prerequisites: list[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        return value.strip()

    @field_validator("description", mode="before")
    @classmethod
    def _description(cls, value: Any) -> str:
        return value.strip() if isinstance(value, str) else ""

    @field_validator("estimated_hours", mode="before")
    @classmethod
    def _hours(cls, value: Any) -> int | None:
        return _positive_int(value)

    @field_validator("prerequisites", mode="before")
    @classmethod
    def _prerequisites(cls, value: Any) -> list[str]:
        return _string_list(value)


class GeneratedMilestone(BaseModel):
    level: int | None = None
    title: str
    objectives: list[str] = Field(default_factory=list)

    @field_validator("level", mode="before")
    @classmethod
    def _level(cls, value: Any) -> int | None:
        return _positive_int(value)

    @field_validator("objectives", mode="before")
    @classmethod
    def _objectives(cls, value: Any) -> list[str]:
        return _string_list(value)


class ResourceSpec(BaseModel):
    """A learning resource as it will be stored."""

    title: str
    url: str
    type: str = "article"
    platform: str | None = None
    is_free: bool = True

    @field_validator("title", "url")
    @classmethod
    def _required_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: Any) -> str:
        if not isinstance(value, str):
            return "article"
        label = value.strip().lower()
        label = _RESOURCE_TYPE_ALIASES.get(label, label)
        return label if label in RESOURCE_TYPES else "article"

    @field_validator("platform", mode="before")
    @classmethod
    def _platform(cls, value: Any) -> str | None:
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None

    @field_validator("is_free", mode="before")
    @classmethod
    def _is_free(cls, value: Any) -> bool:
        return True if value is None else value


class SkillEnrichment(BaseModel):
    """One entry of the enrichment stage output, still untyped inside."""

    skill_name: str
    resources: list[Any] = Field(default_factory=list)
    milestones: list[Any] = Field(default_factory=list)

    @field_validator("resources", "milestones", mode="before")
    @classmethod
    def _as_list(cls, value: Any) -> list[Any]:
        return value if isinstance(value, list) else []


# ============================================================================
# Pipeline intermediates
# ============================================================================


class MilestoneSpec(BaseModel):
    """Milestone embedded in a roadmap skill link."""

    level: int
    title: str
    objectives: list[str] = Field(default_factory=list)
    completed: bool = False


class RoadmapSkillSpec(BaseModel):
    """A link to be created, carried through ordering, enrichment and resolution."""

    skill_id: str
    name: str
    learning_objectives: str = ""
    estimated_hours: int | None = None
    prerequisite_names: list[str] = Field(default_factory=list)
    prerequisite_skill_ids: list[str] = Field(default_factory=list)
    milestones: list[MilestoneSpec] = Field(default_factory=list)
    resources: list[ResourceSpec] = Field(default_factory=list)


class SkillSuggestion(BaseModel):
    skill_id: str
    name: str
    type: str
    category: str | None = None
    reason: str | None = None
