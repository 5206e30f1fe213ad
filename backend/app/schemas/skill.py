"""Skill catalog schemas."""

from pydantic import BaseModel, ConfigDict


class SkillCatalogEntry(BaseModel):
    """Read-only snapshot of a catalog row, handed to the synthesis pipeline."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    name: str
    type: str
    description: str = ""
    category: str | None = None


class SkillResponse(BaseModel):
    """Catalog skill response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str
    type: str
    category: str | None
