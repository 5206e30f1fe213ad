"""Skill catalog routes."""

from fastapi import APIRouter

from app.api.deps import DBDep
from app.api.routes.roadmaps import envelope
from app.core.errors import NotFoundError
from app.schemas.skill import SkillResponse
from app.services import skill_service

router = APIRouter(prefix="/skills", tags=["skills"])


@router.get("")
async def list_skills(db: DBDep) -> dict:
    """List the skill catalog."""
    skills = await skill_service.list_skills(db)
    return envelope([SkillResponse.model_validate(s).model_dump(mode="json") for s in skills])


@router.get("/{skill_id}")
async def get_skill(skill_id: str, db: DBDep) -> dict:
    """Get a catalog skill by ID."""
    skill = await skill_service.get_skill(db, skill_id)
    if not skill:
        raise NotFoundError("Skill não encontrada")
    return envelope(SkillResponse.model_validate(skill).model_dump(mode="json"))
