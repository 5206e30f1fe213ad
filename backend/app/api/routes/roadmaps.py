"""Roadmap API routes."""

from typing import Any

from fastapi import APIRouter, status

from app.api.deps import CurrentUser, DBDep, GeneratorDep
from app.core.errors import ForbiddenError, InputValidationError
from app.core.logging import get_logger
from app.schemas.roadmap import (
    GenerateCompleteRequest,
    MilestoneProgressUpdate,
    RoadmapCreate,
    RoadmapSkillDetail,
    RoadmapTreeResponse,
    SuggestSkillsRequest,
    link_names,
)
from app.services import roadmap_service, synthesis_service, user_service

logger = get_logger(__name__)
router = APIRouter(prefix="/roadmaps", tags=["roadmaps"])


def envelope(data: Any = None, *, message: str | None = None) -> dict:
    body: dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    return body


# IMPORTANT: Fixed paths must come BEFORE parameterized paths
# to avoid path matching issues (e.g., "/generate" being matched by "/{roadmap_id}")


@router.post("/generate-complete", status_code=status.HTTP_201_CREATED)
async def generate_complete_roadmap(
    data: GenerateCompleteRequest,
    db: DBDep,
    user_id: CurrentUser,
    generator: GeneratorDep,
) -> dict:
    """Generate a complete AI-ordered roadmap with milestones and resources.

    Falls back to a plain roadmap in the caller's order when no AI provider
    is configured.
    """
    await user_service.ensure_user(db, user_id)
    roadmap = await synthesis_service.generate_complete_roadmap(
        db,
        generator,
        user_id=user_id,
        career_goal=data.career_goal,
        experience=data.experience,
        selected_skill_ids=data.selected_skill_ids,
    )
    return envelope({"roadmap": RoadmapTreeResponse.from_roadmap(roadmap).to_wire()})


@router.post("/generate")
async def generate_roadmap_suggestions(
    data: SuggestSkillsRequest,
    db: DBDep,
    generator: GeneratorDep,
) -> dict:
    """Suggest catalog skills for a career goal."""
    result = await synthesis_service.suggest_roadmap_skills(
        db,
        generator,
        career_goal=data.career_goal,
        experience=data.experience,
    )
    result["suggestions"] = [s.model_dump(mode="json") for s in result["suggestions"]]
    return envelope(result)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_roadmap(
    data: RoadmapCreate,
    db: DBDep,
    user_id: CurrentUser,
) -> dict:
    """Create a roadmap from an explicit skill list."""
    await user_service.ensure_user(db, user_id)
    roadmap = await synthesis_service.create_manual_roadmap(
        db,
        user_id=user_id,
        title=data.title,
        career_goal=data.career_goal,
        experience=data.experience,
        skill_ids=data.skills,
    )
    return envelope(RoadmapTreeResponse.from_roadmap(roadmap).to_wire())


@router.get("/user/{owner_id}")
async def list_user_roadmaps(
    owner_id: int,
    db: DBDep,
    user_id: CurrentUser,
) -> dict:
    """List all roadmaps of a user, newest first."""
    if owner_id != user_id:
        raise ForbiddenError()

    roadmaps = await roadmap_service.list_user_roadmaps(db, owner_id)
    return envelope(
        {"roadmaps": [RoadmapTreeResponse.from_roadmap(r).to_wire() for r in roadmaps]}
    )


@router.get("/{roadmap_id}")
async def get_roadmap(
    roadmap_id: str,
    db: DBDep,
    user_id: CurrentUser,
) -> dict:
    """Get a roadmap with all of its skills."""
    roadmap = await roadmap_service.get_owned_roadmap(db, roadmap_id, user_id)
    tree = RoadmapTreeResponse.from_roadmap(roadmap).to_wire()
    return envelope({"roadmap": tree, "skills": tree["skills"]})


@router.get("/{roadmap_id}/skills")
async def get_roadmap_skills(
    roadmap_id: str,
    db: DBDep,
    user_id: CurrentUser,
) -> dict:
    """Get the skills of a roadmap with prerequisites resolved to names."""
    roadmap = await roadmap_service.get_owned_roadmap(db, roadmap_id, user_id)
    names = link_names(roadmap)
    skills = [
        RoadmapSkillDetail.from_link(link, names).model_dump(mode="json")
        for link in roadmap.skills
    ]
    return envelope({"skills": skills})


@router.get("/{roadmap_id}/skills/{link_id}")
async def get_roadmap_skill(
    roadmap_id: str,
    link_id: str,
    db: DBDep,
    user_id: CurrentUser,
) -> dict:
    """Get a single skill of a roadmap."""
    roadmap = await roadmap_service.get_owned_roadmap(db, roadmap_id, user_id)
    link = roadmap_service.find_link(roadmap, link_id)
    detail = RoadmapSkillDetail.from_link(link, link_names(roadmap))
    return envelope({"skill": detail.model_dump(mode="json")})


@router.put("/{roadmap_id}/skills/{link_id}/milestones/{level}")
async def update_milestone_progress(
    roadmap_id: str,
    link_id: str,
    level: str,
    data: MilestoneProgressUpdate,
    db: DBDep,
    user_id: CurrentUser,
) -> dict:
    """Set the completion flag of one milestone."""
    if not isinstance(data.completed, bool):
        raise InputValidationError('O campo "completed" deve ser um booleano')
    try:
        milestone_level = int(level)
    except ValueError:
        raise InputValidationError("Nível do milestone inválido") from None

    roadmap = await roadmap_service.get_owned_roadmap(db, roadmap_id, user_id)
    link = await roadmap_service.set_milestone_completed(
        db, roadmap, link_id, milestone_level, data.completed
    )
    detail = RoadmapSkillDetail.from_link(link, link_names(roadmap))
    return envelope({"skill": detail.model_dump(mode="json")})


@router.put("/{roadmap_id}/skills/{link_id}")
async def update_skill_progress(
    roadmap_id: str,
    link_id: str,
    db: DBDep,
    user_id: CurrentUser,
) -> dict:
    """Toggle a skill's completion."""
    roadmap = await roadmap_service.get_owned_roadmap(db, roadmap_id, user_id)
    link = await roadmap_service.toggle_skill_progress(db, roadmap, link_id)
    detail = RoadmapSkillDetail.from_link(link, link_names(roadmap))
    return envelope(
        {
            "roadmapSkill": detail.model_dump(mode="json"),
            "percentualProgress": roadmap.percentual_progress,
        }
    )


@router.delete("/{roadmap_id}")
async def delete_roadmap(
    roadmap_id: str,
    db: DBDep,
    user_id: CurrentUser,
) -> dict:
    """Delete a roadmap with everything it owns."""
    roadmap = await roadmap_service.get_owned_roadmap(db, roadmap_id, user_id)
    await roadmap_service.delete_roadmap(db, roadmap)
    return envelope(message="Roadmap deletado com sucesso")
