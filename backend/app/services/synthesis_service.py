"""Roadmap synthesis: validation, the generative pipeline, persistence.

``generate_complete_roadmap`` drives one request through
VALIDATE_INPUT -> (pipeline graph) -> PERSIST -> RESPOND. Without a text
generator the graph is skipped and the caller's selection is stored as-is.
"""

from collections.abc import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from app.agent.graph import run_synthesis
from app.agent.llm import TextGenerator
from app.agent.nodes.suggest import suggest_skills
from app.core.config import get_settings
from app.core.errors import InputValidationError, RoadmapPersistenceError, RoadmapSynthesisError
from app.core.logging import get_logger
from app.models.roadmap import Roadmap
from app.schemas.skill import SkillCatalogEntry
from app.schemas.synthesis import RoadmapSkillSpec, SkillSuggestion
from app.services import roadmap_service, skill_service

logger = get_logger(__name__)

SYNTHESIS_ERROR_MESSAGE = "Erro ao gerar roadmap completo"
SUGGESTION_ERROR_MESSAGE = "Erro ao gerar sugestões de roadmap"
FALLBACK_SUGGESTION_REASON = "Skill recomendada para beginners"


def default_title(career_goal: str) -> str:
    return f"Trilha: {career_goal}"


def _required_text(value: str | None) -> str | None:
    if not isinstance(value, str) or not value.strip():
        return None
    return value.strip()


# ============================================================================
# Skill suggestions
# ============================================================================


async def suggest_roadmap_skills(
    db: AsyncSession,
    generator: TextGenerator | None,
    *,
    career_goal: str | None,
    experience: str | None,
) -> dict:
    """Suggest catalog skills for a career goal.

    Without a generator, the first catalog skills are returned as a basic
    suggestion.

    Raises:
        InputValidationError: If goal or experience is missing
        RoadmapSynthesisError: If the generator call cannot be used
    """
    goal = _required_text(career_goal)
    level = _required_text(experience)
    if not goal or not level:
        raise InputValidationError("Objetivo de carreira e nível de experiência são obrigatórios")

    catalog = await skill_service.get_catalog_snapshot(db)

    if generator is None:
        logger.warning("Text generator not configured, returning basic skill suggestions")
        limit = get_settings().SUGGESTION_FALLBACK_LIMIT
        suggestions = [
            SkillSuggestion(
                skill_id=s.id,
                name=s.name,
                type=s.type,
                category=s.category,
                reason=FALLBACK_SUGGESTION_REASON,
            )
            for s in catalog[:limit]
        ]
        return {"title": default_title(goal), "suggestions": suggestions}

    try:
        suggestions = await suggest_skills(
            generator, career_goal=goal, experience=level, catalog=catalog
        )
    except Exception as e:
        logger.error("Skill suggestion failed", career_goal=goal, error=str(e))
        raise RoadmapSynthesisError(SUGGESTION_ERROR_MESSAGE) from e

    return {"suggestions": suggestions}


# ============================================================================
# Complete roadmap
# ============================================================================


async def _validated_selection(
    db: AsyncSession,
    career_goal: str | None,
    experience: str | None,
    selected_skill_ids: Sequence[str] | None,
) -> tuple[str, str, list[SkillCatalogEntry]]:
    goal = _required_text(career_goal)
    level = _required_text(experience)
    if not goal or not level:
        raise InputValidationError("Meta de carreira e nível de experiência são obrigatórios")

    if not selected_skill_ids:
        raise InputValidationError("Pelo menos uma skill deve ser selecionada")

    selected = await skill_service.get_catalog_snapshot(db, list(selected_skill_ids))
    if not selected:
        raise InputValidationError("Nenhuma skill válida foi selecionada")

    return goal, level, selected


def _plain_specs(selected: list[SkillCatalogEntry]) -> list[RoadmapSkillSpec]:
    return [RoadmapSkillSpec(skill_id=s.id, name=s.name) for s in selected]


async def generate_complete_roadmap(
    db: AsyncSession,
    generator: TextGenerator | None,
    *,
    user_id: int,
    career_goal: str | None,
    experience: str | None,
    selected_skill_ids: Sequence[str] | None,
) -> Roadmap:
    """Synthesize and persist a roadmap for the selected skills.

    Returns:
        The stored roadmap tree, re-read from the database

    Raises:
        InputValidationError: Missing goal/experience or no valid selection
        RoadmapSynthesisError: The ordering stage failed
        RoadmapPersistenceError: The roadmap could not be written
    """
    goal, level, selected = await _validated_selection(
        db, career_goal, experience, selected_skill_ids
    )

    if generator is None:
        logger.warning("Text generator not configured, creating basic roadmap")
        title = default_title(goal)
        specs = _plain_specs(selected)
    else:
        try:
            state = await run_synthesis(
                generator,
                career_goal=goal,
                experience=level,
                selected_skills=selected,
            )
        except Exception as e:
            logger.error(
                "Roadmap synthesis failed",
                career_goal=goal,
                error=str(e),
                exc_info=True,
            )
            raise RoadmapSynthesisError(SYNTHESIS_ERROR_MESSAGE) from e

        title = state.get("title") or default_title(goal)
        specs = state["skills"]
        if state.get("enrichment_failed"):
            logger.warning("Roadmap persisted without enrichment", career_goal=goal)

    roadmap = await roadmap_service.create_roadmap_with_links(
        db,
        user_id=user_id,
        title=title,
        career_goal=goal,
        experience=level,
        specs=specs,
    )
    roadmap_id = roadmap.id
    await roadmap_service.persist_resources(db, roadmap, specs)

    tree = await roadmap_service.fetch_roadmap_tree(db, roadmap_id)
    if tree is None:
        raise RoadmapPersistenceError(roadmap_service.PERSISTENCE_ERROR_MESSAGE)

    logger.info(
        "Complete roadmap generated",
        roadmap_id=tree.id,
        title=title,
        skills=len(tree.skills),
    )
    return tree


async def create_manual_roadmap(
    db: AsyncSession,
    *,
    user_id: int,
    title: str | None,
    career_goal: str | None,
    experience: str | None,
    skill_ids: Sequence[str] | None,
) -> Roadmap:
    """Create a roadmap from an explicit, caller-ordered skill list (no AI)."""
    name = _required_text(title)
    goal = _required_text(career_goal)
    level = _required_text(experience)
    if not name or not goal or not level:
        raise InputValidationError(
            "Título, objetivo de carreira e nível de experiência são obrigatórios"
        )
    if not skill_ids:
        raise InputValidationError("Pelo menos uma skill é obrigatória")

    selected = await skill_service.get_catalog_snapshot(db, list(skill_ids))
    if not selected:
        raise InputValidationError("Nenhuma skill válida foi selecionada")

    roadmap = await roadmap_service.create_roadmap_with_links(
        db,
        user_id=user_id,
        title=name,
        career_goal=goal,
        experience=level,
        specs=_plain_specs(selected),
    )
    tree = await roadmap_service.fetch_roadmap_tree(db, roadmap.id)
    if tree is None:
        raise RoadmapPersistenceError(roadmap_service.PERSISTENCE_ERROR_MESSAGE)
    return tree
