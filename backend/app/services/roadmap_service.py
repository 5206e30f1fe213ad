"""Roadmap service: assembling, persisting, reading and progress tracking."""

from collections.abc import Sequence
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import ForbiddenError, NotFoundError, RoadmapPersistenceError
from app.core.logging import get_logger
from app.models.roadmap import Roadmap, RoadmapSkill, SkillResource
from app.schemas.synthesis import ResourceSpec, RoadmapSkillSpec

logger = get_logger(__name__)

PERSISTENCE_ERROR_MESSAGE = "Erro ao salvar roadmap"


def _tree_options():  # type: ignore[no-untyped-def]
    return (
        selectinload(Roadmap.skills).selectinload(RoadmapSkill.skill),
        selectinload(Roadmap.skills).selectinload(RoadmapSkill.resources),
    )


# ============================================================================
# Assembly
# ============================================================================


async def create_roadmap_with_links(
    db: AsyncSession,
    *,
    user_id: int,
    title: str,
    career_goal: str,
    experience: str,
    specs: Sequence[RoadmapSkillSpec],
) -> Roadmap:
    """Create a roadmap and all of its skill links in one commit.

    Links get ``order`` = 1-based index in ``specs``. Prerequisite skill ids
    are mapped onto the link ids generated here; ids without a link in this
    roadmap are dropped and logged.

    Raises:
        RoadmapPersistenceError: If the write fails (nothing is kept)

    Note: This function commits the transaction.
    """
    roadmap = Roadmap(
        user_id=user_id,
        title=title,
        career_goal=career_goal,
        experience=experience,
        percentual_progress=0.0,
    )
    links = [
        RoadmapSkill(
            skill_id=spec.skill_id,
            order=index,
            is_concluded=False,
            learning_objectives=spec.learning_objectives,
            estimated_hours=spec.estimated_hours,
            milestones=[m.model_dump() for m in spec.milestones],
            prerequisites=[],
        )
        for index, spec in enumerate(specs, start=1)
    ]
    roadmap.skills = links

    try:
        db.add(roadmap)
        await db.flush()

        link_ids = {link.skill_id: link.id for link in links}
        for link, spec in zip(links, specs):
            prerequisites: list[str] = []
            for skill_id in spec.prerequisite_skill_ids:
                link_id = link_ids.get(skill_id)
                if link_id is None or link_id == link.id:
                    logger.warning(
                        "Dangling prerequisite dropped",
                        roadmap_id=roadmap.id,
                        skill_id=spec.skill_id,
                        prerequisite_skill_id=skill_id,
                    )
                    continue
                prerequisites.append(link_id)
            link.prerequisites = prerequisites

        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Roadmap persistence failed", error=str(e), user_id=user_id)
        raise RoadmapPersistenceError(PERSISTENCE_ERROR_MESSAGE) from e

    logger.info(
        "Roadmap created",
        roadmap_id=roadmap.id,
        user_id=user_id,
        skills=len(links),
    )
    return roadmap


async def create_resources_for_link(
    db: AsyncSession,
    link_id: str,
    resources: Sequence[ResourceSpec],
) -> int:
    """Insert resources for one link, skipping duplicates.

    A resource is a duplicate when ``(link, title, url)`` already exists or
    repeats within ``resources``.

    Returns:
        Number of resources inserted

    Note: This function commits the transaction.
    """
    result = await db.execute(
        select(SkillResource.title, SkillResource.url).where(
            SkillResource.roadmap_skill_id == link_id
        )
    )
    seen = {(title, url) for title, url in result.all()}

    inserted = 0
    for resource in resources:
        key = (resource.title, resource.url)
        if key in seen:
            continue
        seen.add(key)
        db.add(
            SkillResource(
                roadmap_skill_id=link_id,
                type=resource.type,
                title=resource.title,
                url=resource.url,
                platform=resource.platform,
                is_free=resource.is_free,
            )
        )
        inserted += 1

    await db.commit()
    return inserted


async def persist_resources(
    db: AsyncSession,
    roadmap: Roadmap,
    specs: Sequence[RoadmapSkillSpec],
) -> int:
    """Second pass: attach resources to the links generated for ``roadmap``.

    A failure for one link is rolled back and logged; the other links still
    get their resources. Identifiers are read up front: a rollback expires
    every instance in the session, ``roadmap`` included.

    Returns:
        Total number of resources inserted
    """
    roadmap_id = roadmap.id
    link_ids = {link.skill_id: link.id for link in roadmap.skills}
    total = 0

    for spec in specs:
        if not spec.resources:
            continue

        link_id = link_ids.get(spec.skill_id)
        if link_id is None:
            logger.warning(
                "No roadmap skill for resources, skipping",
                roadmap_id=roadmap_id,
                skill_id=spec.skill_id,
            )
            continue

        try:
            total += await create_resources_for_link(db, link_id, spec.resources)
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(
                "Resource insertion failed",
                roadmap_id=roadmap_id,
                link_id=link_id,
                error=str(e),
            )

    return total


# ============================================================================
# Reads
# ============================================================================


async def fetch_roadmap_tree(db: AsyncSession, roadmap_id: str) -> Roadmap | None:
    """Load a roadmap with its ordered links, their skills and resources.

    Instances already in the session are refreshed from the database.
    """
    result = await db.execute(
        select(Roadmap)
        .where(Roadmap.id == roadmap_id)
        .options(*_tree_options())
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_owned_roadmap(db: AsyncSession, roadmap_id: str, user_id: int) -> Roadmap:
    """Load a roadmap tree that must belong to ``user_id``.

    Raises:
        NotFoundError: If the roadmap does not exist
        ForbiddenError: If it belongs to another user
    """
    roadmap = await fetch_roadmap_tree(db, roadmap_id)
    if roadmap is None:
        raise NotFoundError("Roadmap não encontrado")
    if roadmap.user_id != user_id:
        raise ForbiddenError()
    return roadmap


async def list_user_roadmaps(db: AsyncSession, user_id: int) -> list[Roadmap]:
    """List a user's roadmaps, newest first."""
    result = await db.execute(
        select(Roadmap)
        .where(Roadmap.user_id == user_id)
        .options(*_tree_options())
        .order_by(Roadmap.creation_date.desc())
    )
    return list(result.scalars().all())


def find_link(roadmap: Roadmap, link_id: str) -> RoadmapSkill:
    for link in roadmap.skills:
        if link.id == link_id:
            return link
    raise NotFoundError("Skill não encontrada neste roadmap")


# ============================================================================
# Progress
# ============================================================================


def calc_progress(links: Sequence[RoadmapSkill]) -> float:
    """Percentage of concluded links, rounded to two decimals."""
    if not links:
        return 0.0
    done = sum(1 for link in links if link.is_concluded)
    return round(done * 100 / len(links), 2)


async def toggle_skill_progress(db: AsyncSession, roadmap: Roadmap, link_id: str) -> RoadmapSkill:
    """Flip a link's completion and refresh the roadmap's progress.

    Note: This function commits the transaction.
    """
    link = find_link(roadmap, link_id)
    link.is_concluded = not link.is_concluded
    link.conclusion_date = datetime.now(UTC) if link.is_concluded else None
    roadmap.percentual_progress = calc_progress(roadmap.skills)

    await db.commit()
    logger.info(
        "Skill progress updated",
        roadmap_id=roadmap.id,
        link_id=link_id,
        is_concluded=link.is_concluded,
        progress=roadmap.percentual_progress,
    )
    return link


async def set_milestone_completed(
    db: AsyncSession,
    roadmap: Roadmap,
    link_id: str,
    level: int,
    completed: bool,
) -> RoadmapSkill:
    """Set the completion flag of one embedded milestone.

    Raises:
        NotFoundError: If the link or the milestone level does not exist

    Note: This function commits the transaction.
    """
    link = find_link(roadmap, link_id)
    milestones = [dict(m) for m in link.milestones or []]

    for milestone in milestones:
        if milestone.get("level") == level:
            milestone["completed"] = completed
            break
    else:
        raise NotFoundError("Milestone não encontrado")

    # Reassign so the JSON column is flagged as changed
    link.milestones = milestones
    await db.commit()

    logger.info(
        "Milestone progress updated",
        roadmap_id=roadmap.id,
        link_id=link_id,
        level=level,
        completed=completed,
    )
    return link


async def delete_roadmap(db: AsyncSession, roadmap: Roadmap) -> None:
    """Delete a roadmap with its links and resources.

    Note: This function commits the transaction.
    """
    roadmap_id = roadmap.id
    await db.delete(roadmap)
    await db.commit()
    logger.info("Roadmap deleted", roadmap_id=roadmap_id)
