"""Prerequisite node - turns prerequisite names into skill ids of this roadmap."""

from app.agent.reconciler import resolve_prerequisites
from app.agent.state import SynthesisState
from app.core.logging import get_logger

logger = get_logger(__name__)


async def resolve_prerequisites_node(state: SynthesisState) -> dict:
    skills = resolve_prerequisites(state["skills"])
    logger.info(
        "Prerequisites resolved",
        edges=sum(len(s.prerequisite_skill_ids) for s in skills),
    )
    return {"skills": skills}
