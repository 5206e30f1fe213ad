"""LangGraph state for roadmap synthesis."""

from typing import Annotated, TypedDict

from app.schemas.skill import SkillCatalogEntry
from app.schemas.synthesis import RoadmapSkillSpec


class SynthesisState(TypedDict, total=False):
    """State passed between the synthesis nodes.

    Each node returns only the keys it changes.
    """

    # === Input ===
    career_goal: str
    experience: str
    selected_skills: Annotated[list[SkillCatalogEntry], "Catalog snapshot of the caller's selection"]

    # === Ordering output ===
    title: Annotated[str | None, "Roadmap title proposed by the generator"]
    skills: Annotated[list[RoadmapSkillSpec], "Reconciled links in learning order"]

    # === Enrichment output ===
    enrichment_failed: Annotated[bool, "Enrichment call failed; links carry no resources"]
