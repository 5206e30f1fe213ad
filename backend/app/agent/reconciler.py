"""Name reconciliation: where generated skill names meet catalog identifiers.

The generator only knows skills by display name. Everything that turns those
names into identifiers (catalog matching and the prerequisite graph) lives
here, so matching rules change in one place.

Matching is exact and case-insensitive on the display name, ignoring
surrounding whitespace. There is no fuzzy matching.
"""

from collections.abc import Iterable, Sequence

from pydantic import BaseModel, ConfigDict

from app.core.logging import get_logger
from app.schemas.skill import SkillCatalogEntry
from app.schemas.synthesis import RoadmapSkillSpec

logger = get_logger(__name__)


class CatalogMatch(BaseModel):
    """A generated name that resolved to a catalog skill."""

    model_config = ConfigDict(frozen=True)

    skill_id: str
    original_name: str


def normalize_name(name: str) -> str:
    return name.strip().casefold()


def build_name_index(catalog: Iterable[SkillCatalogEntry]) -> dict[str, SkillCatalogEntry]:
    """Index catalog entries by normalized name; the first entry for a name wins."""
    index: dict[str, SkillCatalogEntry] = {}
    for entry in catalog:
        index.setdefault(normalize_name(entry.name), entry)
    return index


def reconcile_names(
    names: Iterable[str | None],
    catalog: Sequence[SkillCatalogEntry],
) -> list[CatalogMatch]:
    """Map generated names onto catalog identifiers.

    Unmatched names are dropped and logged. Repeated names (or different
    casings of one name) collapse into the first match, which keeps its
    position.

    Args:
        names: Free-text skill names, in generator order
        catalog: Snapshot of the catalog entries names may refer to

    Returns:
        Matches in first-seen order, unique by skill id
    """
    index = build_name_index(catalog)
    matches: dict[str, CatalogMatch] = {}

    for name in names:
        if not isinstance(name, str) or not name.strip():
            logger.warning("Generated skill without a name dropped", name=name)
            continue

        entry = index.get(normalize_name(name))
        if entry is None:
            logger.warning("Generated skill not found in catalog", name=name)
            continue

        if entry.id not in matches:
            matches[entry.id] = CatalogMatch(skill_id=entry.id, original_name=name)

    return list(matches.values())


def resolve_prerequisites(specs: Sequence[RoadmapSkillSpec]) -> list[RoadmapSkillSpec]:
    """Translate prerequisite names into skill ids of this roadmap.

    Only skills selected for the roadmap are candidates, so a prerequisite
    naming anything else is dropped. A skill listed as its own prerequisite is
    dropped as well. Longer cycles are kept: no topological validation is
    performed and link order is not affected.

    Returns:
        New specs with ``prerequisite_skill_ids`` filled in
    """
    ids_by_name = {normalize_name(spec.name): spec.skill_id for spec in specs}
    resolved: list[RoadmapSkillSpec] = []

    for spec in specs:
        skill_ids: list[str] = []
        for prerequisite in spec.prerequisite_names:
            skill_id = ids_by_name.get(normalize_name(prerequisite))
            if skill_id is None:
                logger.warning(
                    "Prerequisite not in roadmap, dropped",
                    skill=spec.name,
                    prerequisite=prerequisite,
                )
                continue
            if skill_id == spec.skill_id:
                logger.warning("Self-referencing prerequisite dropped", skill=spec.name)
                continue
            if skill_id not in skill_ids:
                skill_ids.append(skill_id)

        resolved.append(spec.model_copy(update={"prerequisite_skill_ids": skill_ids}))

    return resolved
