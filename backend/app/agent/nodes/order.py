"""Ordering node - orders the caller's skills and annotates each one."""

from typing import Any

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_core.runnables import RunnableConfig
from pydantic import ValidationError

from app.agent.llm import generator_from_config
from app.agent.llm_utils import recover_structured_output
from app.agent.reconciler import normalize_name, reconcile_names
from app.agent.state import SynthesisState
from app.core.config import get_settings
from app.core.logging import get_logger
from app.schemas.skill import SkillCatalogEntry
from app.schemas.synthesis import GeneratedSkill, RoadmapSkillSpec

logger = get_logger(__name__)

MAX_TITLE_LENGTH = 60

JSON_ONLY_SYSTEM_PROMPT = (
    "You are a career roadmap expert. Return ONLY pure JSON without markdown formatting, "
    "code blocks, or any other text. No ```json tags."
)


class OrderingError(ValueError):
    """The ordering stage produced nothing usable."""


# ============================================================================
# Prompts
# ============================================================================


def _build_ordering_prompt(
    career_goal: str,
    experience: str,
    skills: list[SkillCatalogEntry],
) -> str:
    names = ", ".join(s.name for s in skills)
    skills_list = "\n".join(f"- {s.name} ({s.type} skill, {s.category or 'geral'})" for s in skills)

    return f"""Você é um consultor de carreira especializado em tecnologia.

Meta de carreira: {career_goal}
Nível de experiência: {experience}
Skills selecionadas pelo usuário: {names}

O usuário selecionou as seguintes skills para criar seu roadmap de aprendizado:
{skills_list}

IMPORTANTE: Use APENAS as skills listadas acima. NÃO sugira skills adicionais.

Organize essas skills na ordem ideal de aprendizado (skills fundamentais primeiro, depois intermediárias e avançadas). Identifique quais skills são pré-requisitos para outras.

Retorne um JSON válido com:
{{
  "titulo": "Título inspirador para o roadmap (máx 60 chars)",
  "skills": [
    {{
      "name": "nome EXATO da skill da lista acima",
      "description": "por que essa skill é importante (máx 100 chars)",
      "estimated_hours": 20,
      "prerequisites": ["nome da skill 1", "nome da skill 2"]
    }}
  ]
}}"""


# ============================================================================
# Response handling
# ============================================================================


def _generated_skills(payload: Any) -> list[GeneratedSkill]:
    if not isinstance(payload, dict) or not isinstance(payload.get("skills"), list):
        raise OrderingError("Ordering response has no 'skills' list")

    generated: list[GeneratedSkill] = []
    for item in payload["skills"]:
        try:
            generated.append(GeneratedSkill.model_validate(item))
        except ValidationError as e:
            logger.warning("Malformed ordered skill skipped", item=item, error=str(e))
    return generated


def _title(payload: dict) -> str | None:
    title = payload.get("titulo")
    if not isinstance(title, str) or not title.strip():
        return None
    return title.strip()[:MAX_TITLE_LENGTH]


def build_skill_specs(
    generated: list[GeneratedSkill],
    selected: list[SkillCatalogEntry],
    default_hours: int,
) -> list[RoadmapSkillSpec]:
    """Reconcile generated entries against the selection, keeping generator order."""
    annotations: dict[str, GeneratedSkill] = {}
    for skill in generated:
        annotations.setdefault(normalize_name(skill.name), skill)

    selected_by_id = {entry.id: entry for entry in selected}
    specs: list[RoadmapSkillSpec] = []

    for match in reconcile_names((g.name for g in generated), selected):
        entry = selected_by_id[match.skill_id]
        annotation = annotations[normalize_name(match.original_name)]
        specs.append(
            RoadmapSkillSpec(
                skill_id=entry.id,
                name=entry.name,
                learning_objectives=annotation.description,
                estimated_hours=annotation.estimated_hours or default_hours,
                prerequisite_names=annotation.prerequisites,
            )
        )

    return specs


# ============================================================================
# Main Node Function
# ============================================================================


async def order_skills_node(state: SynthesisState, config: RunnableConfig) -> dict:
    """Order and annotate exactly the skills the caller selected.

    Raises on failure: without an ordering there is no roadmap to build.
    """
    generator = generator_from_config(config)
    career_goal = state["career_goal"]
    experience = state["experience"]
    selected = state["selected_skills"]

    logger.info(
        "Ordering skills",
        career_goal=career_goal,
        experience=experience,
        skill_count=len(selected),
    )

    response = await generator.generate(
        [
            SystemMessage(content=JSON_ONLY_SYSTEM_PROMPT),
            HumanMessage(content=_build_ordering_prompt(career_goal, experience, selected)),
        ],
        search_augmentation=True,
    )
    if not response or not response.strip():
        raise OrderingError("Empty ordering response")

    payload = await recover_structured_output(
        response, generator=generator, context="complete roadmap structure"
    )
    generated = _generated_skills(payload)
    specs = build_skill_specs(generated, selected, get_settings().DEFAULT_ESTIMATED_HOURS)

    if not specs:
        raise OrderingError("No matching skills found")

    logger.info(
        "Skills ordered",
        career_goal=career_goal,
        ordered=len(specs),
        selected=len(selected),
    )
    return {"title": _title(payload), "skills": specs}
