"""Suggestion step - picks catalog skills relevant to a career goal.

Runs on its own endpoint, before the user confirms a selection; the
complete-roadmap graph does not include it.
"""

from langchain_core.messages import HumanMessage, SystemMessage
from pydantic import BaseModel, ValidationError, field_validator

from app.agent.llm import TextGenerator
from app.agent.llm_utils import recover_structured_output
from app.agent.nodes.order import JSON_ONLY_SYSTEM_PROMPT
from app.agent.reconciler import normalize_name, reconcile_names
from app.core.logging import get_logger
from app.schemas.skill import SkillCatalogEntry
from app.schemas.synthesis import SkillSuggestion

logger = get_logger(__name__)


class _SuggestedSkill(BaseModel):
    name: str
    reason: str | None = None

    @field_validator("reason", mode="before")
    @classmethod
    def _reason(cls, value: object) -> str | None:
        return value if isinstance(value, str) and value.strip() else None


def _build_suggestion_prompt(
    career_goal: str,
    experience: str,
    catalog: list[SkillCatalogEntry],
) -> str:
    skills_list = "\n".join(
        f"- {s.name} ({s.type} skill, category: {s.category or 'geral'})" for s in catalog
    )

    return f"""Você é um consultor de carreira especializado em tecnologia e desenvolvimento profissional.

Objetivo de carreira do usuário: {career_goal}
Nível de experiência: {experience}

Skills disponíveis em nosso banco de dados:
{skills_list}

Analise o objetivo de carreira e o nível de experiência do usuário e sugira 5-10 skills da lista acima que sejam mais relevantes para alcançar esse objetivo. Priorize skills fundamentais primeiro, depois intermediárias e avançadas.

Retorne APENAS um JSON válido no seguinte formato (sem markdown, sem code blocks):
{{
  "skills": [
    {{
      "name": "nome exato da skill da lista acima",
      "reason": "por que essa skill é relevante"
    }}
  ]
}}"""


async def suggest_skills(
    generator: TextGenerator,
    *,
    career_goal: str,
    experience: str,
    catalog: list[SkillCatalogEntry],
) -> list[SkillSuggestion]:
    """Ask the generator for relevant skills and keep those found in the catalog."""
    response = await generator.generate(
        [
            SystemMessage(content=JSON_ONLY_SYSTEM_PROMPT),
            HumanMessage(content=_build_suggestion_prompt(career_goal, experience, catalog)),
        ],
        search_augmentation=True,
    )
    if not response or not response.strip():
        raise ValueError("Empty suggestion response")

    payload = await recover_structured_output(
        response, generator=generator, context="roadmap suggestions"
    )
    items = payload.get("skills") if isinstance(payload, dict) else None
    if not isinstance(items, list):
        raise ValueError("Suggestion response has no 'skills' list")

    suggested: list[_SuggestedSkill] = []
    for item in items:
        try:
            suggested.append(_SuggestedSkill.model_validate(item))
        except ValidationError as e:
            logger.warning("Malformed suggestion skipped", item=item, error=str(e))

    reasons: dict[str, str | None] = {}
    for s in suggested:
        reasons.setdefault(normalize_name(s.name), s.reason)

    by_id = {entry.id: entry for entry in catalog}
    suggestions = []
    for match in reconcile_names((s.name for s in suggested), catalog):
        entry = by_id[match.skill_id]
        suggestions.append(
            SkillSuggestion(
                skill_id=entry.id,
                name=entry.name,
                type=entry.type,
                category=entry.category,
                reason=reasons.get(normalize_name(match.original_name)),
            )
        )

    logger.info(
        "Generated skill suggestions",
        career_goal=career_goal,
        suggestions=len(suggestions),
    )
    return suggestions
