"""Enrichment node - attaches milestones and learning resources to ordered skills.

One batched call covers every skill. Failure here is not fatal: the roadmap
is still persisted with its ordering and empty milestone/resource lists.
"""

from typing import Any

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_core.runnables import RunnableConfig
from pydantic import ValidationError

from app.agent.llm import generator_from_config
from app.agent.llm_utils import recover_structured_output
from app.agent.reconciler import normalize_name
from app.agent.state import SynthesisState
from app.core.logging import get_logger
from app.schemas.synthesis import (
    GeneratedMilestone,
    MilestoneSpec,
    ResourceSpec,
    RoadmapSkillSpec,
    SkillEnrichment,
)

logger = get_logger(__name__)

ENRICH_SYSTEM_PROMPT = (
    "Return ONLY pure JSON without markdown formatting, code blocks, or any other text. "
    "No ```json tags."
)


def _build_enrichment_prompt(career_goal: str, skills: list[RoadmapSkillSpec]) -> str:
    names = ", ".join(s.name for s in skills)

    return f"""Para as seguintes skills de um roadmap de {career_goal}, encontre 2-3 recursos de aprendizado GRATUITOS para CADA skill e crie 5-7 marcos progressivos de aprendizado para CADA skill.

Skills: {names}

PRIORIZE recursos GRATUITOS:
- cursos/tutoriais (freeCodeCamp, sites de cursos gratuitos, Udemy gratuitos)
- documentação oficial (MDN, docs oficiais)
- tutoriais em vídeo (YouTube canais respeitáveis)
- projetos práticos com repos no GitHub
- evite links de playlists do YouTube que geralmente estão quebrados ou desatualizados

IMPORTANTE:
- Todos os marcos (milestones) devem estar em PORTUGUÊS
- Títulos e objetivos dos marcos devem ser claros e acionáveis
- Recursos podem estar em inglês ou português

Retorne JSON com esta estrutura EXATA:
{{
  "skills_data": [
    {{
      "skill_name": "nome exato da skill da lista",
      "resources": [
        {{
          "title": "título do recurso",
          "url": "https://...",
          "type": "curso|artigo|vídeo|tutorial|documentação|projeto|etc",
          "platform": "nome da plataforma",
          "is_free": true
        }}
      ],
      "milestones": [
        {{
          "level": 1,
          "title": "Título do marco em português (máx 50 chars)",
          "objectives": ["objetivo 1", "objetivo 2", "objetivo 3"]
        }}
      ]
    }}
  ]
}}"""


def normalize_milestones(raw: list[Any]) -> list[MilestoneSpec]:
    """Validate milestones and renumber their levels 1..n in list order."""
    valid: list[GeneratedMilestone] = []
    for item in raw:
        try:
            valid.append(GeneratedMilestone.model_validate(item))
        except ValidationError as e:
            logger.warning("Malformed milestone skipped", item=item, error=str(e))

    return [
        MilestoneSpec(level=index, title=m.title, objectives=m.objectives, completed=False)
        for index, m in enumerate(valid, start=1)
    ]


def normalize_resources(raw: list[Any]) -> list[ResourceSpec]:
    """Validate resources, dropping entries without title/url and repeats."""
    resources: list[ResourceSpec] = []
    seen: set[tuple[str, str]] = set()
    for item in raw:
        try:
            resource = ResourceSpec.model_validate(item)
        except ValidationError as e:
            logger.warning("Malformed resource skipped", item=item, error=str(e))
            continue
        key = (resource.title, resource.url)
        if key in seen:
            continue
        seen.add(key)
        resources.append(resource)
    return resources


def _index_enrichments(payload: Any) -> dict[str, SkillEnrichment]:
    entries = payload.get("skills_data") if isinstance(payload, dict) else None
    if not isinstance(entries, list):
        raise ValueError("Enrichment response has no 'skills_data' list")

    index: dict[str, SkillEnrichment] = {}
    for item in entries:
        try:
            enrichment = SkillEnrichment.model_validate(item)
        except ValidationError as e:
            logger.warning("Malformed skill enrichment skipped", item=item, error=str(e))
            continue
        index.setdefault(normalize_name(enrichment.skill_name), enrichment)
    return index


def _without_enrichment(skills: list[RoadmapSkillSpec]) -> list[RoadmapSkillSpec]:
    return [s.model_copy(update={"milestones": [], "resources": []}) for s in skills]


async def enrich_skills_node(state: SynthesisState, config: RunnableConfig) -> dict:
    """Fetch milestones and resources for every ordered skill in one call."""
    generator = generator_from_config(config)
    skills = state["skills"]

    try:
        response = await generator.generate(
            [
                SystemMessage(content=ENRICH_SYSTEM_PROMPT),
                HumanMessage(content=_build_enrichment_prompt(state["career_goal"], skills)),
            ],
            search_augmentation=True,
        )
        logger.debug("Raw enrichment response", preview=(response or "")[:1000])

        payload = await recover_structured_output(
            response, generator=generator, context="batch resource and milestones data"
        )
        enrichments = _index_enrichments(payload)
    except Exception as e:
        logger.error("Batch enrichment failed, keeping ordering only", error=str(e))
        return {"skills": _without_enrichment(skills), "enrichment_failed": True}

    enriched: list[RoadmapSkillSpec] = []
    for skill in skills:
        enrichment = enrichments.get(normalize_name(skill.name))
        if enrichment is None:
            logger.warning(
                "No enrichment data for skill",
                skill=skill.name,
                available=[e.skill_name for e in enrichments.values()],
            )
            enriched.append(skill.model_copy(update={"milestones": [], "resources": []}))
            continue

        enriched.append(
            skill.model_copy(
                update={
                    "milestones": normalize_milestones(enrichment.milestones),
                    "resources": normalize_resources(enrichment.resources),
                }
            )
        )

    with_resources = sum(1 for s in enriched if s.resources)
    with_milestones = sum(1 for s in enriched if s.milestones)
    logger.info(
        "Batch enrichment complete",
        skills=len(enriched),
        with_resources=with_resources,
        with_milestones=with_milestones,
    )
    if with_resources < len(enriched) or with_milestones < len(enriched):
        logger.warning(
            "Some skills are missing enrichment data",
            without_resources=len(enriched) - with_resources,
            without_milestones=len(enriched) - with_milestones,
        )

    return {"skills": enriched, "enrichment_failed": False}
