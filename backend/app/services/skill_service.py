"""Skill catalog service: lookups, snapshots and seeding."""

import re
import unicodedata
from collections.abc import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.models.skill import Skill
from app.schemas.skill import SkillCatalogEntry

logger = get_logger(__name__)


async def list_skills(db: AsyncSession) -> list[Skill]:
    """List the catalog ordered by category, then name."""
    result = await db.execute(select(Skill).order_by(Skill.category, Skill.name))
    return list(result.scalars().all())


async def get_skill(db: AsyncSession, skill_id: str) -> Skill | None:
    return await db.get(Skill, skill_id)


async def get_catalog_snapshot(
    db: AsyncSession,
    skill_ids: Sequence[str] | None = None,
) -> list[SkillCatalogEntry]:
    """Read-only snapshot of the catalog, optionally restricted to ``skill_ids``.

    With ``skill_ids`` the result follows their order (first occurrence) and
    silently omits ids that do not exist. Without it the catalog is ordered by
    type, category and name.
    """
    query = select(Skill)
    if skill_ids is not None:
        if not skill_ids:
            return []
        query = query.where(Skill.id.in_(set(skill_ids)))
    else:
        query = query.order_by(Skill.type, Skill.category, Skill.name)

    result = await db.execute(query)
    entries = [SkillCatalogEntry.model_validate(s) for s in result.scalars().all()]

    if skill_ids is None:
        return entries

    by_id = {entry.id: entry for entry in entries}
    ordered: list[SkillCatalogEntry] = []
    for skill_id in dict.fromkeys(skill_ids):
        if skill_id in by_id:
            ordered.append(by_id[skill_id])
    return ordered


# ============================================================================
# Seeding
# ============================================================================

# (name, description, type, category)
DEFAULT_SKILL_CATALOG: list[tuple[str, str, str, str]] = [
    # Programming Languages
    ("JavaScript", "Linguagem de programação essencial para desenvolvimento web", "hard", "Programming Languages"),
    ("TypeScript", "Superset do JavaScript com tipagem estática", "hard", "Programming Languages"),
    ("Python", "Linguagem versátil para web, data science e automação", "hard", "Programming Languages"),
    ("Java", "Linguagem robusta para aplicações enterprise", "hard", "Programming Languages"),
    ("C#", "Linguagem Microsoft para desenvolvimento .NET", "hard", "Programming Languages"),
    ("Go", "Linguagem do Google para sistemas e microserviços", "hard", "Programming Languages"),
    ("Rust", "Linguagem focada em segurança e performance", "hard", "Programming Languages"),
    ("PHP", "Linguagem server-side para desenvolvimento web", "hard", "Programming Languages"),
    ("Ruby", "Linguagem elegante focada em produtividade", "hard", "Programming Languages"),
    ("Swift", "Linguagem da Apple para desenvolvimento iOS", "hard", "Programming Languages"),
    ("Kotlin", "Linguagem moderna para Android e JVM", "hard", "Programming Languages"),
    # Frontend Development
    ("React", "Biblioteca JavaScript para interfaces de usuário", "hard", "Frontend Development"),
    ("Vue.js", "Framework progressivo para interfaces web", "hard", "Frontend Development"),
    ("Angular", "Framework completo do Google para SPAs", "hard", "Frontend Development"),
    ("Next.js", "Framework React para produção", "hard", "Frontend Development"),
    ("HTML/CSS", "Fundamentos de marcação e estilização web", "hard", "Frontend Development"),
    ("Tailwind CSS", "Framework CSS utility-first", "hard", "Frontend Development"),
    ("Redux", "Gerenciamento de estado para aplicações JavaScript", "hard", "Frontend Development"),
    ("Webpack", "Bundler de módulos para aplicações JavaScript", "hard", "Frontend Development"),
    ("Responsive Design", "Criação de interfaces adaptáveis", "hard", "Frontend Development"),
    ("Web Accessibility", "Desenvolvimento inclusivo e acessível", "hard", "Frontend Development"),
    # Backend Development
    ("Node.js", "Runtime JavaScript server-side", "hard", "Backend Development"),
    ("Express.js", "Framework web minimalista para Node.js", "hard", "Backend Development"),
    ("Django", "Framework Python de alto nível", "hard", "Backend Development"),
    ("Flask", "Micro framework Python flexível", "hard", "Backend Development"),
    ("Spring Boot", "Framework Java para aplicações enterprise", "hard", "Backend Development"),
    ("NestJS", "Framework Node.js progressivo com TypeScript", "hard", "Backend Development"),
    ("GraphQL", "Linguagem de consulta para APIs", "hard", "Backend Development"),
    ("RESTful APIs", "Arquitetura de APIs web", "hard", "Backend Development"),
    ("Microservices", "Arquitetura de serviços distribuídos", "hard", "Backend Development"),
    ("API Security", "Segurança de APIs e autenticação", "hard", "Backend Development"),
    # Database
    ("PostgreSQL", "Banco de dados relacional avançado", "hard", "Database"),
    ("MongoDB", "Banco de dados NoSQL orientado a documentos", "hard", "Database"),
    ("MySQL", "Sistema de gerenciamento de banco relacional", "hard", "Database"),
    ("Redis", "Armazenamento em memória para cache", "hard", "Database"),
    ("SQL", "Linguagem de consulta estruturada", "hard", "Database"),
    ("Database Design", "Modelagem e otimização de dados", "hard", "Database"),
    ("ORM (Prisma/TypeORM)", "Mapeamento objeto-relacional", "hard", "Database"),
    # DevOps & Cloud
    ("Docker", "Plataforma de containerização", "hard", "DevOps & Cloud"),
    ("Kubernetes", "Orquestração de containers", "hard", "DevOps & Cloud"),
    ("AWS", "Amazon Web Services", "hard", "DevOps & Cloud"),
    ("CI/CD", "Integração e entrega contínuas", "hard", "DevOps & Cloud"),
    ("Linux", "Sistema operacional e administração", "hard", "DevOps & Cloud"),
    ("Nginx", "Servidor web e proxy reverso", "hard", "DevOps & Cloud"),
    ("Terraform", "Infrastructure as Code", "hard", "DevOps & Cloud"),
    # Testing
    ("Jest", "Framework de testes JavaScript", "hard", "Testing"),
    ("Unit Testing", "Testes de unidades de código", "hard", "Testing"),
    ("Integration Testing", "Testes de integração entre componentes", "hard", "Testing"),
    ("E2E Testing", "Testes end-to-end de aplicações", "hard", "Testing"),
    ("TDD", "Test-Driven Development", "hard", "Testing"),
    # Soft Skills
    ("Comunicação", "Capacidade de expressar ideias claramente", "soft", "Communication"),
    ("Trabalho em Equipe", "Colaboração efetiva com colegas", "soft", "Teamwork"),
    ("Resolução de Problemas", "Análise e solução de desafios", "soft", "Problem Solving"),
    ("Pensamento Crítico", "Avaliação lógica e objetiva", "soft", "Critical Thinking"),
    ("Adaptabilidade", "Flexibilidade a mudanças", "soft", "Adaptability"),
    ("Gestão de Tempo", "Organização e priorização de tarefas", "soft", "Time Management"),
    ("Liderança", "Influência e orientação de equipes", "soft", "Leadership"),
    ("Criatividade", "Geração de ideias inovadoras", "soft", "Creativity"),
    ("Aprendizado Contínuo", "Busca constante por conhecimento", "soft", "Learning"),
    ("Inteligência Emocional", "Gestão de emoções próprias e alheias", "soft", "Emotional Intelligence"),
]


def skill_slug(name: str) -> str:
    """Stable catalog id derived from a skill name, e.g. ``Node.js`` -> ``skill-node-js``."""
    ascii_name = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode()
    slug = re.sub(r"[^a-z0-9]+", "-", ascii_name.lower()).strip("-")
    return f"skill-{slug}"


async def seed_skill_catalog(db: AsyncSession) -> int:
    """Insert the default catalog when the skills table is empty.

    Returns:
        Number of skills inserted

    Note: This function commits the transaction.
    """
    count = await db.scalar(select(func.count()).select_from(Skill))
    if count:
        return 0

    for name, description, skill_type, category in DEFAULT_SKILL_CATALOG:
        db.add(
            Skill(
                id=skill_slug(name),
                name=name,
                description=description,
                type=skill_type,
                category=category,
            )
        )
    await db.commit()

    logger.info("Skill catalog seeded", skills=len(DEFAULT_SKILL_CATALOG))
    return len(DEFAULT_SKILL_CATALOG)
