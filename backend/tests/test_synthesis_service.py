"""Tests for synthesis_service: the complete-roadmap pipeline end to end."""

import json

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from structlog.testing import capture_logs

from app.core.errors import InputValidationError, RoadmapSynthesisError
from app.models import Roadmap, RoadmapSkill, SkillResource
from app.services import synthesis_service
from tests.conftest import ScriptedGenerator

ORDERING_RESPONSE = json.dumps(
    {
        "titulo": "Rumo ao Backend",
        "skills": [
            {"name": "Git", "description": "Versionamento", "estimated_hours": "10", "prerequisites": []},
            {"name": "SQL", "description": "Dados", "estimated_hours": 15, "prerequisites": ["Git"]},
            {"name": "Quantum Node.js", "description": "?", "prerequisites": []},
            {
                "name": "node.js",
                "description": "Runtime",
                "prerequisites": ["SQL", "Git", "Docker", "Node.js"],
            },
        ],
    }
)

ENRICHMENT_RESPONSE = json.dumps(
    {
        "skills_data": [
            {
                "skill_name": "Git",
                "resources": [
                    {
                        "title": "Pro Git",
                        "url": "https://git-scm.com/book",
                        "type": "documentação",
                        "platform": "git-scm",
                        "is_free": True,
                    },
                    {"title": "Pro Git", "url": "https://git-scm.com/book", "type": "livro"},
                ],
                "milestones": [
                    {"level": 3, "title": "Primeiros commits", "objectives": ["commit"]},
                    {"title": "Branches", "objectives": "merge"},
                ],
            },
            {
                "skill_name": "sql",
                "resources": [{"title": "", "url": "https://example.com"}],
                "milestones": [],
            },
        ]
    }
)


async def _links(db: AsyncSession, roadmap_id: str) -> list[RoadmapSkill]:
    result = await db.execute(
        select(RoadmapSkill).where(RoadmapSkill.roadmap_id == roadmap_id).order_by(RoadmapSkill.order)
    )
    return list(result.scalars().all())


async def _count(db: AsyncSession, model: type) -> int:
    return await db.scalar(select(func.count()).select_from(model))  # type: ignore[return-value]


class TestWithoutGenerator:
    """No AI credential: selection stored as-is."""

    @pytest.mark.asyncio
    async def test_basic_roadmap_in_caller_order(self, test_session: AsyncSession):
        with capture_logs() as logs:
            roadmap = await synthesis_service.generate_complete_roadmap(
                test_session,
                None,
                user_id=1,
                career_goal="Backend Engineer",
                experience="beginner",
                selected_skill_ids=["skill-node", "skill-sql"],
            )

        assert roadmap.title == "Trilha: Backend Engineer"
        assert roadmap.percentual_progress == 0
        assert [link.skill_id for link in roadmap.skills] == ["skill-node", "skill-sql"]
        assert [link.order for link in roadmap.skills] == [1, 2]
        for link in roadmap.skills:
            assert link.milestones == []
            assert link.resources == []
            assert link.prerequisites == []
        assert any(log["event"] == "Text generator not configured, creating basic roadmap" for log in logs)

    @pytest.mark.asyncio
    async def test_unknown_and_repeated_ids_dropped(self, test_session: AsyncSession):
        roadmap = await synthesis_service.generate_complete_roadmap(
            test_session,
            None,
            user_id=1,
            career_goal="Backend",
            experience="junior",
            selected_skill_ids=["skill-sql", "skill-missing", "skill-node", "skill-sql"],
        )

        assert [link.skill_id for link in roadmap.skills] == ["skill-sql", "skill-node"]


class TestInputValidation:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("career_goal", "experience"),
        [(None, "beginner"), ("Backend", None), ("   ", "beginner")],
    )
    async def test_goal_and_experience_required(
        self, test_session: AsyncSession, career_goal, experience
    ):
        generator = ScriptedGenerator()

        with pytest.raises(InputValidationError, match="obrigatórios"):
            await synthesis_service.generate_complete_roadmap(
                test_session,
                generator,
                user_id=1,
                career_goal=career_goal,
                experience=experience,
                selected_skill_ids=["skill-node"],
            )
        assert generator.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("selected", [None, []])
    async def test_selection_required(self, test_session: AsyncSession, selected):
        with pytest.raises(InputValidationError, match="Pelo menos uma skill"):
            await synthesis_service.generate_complete_roadmap(
                test_session,
                ScriptedGenerator(),
                user_id=1,
                career_goal="Backend",
                experience="beginner",
                selected_skill_ids=selected,
            )

    @pytest.mark.asyncio
    async def test_no_valid_skill(self, test_session: AsyncSession):
        generator = ScriptedGenerator()

        with pytest.raises(InputValidationError, match="Nenhuma skill válida"):
            await synthesis_service.generate_complete_roadmap(
                test_session,
                generator,
                user_id=1,
                career_goal="Backend",
                experience="beginner",
                selected_skill_ids=["skill-missing"],
            )
        assert generator.calls == []
        assert await _count(test_session, Roadmap) == 0


class TestPipeline:
    """Ordering, enrichment and prerequisite resolution with a scripted generator."""

    async def _generate(self, db: AsyncSession, generator: ScriptedGenerator) -> Roadmap:
        return await synthesis_service.generate_complete_roadmap(
            db,
            generator,
            user_id=1,
            career_goal="Backend Engineer",
            experience="beginner",
            selected_skill_ids=["skill-node", "skill-sql", "skill-git"],
        )

    @pytest.mark.asyncio
    async def test_full_roadmap(self, test_session: AsyncSession):
        generator = ScriptedGenerator(ORDERING_RESPONSE, ENRICHMENT_RESPONSE)

        roadmap = await self._generate(test_session, generator)

        assert roadmap.title == "Rumo ao Backend"
        assert len(generator.calls) == 2
        assert all(search for _, search in generator.calls)

        git, sql, node = roadmap.skills
        assert [git.skill_id, sql.skill_id, node.skill_id] == ["skill-git", "skill-sql", "skill-node"]
        assert [git.order, sql.order, node.order] == [1, 2, 3]
        assert git.learning_objectives == "Versionamento"
        assert [git.estimated_hours, sql.estimated_hours, node.estimated_hours] == [10, 15, 20]

        assert [(m["level"], m["title"], m["objectives"]) for m in git.milestones] == [
            (1, "Primeiros commits", ["commit"]),
            (2, "Branches", ["merge"]),
        ]
        assert all(m["completed"] is False for m in git.milestones)
        assert [(r.title, r.type, r.platform, r.is_free) for r in git.resources] == [
            ("Pro Git", "documentation", "git-scm", True)
        ]
        assert sql.resources == []
        assert node.milestones == []
        assert node.resources == []

        assert git.prerequisites == []
        assert sql.prerequisites == [git.id]
        assert node.prerequisites == [sql.id, git.id]

    @pytest.mark.asyncio
    async def test_unknown_generated_name_dropped(self, test_session: AsyncSession):
        generator = ScriptedGenerator(ORDERING_RESPONSE, ENRICHMENT_RESPONSE)

        with capture_logs() as logs:
            roadmap = await self._generate(test_session, generator)

        assert "Quantum Node.js" not in {link.skill.name for link in roadmap.skills}
        assert any(
            log["event"] == "Generated skill not found in catalog"
            and log["name"] == "Quantum Node.js"
            and log["log_level"] == "warning"
            for log in logs
        )

    @pytest.mark.asyncio
    async def test_position_integrity_and_prerequisite_soundness(self, test_session: AsyncSession):
        roadmap = await self._generate(
            test_session, ScriptedGenerator(ORDERING_RESPONSE, ENRICHMENT_RESPONSE)
        )

        links = await _links(test_session, roadmap.id)
        assert {link.order for link in links} == set(range(1, len(links) + 1))
        link_ids = {link.id for link in links}
        for link in links:
            assert link.id not in link.prerequisites
            assert set(link.prerequisites) <= link_ids

    @pytest.mark.asyncio
    async def test_enrichment_failure_degrades(self, test_session: AsyncSession):
        generator = ScriptedGenerator(ORDERING_RESPONSE, "Desculpe, não consegui.", "ainda não")

        with capture_logs() as logs:
            roadmap = await self._generate(test_session, generator)

        assert len(generator.calls) == 3
        assert [link.skill_id for link in roadmap.skills] == ["skill-git", "skill-sql", "skill-node"]
        for link in roadmap.skills:
            assert link.milestones == []
            assert link.resources == []
        # Prerequisites come from the ordering stage and survive
        assert roadmap.skills[1].prerequisites == [roadmap.skills[0].id]
        assert any(log["event"] == "Roadmap persisted without enrichment" for log in logs)

    @pytest.mark.asyncio
    async def test_enrichment_call_error_degrades(self, test_session: AsyncSession):
        generator = ScriptedGenerator(ORDERING_RESPONSE, RuntimeError("timeout"))

        roadmap = await self._generate(test_session, generator)

        assert len(roadmap.skills) == 3
        assert await _count(test_session, SkillResource) == 0

    @pytest.mark.asyncio
    async def test_ordering_repair_roundtrip(self, test_session: AsyncSession):
        broken = ORDERING_RESPONSE[:-2] + ",}"
        generator = ScriptedGenerator(broken, ORDERING_RESPONSE, ENRICHMENT_RESPONSE)

        roadmap = await self._generate(test_session, generator)

        assert len(generator.calls) == 3
        assert generator.calls[1][1] is False
        assert len(roadmap.skills) == 3

    @pytest.mark.asyncio
    async def test_ordering_failure_is_fatal(self, test_session: AsyncSession):
        generator = ScriptedGenerator("nada aqui", "também não")

        with pytest.raises(RoadmapSynthesisError, match="Erro ao gerar roadmap completo"):
            await self._generate(test_session, generator)

        assert await _count(test_session, Roadmap) == 0

    @pytest.mark.asyncio
    async def test_empty_ordering_response_is_fatal(self, test_session: AsyncSession):
        with pytest.raises(RoadmapSynthesisError):
            await self._generate(test_session, ScriptedGenerator("   "))

    @pytest.mark.asyncio
    async def test_no_matching_names_is_fatal(self, test_session: AsyncSession):
        response = json.dumps({"titulo": "X", "skills": [{"name": "Cobol"}, {"name": "Fortran"}]})

        with pytest.raises(RoadmapSynthesisError):
            await self._generate(test_session, ScriptedGenerator(response))

        assert await _count(test_session, RoadmapSkill) == 0


class TestSuggestions:
    @pytest.mark.asyncio
    async def test_fallback_without_generator(self, test_session: AsyncSession):
        result = await synthesis_service.suggest_roadmap_skills(
            test_session, None, career_goal="Backend", experience="beginner"
        )

        assert result["title"] == "Trilha: Backend"
        assert [s.skill_id for s in result["suggestions"]] == [
            "skill-node",
            "skill-sql",
            "skill-docker",
            "skill-git",
            "skill-comm",
        ]
        assert all(s.reason == synthesis_service.FALLBACK_SUGGESTION_REASON for s in result["suggestions"])

    @pytest.mark.asyncio
    async def test_generated_suggestions_reconciled(self, test_session: AsyncSession):
        response = json.dumps(
            {"skills": [{"name": "sql", "reason": "Base de dados"}, {"name": "Rust", "reason": "?"}]}
        )

        result = await synthesis_service.suggest_roadmap_skills(
            test_session, ScriptedGenerator(response), career_goal="Backend", experience="beginner"
        )

        assert [(s.skill_id, s.name, s.reason) for s in result["suggestions"]] == [
            ("skill-sql", "SQL", "Base de dados")
        ]

    @pytest.mark.asyncio
    async def test_generator_failure(self, test_session: AsyncSession):
        with pytest.raises(RoadmapSynthesisError, match="sugestões"):
            await synthesis_service.suggest_roadmap_skills(
                test_session,
                ScriptedGenerator(RuntimeError("boom")),
                career_goal="Backend",
                experience="beginner",
            )

    @pytest.mark.asyncio
    async def test_goal_required(self, test_session: AsyncSession):
        with pytest.raises(InputValidationError):
            await synthesis_service.suggest_roadmap_skills(
                test_session, None, career_goal="", experience="beginner"
            )


class TestManualRoadmap:
    @pytest.mark.asyncio
    async def test_create(self, test_session: AsyncSession):
        roadmap = await synthesis_service.create_manual_roadmap(
            test_session,
            user_id=1,
            title="Meu plano",
            career_goal="DevOps",
            experience="mid",
            skill_ids=["skill-docker", "skill-git"],
        )

        assert roadmap.title == "Meu plano"
        assert [(link.skill_id, link.order) for link in roadmap.skills] == [
            ("skill-docker", 1),
            ("skill-git", 2),
        ]

    @pytest.mark.asyncio
    async def test_title_required(self, test_session: AsyncSession):
        with pytest.raises(InputValidationError):
            await synthesis_service.create_manual_roadmap(
                test_session,
                user_id=1,
                title=None,
                career_goal="DevOps",
                experience="mid",
                skill_ids=["skill-git"],
            )
