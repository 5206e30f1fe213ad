"""API tests for the roadmap and skill routes."""

import json

import pytest
from httpx import AsyncClient

from app.schemas.skill import SkillCatalogEntry
from app.services import skill_service
from tests.conftest import ScriptedGenerator
from tests.test_synthesis_service import ENRICHMENT_RESPONSE, ORDERING_RESPONSE

GENERATE_BODY = {
    "career_goal": "Backend Engineer",
    "experience": "beginner",
    "selected_skill_ids": ["skill-node", "skill-sql"],
}


async def _create(client: AsyncClient) -> dict:
    response = await client.post("/api/roadmaps/generate-complete", json=GENERATE_BODY)
    assert response.status_code == 201
    return response.json()["data"]["roadmap"]


class TestGenerateComplete:
    @pytest.mark.asyncio
    async def test_without_generator(self, client: AsyncClient):
        response = await client.post("/api/roadmaps/generate-complete", json=GENERATE_BODY)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        roadmap = body["data"]["roadmap"]
        assert roadmap["userId"] == 1
        assert roadmap["careerGoal"] == "Backend Engineer"
        assert roadmap["percentualProgress"] == 0
        assert "creationDate" in roadmap
        assert [(s["skill_id"], s["order"]) for s in roadmap["skills"]] == [
            ("skill-node", 1),
            ("skill-sql", 2),
        ]
        skill = roadmap["skills"][0]
        assert skill["name"] == "Node.js"
        assert skill["milestones"] == []
        assert skill["resources"] == []
        assert skill["prerequisites"] == []
        assert skill["is_concluded"] is False
        assert skill["conclusion_date"] is None

    @pytest.mark.asyncio
    async def test_with_generator(self, client: AsyncClient, generator_override: dict):
        generator_override["generator"] = ScriptedGenerator(ORDERING_RESPONSE, ENRICHMENT_RESPONSE)

        response = await client.post(
            "/api/roadmaps/generate-complete",
            json={**GENERATE_BODY, "selected_skill_ids": ["skill-node", "skill-sql", "skill-git"]},
        )

        assert response.status_code == 201
        roadmap = response.json()["data"]["roadmap"]
        assert roadmap["title"] == "Rumo ao Backend"
        git, sql, node = roadmap["skills"]
        assert git["resources"][0]["type"] == "documentation"
        assert git["milestones"][0]["level"] == 1
        assert node["prerequisites"] == [sql["id"], git["id"]]

    @pytest.mark.asyncio
    async def test_missing_goal(self, client: AsyncClient):
        response = await client.post(
            "/api/roadmaps/generate-complete",
            json={"experience": "beginner", "selected_skill_ids": ["skill-node"]},
        )

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "Meta de carreira e nível de experiência são obrigatórios",
        }

    @pytest.mark.asyncio
    async def test_no_valid_skill(self, client: AsyncClient):
        response = await client.post(
            "/api/roadmaps/generate-complete",
            json={**GENERATE_BODY, "selected_skill_ids": ["skill-missing"]},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Nenhuma skill válida foi selecionada"

    @pytest.mark.asyncio
    async def test_malformed_body(self, client: AsyncClient):
        response = await client.post(
            "/api/roadmaps/generate-complete",
            json={**GENERATE_BODY, "selected_skill_ids": "skill-node"},
        )

        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_ordering_failure(self, client: AsyncClient, generator_override: dict):
        generator_override["generator"] = ScriptedGenerator("sem json", "continua sem json")

        response = await client.post("/api/roadmaps/generate-complete", json=GENERATE_BODY)

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Erro ao gerar roadmap completo"}

    @pytest.mark.asyncio
    async def test_persistence_failure(self, client: AsyncClient, monkeypatch: pytest.MonkeyPatch):
        # A catalog entry with no row behind it makes the link insert fail
        async def snapshot_with_missing_row(db, skill_ids=None):  # type: ignore[no-untyped-def]
            return [SkillCatalogEntry(id="skill-ghost", name="Ghost", type="hard")]

        monkeypatch.setattr(skill_service, "get_catalog_snapshot", snapshot_with_missing_row)

        response = await client.post("/api/roadmaps/generate-complete", json=GENERATE_BODY)

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Erro ao salvar roadmap"}

        response = await client.get("/api/roadmaps/user/1")
        assert response.json()["data"]["roadmaps"] == []


class TestSuggestions:
    @pytest.mark.asyncio
    async def test_fallback(self, client: AsyncClient):
        response = await client.post(
            "/api/roadmaps/generate", json={"career_goal": "Backend", "experience": "beginner"}
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["title"] == "Trilha: Backend"
        assert data["suggestions"][0]["skill_id"] == "skill-node"

    @pytest.mark.asyncio
    async def test_generated(self, client: AsyncClient, generator_override: dict):
        generator_override["generator"] = ScriptedGenerator(
            json.dumps({"skills": [{"name": "Git", "reason": "Versionamento"}]})
        )

        response = await client.post(
            "/api/roadmaps/generate", json={"career_goal": "Backend", "experience": "beginner"}
        )

        assert response.json()["data"]["suggestions"] == [
            {
                "skill_id": "skill-git",
                "name": "Git",
                "type": "hard",
                "category": "DevOps",
                "reason": "Versionamento",
            }
        ]


class TestReadAndProgress:
    @pytest.mark.asyncio
    async def test_get_roadmap(self, client: AsyncClient):
        created = await _create(client)

        response = await client.get(f"/api/roadmaps/{created['id']}")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["roadmap"]["id"] == created["id"]
        assert len(data["skills"]) == 2

    @pytest.mark.asyncio
    async def test_get_missing_roadmap(self, client: AsyncClient):
        response = await client.get("/api/roadmaps/missing")

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Roadmap não encontrado"}

    @pytest.mark.asyncio
    async def test_other_user_forbidden(self, client: AsyncClient):
        created = await _create(client)

        response = await client.get(f"/api/roadmaps/{created['id']}", headers={"X-User-Id": "2"})

        assert response.status_code == 403
        assert response.json()["error"] == "Acesso negado"

    @pytest.mark.asyncio
    async def test_list_user_roadmaps(self, client: AsyncClient):
        created = await _create(client)

        response = await client.get("/api/roadmaps/user/1")
        assert [r["id"] for r in response.json()["data"]["roadmaps"]] == [created["id"]]

        response = await client.get("/api/roadmaps/user/2")
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_skills_with_named_prerequisites(self, client: AsyncClient):
        created = await _create(client)

        response = await client.get(f"/api/roadmaps/{created['id']}/skills")

        skills = response.json()["data"]["skills"]
        assert [s["skill"]["name"] for s in skills] == ["Node.js", "SQL"]
        assert all(s["status"] == "pendente" for s in skills)

    @pytest.mark.asyncio
    async def test_toggle_skill(self, client: AsyncClient):
        created = await _create(client)
        link_id = created["skills"][0]["id"]

        response = await client.put(f"/api/roadmaps/{created['id']}/skills/{link_id}")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["roadmapSkill"]["status"] == "concluido"
        assert data["percentualProgress"] == 50

    @pytest.mark.asyncio
    async def test_toggle_unknown_skill(self, client: AsyncClient):
        created = await _create(client)

        response = await client.put(f"/api/roadmaps/{created['id']}/skills/missing")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_milestone_validation(self, client: AsyncClient):
        created = await _create(client)
        link_id = created["skills"][0]["id"]
        base = f"/api/roadmaps/{created['id']}/skills/{link_id}/milestones"

        response = await client.put(f"{base}/1", json={"completed": "yes"})
        assert response.status_code == 400
        assert response.json()["error"] == 'O campo "completed" deve ser um booleano'

        response = await client.put(f"{base}/abc", json={"completed": True})
        assert response.status_code == 400
        assert response.json()["error"] == "Nível do milestone inválido"

        # Roadmaps built without a generator carry no milestones
        response = await client.put(f"{base}/1", json={"completed": True})
        assert response.status_code == 404


class TestManualAndDelete:
    @pytest.mark.asyncio
    async def test_manual_create(self, client: AsyncClient):
        response = await client.post(
            "/api/roadmaps",
            json={
                "title": "Meu plano",
                "career_goal": "DevOps",
                "experience": "mid",
                "skills": ["skill-docker"],
            },
        )

        assert response.status_code == 201
        assert response.json()["data"]["title"] == "Meu plano"

    @pytest.mark.asyncio
    async def test_delete(self, client: AsyncClient):
        created = await _create(client)

        response = await client.delete(f"/api/roadmaps/{created['id']}")
        assert response.json() == {"success": True, "message": "Roadmap deletado com sucesso"}

        response = await client.get(f"/api/roadmaps/{created['id']}")
        assert response.status_code == 404


class TestSkills:
    @pytest.mark.asyncio
    async def test_list(self, client: AsyncClient):
        response = await client.get("/api/skills")

        assert response.status_code == 200
        assert len(response.json()["data"]) == 5

    @pytest.mark.asyncio
    async def test_get(self, client: AsyncClient):
        response = await client.get("/api/skills/skill-sql")
        assert response.json()["data"]["name"] == "SQL"

        response = await client.get("/api/skills/missing")
        assert response.status_code == 404
        assert response.json()["error"] == "Skill não encontrada"
