"""Shared fixtures: in-memory database, seeded catalog, scripted generator."""

from collections.abc import AsyncGenerator, Sequence

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from langchain_core.messages import BaseMessage
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db, get_generator
from app.core.database import Base
from app.main import app
from app.models import Skill, User

CATALOG = [
    ("skill-node", "Node.js", "hard", "Backend"),
    ("skill-sql", "SQL", "hard", "Database"),
    ("skill-git", "Git", "hard", "DevOps"),
    ("skill-docker", "Docker", "hard", "DevOps"),
    ("skill-comm", "Comunicação", "soft", "Communication"),
]


class ScriptedGenerator:
    """TextGenerator fake that replays canned responses in order.

    An ``Exception`` instance in the script is raised instead of returned.
    Every call is recorded in ``calls`` as ``(messages, search_augmentation)``.
    """

    def __init__(self, *responses: str | Exception) -> None:
        self._responses = list(responses)
        self.calls: list[tuple[list[BaseMessage], bool]] = []

    async def generate(
        self,
        messages: Sequence[BaseMessage],
        *,
        search_augmentation: bool = False,
    ) -> str:
        self.calls.append((list(messages), search_augmentation))
        if not self._responses:
            raise AssertionError("ScriptedGenerator ran out of responses")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest_asyncio.fixture
async def test_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database with the guest user and a small catalog."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
    async with session_factory() as session:
        session.add(User(id=1, name="guest"))
        session.add(User(id=2, name="other"))
        for skill_id, name, skill_type, category in CATALOG:
            session.add(
                Skill(
                    id=skill_id,
                    name=name,
                    description=f"{name} description",
                    type=skill_type,
                    category=category,
                )
            )
        await session.commit()

        yield session

    await engine.dispose()


@pytest_asyncio.fixture
async def generator_override() -> dict:
    """Holder for the generator the API should use; None means no credential."""
    return {"generator": None}


@pytest_asyncio.fixture
async def client(
    test_session: AsyncSession, generator_override: dict
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app, with database and generator overridden."""

    async def _get_db() -> AsyncGenerator[AsyncSession, None]:
        yield test_session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_generator] = lambda: generator_override["generator"]

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
