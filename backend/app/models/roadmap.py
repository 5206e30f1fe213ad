"""Roadmap models: roadmap, its ordered skill links and their resources."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base
from app.models.skill import Skill


def _uuid() -> str:
    return str(uuid.uuid4())


class Roadmap(Base):
    __tablename__ = "roadmaps"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"))

    title: Mapped[str] = mapped_column(String)
    career_goal: Mapped[str] = mapped_column(Text)
    experience: Mapped[str] = mapped_column(String)
    percentual_progress: Mapped[float] = mapped_column(Float, default=0.0)

    creation_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(UTC))

    skills: Mapped[list["RoadmapSkill"]] = relationship(
        back_populates="roadmap",
        cascade="all, delete-orphan",
        order_by="RoadmapSkill.order",
    )


class RoadmapSkill(Base):
    """Link between a roadmap and a catalog skill, with progress metadata."""

    __tablename__ = "roadmap_skills"
    __table_args__ = (
        UniqueConstraint("roadmap_id", "order", name="unique_roadmap_skill_order"),
        UniqueConstraint("roadmap_id", "skill_id", name="unique_roadmap_skill"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)
    roadmap_id: Mapped[str] = mapped_column(ForeignKey("roadmaps.id", ondelete="CASCADE"))
    skill_id: Mapped[str] = mapped_column(ForeignKey("skills.id"))

    # Ordering and progress
    order: Mapped[int] = mapped_column(Integer)  # 1-based position in the roadmap
    is_concluded: Mapped[bool] = mapped_column(Boolean, default=False)
    conclusion_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)

    # Generated content
    learning_objectives: Mapped[str] = mapped_column(Text, default="")
    estimated_hours: Mapped[int | None] = mapped_column(Integer, default=None)
    milestones: Mapped[list[dict[str, object]]] = mapped_column(JSON, default=list)
    prerequisites: Mapped[list[str]] = mapped_column(JSON, default=list)  # link ids, same roadmap

    roadmap: Mapped[Roadmap] = relationship(back_populates="skills")
    skill: Mapped[Skill] = relationship(lazy="joined")
    resources: Mapped[list["SkillResource"]] = relationship(
        back_populates="roadmap_skill",
        cascade="all, delete-orphan",
        order_by="SkillResource.date_added",
    )


class SkillResource(Base):
    """Learning resource attached to a roadmap skill link."""

    __tablename__ = "skill_resources"
    __table_args__ = (
        UniqueConstraint("roadmap_skill_id", "title", "url", name="unique_skill_resource"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)
    roadmap_skill_id: Mapped[str] = mapped_column(
        ForeignKey("roadmap_skills.id", ondelete="CASCADE")
    )

    type: Mapped[str] = mapped_column(String)  # course, article, video, documentation, ...
    title: Mapped[str] = mapped_column(String)
    url: Mapped[str] = mapped_column(String)
    platform: Mapped[str | None] = mapped_column(String, default=None)
    is_free: Mapped[bool] = mapped_column(Boolean, default=True)

    date_added: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(UTC))

    roadmap_skill: Mapped[RoadmapSkill] = relationship(back_populates="resources")
