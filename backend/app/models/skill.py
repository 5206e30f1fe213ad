"""Skill catalog model."""

import uuid

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class Skill(Base):
    """Reference row of the skill catalog. Seeded, never mutated by requests."""

    __tablename__ = "skills"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String, unique=True)
    description: Mapped[str] = mapped_column(Text, default="")

    # Classification
    type: Mapped[str] = mapped_column(String)  # hard, soft
    category: Mapped[str | None] = mapped_column(String)
