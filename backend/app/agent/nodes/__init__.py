"""Agent nodes."""

from app.agent.nodes.enrich import enrich_skills_node
from app.agent.nodes.order import order_skills_node
from app.agent.nodes.prerequisites import resolve_prerequisites_node
from app.agent.nodes.suggest import suggest_skills

__all__ = [
    "order_skills_node",
    "enrich_skills_node",
    "resolve_prerequisites_node",
    "suggest_skills",
]
