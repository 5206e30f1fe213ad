"""LangGraph definition of the roadmap synthesis pipeline."""

from langgraph.graph import END, StateGraph
from langgraph.graph.state import CompiledStateGraph

from app.agent.llm import TextGenerator
from app.agent.nodes import enrich_skills_node, order_skills_node, resolve_prerequisites_node
from app.agent.state import SynthesisState
from app.core.logging import get_logger
from app.schemas.skill import SkillCatalogEntry

logger = get_logger(__name__)


def create_synthesis_graph() -> CompiledStateGraph[SynthesisState]:
    """Create the roadmap synthesis workflow graph.

    Flow:
    1. order_skills - Order and annotate the selected skills (fatal on failure)
    2. enrich_skills - Batch milestones and resources (degrades on failure)
    3. resolve_prerequisites - Prerequisite names to skill ids of this roadmap

    Steps run strictly in sequence: each prompt depends on the previous
    step's reconciled output. Persistence happens outside the graph.
    """

    workflow = StateGraph(SynthesisState)

    # Add nodes
    workflow.add_node("order_skills", order_skills_node)
    workflow.add_node("enrich_skills", enrich_skills_node)
    workflow.add_node("resolve_prerequisites", resolve_prerequisites_node)

    # Set entry point
    workflow.set_entry_point("order_skills")

    # Edges
    workflow.add_edge("order_skills", "enrich_skills")
    workflow.add_edge("enrich_skills", "resolve_prerequisites")
    workflow.add_edge("resolve_prerequisites", END)

    return workflow.compile()  # type: ignore[return-value]


# Global instance
_graph = None


def get_graph() -> CompiledStateGraph[SynthesisState]:
    """Get or create global graph instance."""
    global _graph
    if _graph is None:
        _graph = create_synthesis_graph()
        logger.info("Synthesis graph created")
    return _graph


async def run_synthesis(
    generator: TextGenerator,
    *,
    career_goal: str,
    experience: str,
    selected_skills: list[SkillCatalogEntry],
) -> SynthesisState:
    """Run the pipeline for one request and return its final state."""
    initial: SynthesisState = {
        "career_goal": career_goal,
        "experience": experience,
        "selected_skills": selected_skills,
        "title": None,
        "skills": [],
        "enrichment_failed": False,
    }
    result = await get_graph().ainvoke(
        initial,
        config={"configurable": {"generator": generator}},
    )
    return result  # type: ignore[return-value]
