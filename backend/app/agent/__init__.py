"""LangGraph Agent modules."""

from app.agent.graph import create_synthesis_graph, get_graph, run_synthesis

__all__ = ["create_synthesis_graph", "get_graph", "run_synthesis"]
