"""LangGraph cascade workflow for rejected questions."""

# Note: workflow is not imported here to keep the store import chain light.
# Import it directly: from learnloop.graph.workflow import run_cascade

from .state import AncestorOutcome, CascadeState, create_initial_state

__all__ = [
    "AncestorOutcome",
    "CascadeState",
    "create_initial_state",
]
