"""NetworkX graph over task blocking relationships."""

from kanbanctl.infrastructure.graph.engine import BlockingGraph

__all__ = ["BlockingGraph"]
