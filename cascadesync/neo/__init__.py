"""Neo4j knowledge graph of model-to-model FK relationships."""

from .knowledge_graph import (
    GraphUpdateResult,
    KnowledgeGraphUpdater,
    Neo4jGraphStore,
    RelationshipEdge,
)

__all__ = [
    "GraphUpdateResult",
    "KnowledgeGraphUpdater",
    "Neo4jGraphStore",
    "RelationshipEdge",
]
