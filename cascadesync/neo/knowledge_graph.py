"""
Knowledge graph of model relationships.

One edge per (source model, FK field), not per record pair:

    (:Model {name: source})-[:FK_RELATION {field_name}]->(:Model {name: target})

Edges carry fan-out statistics of the latest sync (edge_count, unique_targets).
Re-syncing a model overwrites them; nothing accumulates.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Protocol, Sequence

from neo4j import Driver

from cascadesync.ingestion.fk import extract_fk_value
from cascadesync.schema.models import SchemaField
from cascadesync.shared.identity import derive_graph_identity
from cascadesync.shared.observability import get_logger
from cascadesync.shared.observability.metrics import graph_edges_upserted_total

logger = get_logger(__name__)


@dataclass(frozen=True)
class RelationshipEdge:
    """
    Schema-level edge for one (source model, FK field) pair.

    cascade_source is the root model of the sync call that wrote the edge: the
    source model itself for a direct sync, the triggering root model for an
    edge written during a cascaded pass. It is not always source_model.
    """

    edge_id: str
    source_model: str
    source_model_id: int
    field_id: int
    field_name: str
    field_label: str
    field_type: str
    target_model: str
    target_model_id: int
    edge_count: int
    unique_targets: int
    cascade_source: Optional[str] = None

    def to_params(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class GraphUpdateResult:
    edges_created: int = 0


class GraphStore(Protocol):
    def upsert_edge(self, edge: RelationshipEdge) -> None: ...


class Neo4jGraphStore:
    """Relationship edges stored in Neo4j, MERGEd on (source, field, target)."""

    def __init__(self, driver: Driver, relationship_type: str = "FK_RELATION"):
        self.driver = driver
        # Cypher cannot parameterize relationship types
        self.relationship_type = relationship_type

    def _upsert_cypher(self) -> str:
        return f"""
        MERGE (s:Model {{name: $source_model}})
          ON CREATE SET s.model_id = $source_model_id
        MERGE (t:Model {{name: $target_model}})
          ON CREATE SET t.model_id = $target_model_id
        MERGE (s)-[r:{self.relationship_type} {{field_name: $field_name}}]->(t)
        SET r.edge_id = $edge_id,
            r.field_id = $field_id,
            r.field_label = $field_label,
            r.field_type = $field_type,
            r.source_model_id = $source_model_id,
            r.target_model_id = $target_model_id,
            r.edge_count = $edge_count,
            r.unique_targets = $unique_targets,
            r.cascade_source = $cascade_source,
            r.updated_at = datetime()
        RETURN r.edge_id AS edge_id
        """

    def ensure_constraints(self) -> None:
        with self.driver.session() as session:
            session.run(
                "CREATE CONSTRAINT model_name_unique IF NOT EXISTS "
                "FOR (m:Model) REQUIRE m.name IS UNIQUE"
            )

    def upsert_edge(self, edge: RelationshipEdge) -> None:
        with self.driver.session() as session:
            session.run(self._upsert_cypher(), edge.to_params()).consume()


class KnowledgeGraphUpdater:
    """Derives one RelationshipEdge per resolvable many2one field of a model."""

    def __init__(self, graph_store: GraphStore):
        self.graph_store = graph_store

    def update(
        self,
        model_name: str,
        model_id: int,
        records: Sequence[Mapping[str, Any]],
        schema_fields: Iterable[SchemaField],
        cascade_source: Optional[str] = None,
    ) -> GraphUpdateResult:
        result = GraphUpdateResult()

        fk_fields = [
            f
            for f in schema_fields
            if f.is_many2one and f.fk_location_model and f.fk_location_model_id
        ]

        for fk_field in fk_fields:
            target_ids = set()
            for record in records:
                fk = extract_fk_value(record, fk_field)
                if fk.resolved:
                    target_ids.add(fk.fk_id)

            if not target_ids:
                continue

            try:
                edge = RelationshipEdge(
                    edge_id=derive_graph_identity(
                        model_id, fk_field.fk_location_model_id, fk_field.field_id
                    ),
                    source_model=model_name,
                    source_model_id=model_id,
                    field_id=fk_field.field_id,
                    field_name=fk_field.field_name,
                    field_label=fk_field.label,
                    field_type=fk_field.field_type,
                    target_model=fk_field.fk_location_model,
                    target_model_id=fk_field.fk_location_model_id,
                    edge_count=len(records),
                    unique_targets=len(target_ids),
                    cascade_source=cascade_source or model_name,
                )
                self.graph_store.upsert_edge(edge)
            except Exception as exc:
                graph_edges_upserted_total.labels(
                    source_model=model_name, status="error"
                ).inc()
                logger.warning(
                    "Failed to upsert graph edge",
                    model_name=model_name,
                    field_name=fk_field.field_name,
                    error=str(exc),
                )
                continue

            result.edges_created += 1
            graph_edges_upserted_total.labels(
                source_model=model_name, status="success"
            ).inc()
            logger.debug(
                "Graph edge upserted",
                source_model=model_name,
                field_name=fk_field.field_name,
                target_model=fk_field.fk_location_model,
                unique_targets=len(target_ids),
            )

        return result
