"""FK target discovery: which records of which models a record set points at."""

from typing import Any, Dict, Iterable, Mapping, Protocol, Sequence, Set

from cascadesync.schema.models import SchemaField
from cascadesync.shared.observability import get_logger

from .fk import extract_fk_value

logger = get_logger(__name__)


class FkFieldSource(Protocol):
    def get_fk_fields(self, model_name: str) -> Sequence[SchemaField]: ...


class FkTargetCollector:
    """
    Collects, per target model, the distinct FK ids referenced by a record set.

    An empty result means there is nothing to cascade into.
    """

    def __init__(self, registry: FkFieldSource):
        self.registry = registry

    def collect(
        self, records: Iterable[Mapping[str, Any]], model_name: str
    ) -> Dict[str, Set[int]]:
        fk_fields = self.registry.get_fk_fields(model_name)
        targets: Dict[str, Set[int]] = {}
        if not fk_fields:
            return targets

        records = list(records)
        for fk_field in fk_fields:
            target_model = fk_field.fk_location_model
            if not target_model:
                continue

            ids = set()
            for record in records:
                fk = extract_fk_value(record, fk_field)
                if fk.resolved:
                    ids.add(fk.fk_id)

            if ids:
                targets.setdefault(target_model, set()).update(ids)

        if targets:
            logger.info(
                "FK targets collected",
                model_name=model_name,
                targets={name: len(ids) for name, ids in targets.items()},
            )
        return targets
