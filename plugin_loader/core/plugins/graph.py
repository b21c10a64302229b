from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, List, Mapping, Tuple

from plugin_loader.core.errors import CyclicEntityDependency, EntityInitError
from plugin_loader.core.schema.models import SchemaDefinition

log = logging.getLogger("plugin_loader.graph")


@dataclass(frozen=True)
class EntityGraphNode:
    name: str
    schema_def: Any
    references: FrozenSet[str]


def schema_name(schema_def: Any, default: str) -> str:
    if isinstance(schema_def, SchemaDefinition):
        return schema_def.name
    if isinstance(schema_def, Mapping) and isinstance(schema_def.get("name"), str):
        return schema_def["name"]
    return default


def _foreign_references(schema_def: Any) -> List[str]:
    if isinstance(schema_def, SchemaDefinition):
        return schema_def.foreign_references()

    refs: List[str] = []
    fields = schema_def.get("fields") if isinstance(schema_def, Mapping) else None
    for entry in fields or []:
        if not isinstance(entry, Mapping):
            continue
        for fdata in entry.values():
            if isinstance(fdata, Mapping) and fdata.get("type") == "foreign":
                ref = fdata.get("reference")
                if isinstance(ref, str):
                    refs.append(ref)
    return refs


def _has_fields(schema_def: Any) -> bool:
    if isinstance(schema_def, SchemaDefinition):
        return True
    return isinstance(schema_def, Mapping) and bool(schema_def.get("fields"))


class EntityDependencyGraph:
    """
    Foreign-key graph of one plugin's entities.

    Entities are visited over a baseline sorted by name (descending). From each
    one the walk follows the entities that reference it, and a node is put in
    front of the result once everything pointing at it is placed. Entities with
    no relative constraint therefore come out in ascending name order, and every
    entity follows the entities it references.
    """

    def __init__(self):
        self.nodes: Dict[str, EntityGraphNode] = {}

    def add_node(self, node: EntityGraphNode) -> None:
        if node.name in self.nodes:
            raise EntityInitError(f"entity '{node.name}' is declared twice")
        self.nodes[node.name] = node

    def neighbors(self, node: EntityGraphNode) -> List[EntityGraphNode]:
        out: List[EntityGraphNode] = []
        for ref in sorted(node.references):
            if ref == node.name:
                # self references (parent/child trees) never block loading
                continue
            neighbor = self.nodes.get(ref)
            if neighbor is None:
                # points outside this batch; resolved (or rejected) at construction
                log.debug("entity %s references %s outside the batch", node.name, ref)
                continue
            out.append(neighbor)
        return out

    def topological_sort(self) -> List[EntityGraphNode]:
        baseline = sorted(self.nodes.values(), key=lambda n: n.name, reverse=True)

        referenced_by: Dict[str, List[EntityGraphNode]] = {}
        for node in baseline:
            for target in self.neighbors(node):
                referenced_by.setdefault(target.name, []).append(node)

        done: Dict[str, bool] = {}
        visiting: List[str] = []
        order: List[EntityGraphNode] = []

        def visit(node: EntityGraphNode) -> None:
            if done.get(node.name):
                return
            if node.name in visiting:
                # walked against the references; report the cycle along them
                cycle = visiting[visiting.index(node.name):] + [node.name]
                raise CyclicEntityDependency(list(reversed(cycle)))

            visiting.append(node.name)
            for dependent in referenced_by.get(node.name, []):
                visit(dependent)
            visiting.pop()

            done[node.name] = True
            order.insert(0, node)

        for node in baseline:
            visit(node)

        return order


def order_entity_schemas(daos_schemas: Mapping[str, Any]) -> List[Tuple[str, Any]]:
    """
    Order a hash of entity schemas (old ``daos`` syntax) so that if entity B
    has a foreign key to A, B comes after A.

    Returns ``(name, schema_def)`` pairs; an entry without a ``name`` is known
    by its hash key.
    """
    graph = EntityDependencyGraph()
    for key, schema_def in daos_schemas.items():
        # old migration lists shared the "tables" key with entity schemas
        if key == "tables" and not _has_fields(schema_def):
            continue
        graph.add_node(
            EntityGraphNode(
                name=schema_name(schema_def, str(key)),
                schema_def=schema_def,
                references=frozenset(_foreign_references(schema_def)),
            )
        )

    return [(node.name, node.schema_def) for node in graph.topological_sort()]


def sort_entity_schemas_topologically(daos_schemas: Mapping[str, Any]) -> List[Any]:
    return [schema_def for _, schema_def in order_entity_schemas(daos_schemas)]
