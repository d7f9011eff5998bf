"""Re-key an exported project for import into a new destination.

Every slot and node gets a freshly generated id; all cross references are
rewritten through the old -> new maps. Structural problems in the source
(cycles, dangling edges, unresolved parents or slots) degrade silently;
only an unsupported version or an empty title abort the import.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from boardtask.core.errors import ImportValidationError
from boardtask.core.graph.ordering import topological_order
from boardtask.core.model import Edge, Node, ProjectExport, ProjectGraph, Slot
from boardtask.core.validate.validate_export import check_importable

logger = logging.getLogger(__name__)

IdGenerator = Callable[[], str]


@dataclass(frozen=True)
class ImportResult:
    title: str
    slot_id_map: dict[str, str]
    node_id_map: dict[str, str]
    slots: list[Slot]
    nodes: list[Node]  # insertion order: parents before children
    edges: list[Edge]
    dropped_edges: int = 0

    def to_graph(self) -> ProjectGraph:
        return ProjectGraph(
            title=self.title,
            slots=list(self.slots),
            nodes=list(self.nodes),
            edges=list(self.edges),
        )


def reimport(export: ProjectExport, id_generator: IdGenerator) -> ImportResult:
    errors = check_importable(export)
    if errors:
        first = errors[0]
        raise ImportValidationError(code=first.code, message=first.message, path=first.path)

    slot_id_map: dict[str, str] = {}
    slots: list[Slot] = []
    for s in export.slots:
        new_id = id_generator()
        slot_id_map[s.id] = new_id
        slots.append(Slot(id=new_id, name=s.name, sort_order=s.sort_order))

    # Group parents must be mapped before their members, so grouping links take
    # part in the ordering alongside dependency edges.
    ordering_edges = list(export.edges) + [
        Edge(parent_id=n.parent_id, child_id=n.id)
        for n in export.nodes
        if n.parent_id and n.parent_id.strip()
    ]

    node_id_map: dict[str, str] = {}
    nodes: list[Node] = []
    for i in topological_order(export.nodes, ordering_edges):
        n = export.nodes[i]
        new_id = id_generator()

        # References resolve only against nodes placed before this one.
        slot_id = slot_id_map.get(n.slot_id) if n.slot_id is not None else None
        parent_id = node_id_map.get(n.parent_id) if n.parent_id is not None else None
        if n.parent_id is not None and parent_id is None:
            logger.warning("import: node %s has unresolved group parent %s; dropping", n.id, n.parent_id)

        # First occurrence of a duplicated id keeps the mapping.
        node_id_map.setdefault(n.id, new_id)

        nodes.append(
            Node(
                id=new_id,
                node_type_id=n.node_type_id,
                status_id=n.status_id,
                title=n.title,
                description=n.description,
                estimated_minutes=n.estimated_minutes,
                slot_id=slot_id,
                parent_id=parent_id,
                assigned_user_id=None,
            )
        )

    edges: list[Edge] = []
    seen: set[Edge] = set()
    dropped = 0
    for e in export.edges:
        new_parent = node_id_map.get(e.parent_id)
        new_child = node_id_map.get(e.child_id)
        if new_parent is None or new_child is None:
            dropped += 1
            continue
        edge = Edge(parent_id=new_parent, child_id=new_child)
        if edge in seen:
            continue
        seen.add(edge)
        edges.append(edge)

    if dropped:
        logger.warning("import: dropped %d dangling edge(s)", dropped)

    return ImportResult(
        title=export.title.strip(),
        slot_id_map=slot_id_map,
        node_id_map=node_id_map,
        slots=slots,
        nodes=nodes,
        edges=edges,
        dropped_edges=dropped,
    )
