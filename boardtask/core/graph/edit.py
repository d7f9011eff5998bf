"""Editing operations over a ProjectGraph.

Every operation returns a new graph and leaves its input untouched, so a caller
can apply several edits and persist the final value in one write.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

from boardtask.core.errors import GraphError
from boardtask.core.model import Edge, Node, ProjectGraph, Slot

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = {
    "status_id",
    "node_type_id",
    "title",
    "description",
    "estimated_minutes",
    "slot_id",
    "parent_id",
    "assigned_user_id",
}


def add_node(graph: ProjectGraph, node: Node) -> ProjectGraph:
    if node.id in graph.node_ids():
        raise GraphError(code="E_DUPLICATE_ID", message=f"duplicate node id: {node.id}", path="id")
    _check_references(graph, node)
    return replace(graph, nodes=list(graph.nodes) + [node])


def update_node(graph: ProjectGraph, node_id: str, **fields: Any) -> ProjectGraph:
    unknown = sorted(set(fields) - _UPDATABLE_FIELDS)
    if unknown:
        raise GraphError(
            code="E_UNKNOWN_FIELD",
            message=f"cannot update field(s): {', '.join(unknown)}",
            path=unknown[0],
        )

    current = _require_node(graph, node_id, "id")
    try:
        updated = replace(current, **fields)
    except ValueError as e:
        raise GraphError(code="E_INVALID_NODE", message=str(e), path=node_id) from e

    if updated.parent_id == node_id:
        raise GraphError(code="E_INVALID_GROUP", message="node cannot group itself", path="parent_id")
    _check_references(graph, updated)

    return replace(graph, nodes=[updated if n.id == node_id else n for n in graph.nodes])


def delete_node(graph: ProjectGraph, node_id: str) -> ProjectGraph:
    """Remove a node, every edge touching it, and its role as a group parent."""
    _require_node(graph, node_id, "id")

    nodes: list[Node] = []
    for n in graph.nodes:
        if n.id == node_id:
            continue
        if n.parent_id == node_id:
            n = replace(n, parent_id=None)
        nodes.append(n)

    edges = [e for e in graph.edges if node_id not in (e.parent_id, e.child_id)]
    logger.debug(
        "delete_node %s: removed %d edge(s)", node_id, len(graph.edges) - len(edges)
    )
    return replace(graph, nodes=nodes, edges=edges)


def add_edge(graph: ProjectGraph, parent_id: str, child_id: str) -> ProjectGraph:
    """Add parent -> child. Adding an edge that already exists is a no-op."""
    _require_node(graph, parent_id, "parent_id")
    _require_node(graph, child_id, "child_id")
    if parent_id == child_id:
        raise GraphError(
            code="E_SELF_EDGE",
            message="cannot create edge from node to itself",
            path="child_id",
        )

    edge = Edge(parent_id=parent_id, child_id=child_id)
    if edge in graph.edges:
        return graph
    return replace(graph, edges=list(graph.edges) + [edge])


def delete_edge(graph: ProjectGraph, parent_id: str, child_id: str) -> ProjectGraph:
    edge = Edge(parent_id=parent_id, child_id=child_id)
    if edge not in graph.edges:
        raise GraphError(
            code="E_NOT_FOUND",
            message=f"edge not found: {parent_id} -> {child_id}",
            path="edge",
        )
    return replace(graph, edges=[e for e in graph.edges if e != edge])


def insert_between(graph: ProjectGraph, parent_id: str, child_id: str, node: Node) -> ProjectGraph:
    """Replace parent -> child with parent -> node -> child."""
    if parent_id == child_id:
        raise GraphError(
            code="E_SELF_EDGE",
            message="cannot insert between a self-referential edge",
            path="child_id",
        )
    _require_node(graph, parent_id, "parent_id")
    _require_node(graph, child_id, "child_id")

    g = add_node(graph, node)
    g = delete_edge(g, parent_id, child_id)
    g = add_edge(g, parent_id, node.id)
    return add_edge(g, node.id, child_id)


def add_slot(graph: ProjectGraph, slot: Slot) -> ProjectGraph:
    if slot.id in graph.slot_ids():
        raise GraphError(code="E_DUPLICATE_ID", message=f"duplicate slot id: {slot.id}", path="id")
    if any(s.name == slot.name for s in graph.slots):
        raise GraphError(code="E_DUPLICATE_SLOT_NAME", message="duplicate slot name", path="name")
    return replace(graph, slots=list(graph.slots) + [slot])


def _require_node(graph: ProjectGraph, node_id: str, path: str) -> Node:
    node = graph.find_node(node_id)
    if node is None:
        raise GraphError(code="E_NOT_FOUND", message=f"node not found: {node_id}", path=path)
    return node


def _check_references(graph: ProjectGraph, node: Node) -> None:
    if node.slot_id is not None and node.slot_id not in graph.slot_ids():
        raise GraphError(code="E_INVALID_SLOT", message=f"invalid slot_id: {node.slot_id}", path="slot_id")
    if node.parent_id is not None and node.parent_id not in graph.node_ids():
        raise GraphError(
            code="E_INVALID_GROUP", message=f"invalid group parent: {node.parent_id}", path="parent_id"
        )
