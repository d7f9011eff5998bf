from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


EXPORT_VERSION = 1

TODO_STATUS_ID = "01JSTATUS00000000TODO0000"
IN_PROGRESS_STATUS_ID = "01JSTATUS00000000INPROG00"
DONE_STATUS_ID = "01JSTATUS00000000DONE0000"
DEFAULT_STATUS_ID = TODO_STATUS_ID

TASK_NODE_TYPE_ID = "01JNODETYPE00000000TASK000"


def _require_str(value: object, name: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{name} must be a non-empty string")


def _optional_str(value: object, name: str) -> None:
    if value is not None and not isinstance(value, str):
        raise ValueError(f"{name} must be a string or None")


@dataclass(frozen=True)
class Node:
    id: str
    status_id: str = DEFAULT_STATUS_ID
    node_type_id: str = TASK_NODE_TYPE_ID
    title: str = ""
    description: Optional[str] = None
    estimated_minutes: Optional[int] = None
    slot_id: Optional[str] = None
    parent_id: Optional[str] = None  # grouping parent, not a dependency
    assigned_user_id: Optional[str] = None

    def __post_init__(self) -> None:
        _require_str(self.id, "id")
        _require_str(self.status_id, "status_id")
        _require_str(self.node_type_id, "node_type_id")
        if not isinstance(self.title, str):
            raise ValueError("title must be a string")
        _optional_str(self.description, "description")
        _optional_str(self.slot_id, "slot_id")
        _optional_str(self.parent_id, "parent_id")
        _optional_str(self.assigned_user_id, "assigned_user_id")
        est = self.estimated_minutes
        if est is not None and (isinstance(est, bool) or not isinstance(est, int) or est < 0):
            raise ValueError("estimated_minutes must be a non-negative integer")


@dataclass(frozen=True)
class Edge:
    parent_id: str
    child_id: str

    def __post_init__(self) -> None:
        _require_str(self.parent_id, "parent_id")
        _require_str(self.child_id, "child_id")


@dataclass(frozen=True)
class Slot:
    id: str
    name: str
    sort_order: int = 0

    def __post_init__(self) -> None:
        _require_str(self.id, "id")
        _require_str(self.name, "name")
        if isinstance(self.sort_order, bool) or not isinstance(self.sort_order, int):
            raise ValueError("sort_order must be an integer")


@dataclass(frozen=True)
class ProjectGraph:
    """Snapshot of one project's slots, nodes and edges."""

    title: str
    slots: list[Slot] = field(default_factory=list)
    nodes: list[Node] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)

    def node_ids(self) -> set[str]:
        return {n.id for n in self.nodes}

    def slot_ids(self) -> set[str]:
        return {s.id for s in self.slots}

    def find_node(self, node_id: str) -> Optional[Node]:
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None

    def roots(self) -> list[str]:
        children = {e.child_id for e in self.edges}
        return [n.id for n in self.nodes if n.id not in children]


@dataclass(frozen=True)
class ProjectExport:
    version: int
    title: str
    slots: list[Slot] = field(default_factory=list)
    nodes: list[Node] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)
    exported_at: Optional[str] = None

    def to_graph(self) -> ProjectGraph:
        """View the document as a graph, keeping its own ids."""
        return ProjectGraph(
            title=self.title,
            slots=list(self.slots),
            nodes=list(self.nodes),
            edges=list(self.edges),
        )
