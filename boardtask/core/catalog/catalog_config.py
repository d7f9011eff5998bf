from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from boardtask.core.model import (
    DONE_STATUS_ID,
    IN_PROGRESS_STATUS_ID,
    TASK_NODE_TYPE_ID,
    TODO_STATUS_ID,
)


@dataclass(frozen=True)
class TaskStatus:
    id: str
    name: str
    sort_order: int


@dataclass(frozen=True)
class NodeType:
    id: str
    name: str
    color: str


DEFAULT_STATUSES: dict[str, TaskStatus] = {
    TODO_STATUS_ID: TaskStatus(id=TODO_STATUS_ID, name="To do", sort_order=0),
    IN_PROGRESS_STATUS_ID: TaskStatus(id=IN_PROGRESS_STATUS_ID, name="In progress", sort_order=1),
    DONE_STATUS_ID: TaskStatus(id=DONE_STATUS_ID, name="Done", sort_order=2),
}

DEFAULT_NODE_TYPES: dict[str, NodeType] = {
    t.id: t
    for t in (
        NodeType(id=TASK_NODE_TYPE_ID, name="Task", color="#3B82F6"),
        NodeType(id="01JNODETYPE00000000BUG0000", name="Bug", color="#EF4444"),
        NodeType(id="01JNODETYPE00000000EPIC000", name="Epic", color="#8B5CF6"),
        NodeType(id="01JNODETYPE00000000MILESTON", name="Milestone", color="#F59E0B"),
        NodeType(id="01JNODETYPE00000000SPIKE00", name="Spike", color="#10B981"),
        NodeType(id="01JNODETYPE00000000STORY00", name="Story", color="#06B6D4"),
    )
}


class CatalogConfigError(ValueError):
    pass


@dataclass(frozen=True)
class Catalog:
    statuses: dict[str, TaskStatus] = field(default_factory=dict)
    node_types: dict[str, NodeType] = field(default_factory=dict)

    def status_name(self, status_id: str) -> str:
        s = self.statuses.get(status_id)
        return s.name if s else status_id

    def ordered_statuses(self) -> list[TaskStatus]:
        return sorted(self.statuses.values(), key=lambda s: (s.sort_order, s.name))


def load_catalog_file(path: str | Path) -> Catalog:
    """Load statuses/node types from a YAML file.

    Format:
      statuses:
        <id>: {name: "...", sort_order: 3}
      node_types:
        <id>: {name: "...", color: "#RRGGBB"}

    Both sections are optional.
    """
    p = Path(path)
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise CatalogConfigError(f"catalog file is not valid YAML: {e}") from e
    if raw is None:
        return Catalog()
    if not isinstance(raw, dict):
        raise CatalogConfigError("catalog file must be a mapping with statuses/node_types")

    unknown = sorted(set(raw) - {"statuses", "node_types"})
    if unknown:
        raise CatalogConfigError(f"unknown catalog section(s): {', '.join(map(str, unknown))}")

    statuses: dict[str, TaskStatus] = {}
    for sid, entry in _section(raw, "statuses").items():
        name = _entry_str(entry, "name", f"status '{sid}'")
        sort_order = entry.get("sort_order", 0)
        if isinstance(sort_order, bool) or not isinstance(sort_order, int):
            raise CatalogConfigError(f"status '{sid}' sort_order must be an integer")
        statuses[sid] = TaskStatus(id=sid, name=name, sort_order=sort_order)

    node_types: dict[str, NodeType] = {}
    for tid, entry in _section(raw, "node_types").items():
        name = _entry_str(entry, "name", f"node type '{tid}'")
        color = _entry_str(entry, "color", f"node type '{tid}'")
        node_types[tid] = NodeType(id=tid, name=name, color=color)

    return Catalog(statuses=statuses, node_types=node_types)


def merged_catalog(overrides: Catalog | None = None) -> Catalog:
    """Return the defaults merged with optional overrides.

    Overrides replace entries with the same id, and may add new ones.
    """
    statuses = dict(DEFAULT_STATUSES)
    node_types = dict(DEFAULT_NODE_TYPES)
    if overrides is not None:
        statuses.update(overrides.statuses)
        node_types.update(overrides.node_types)
    return Catalog(statuses=statuses, node_types=node_types)


def load_and_merge(catalog_file: str | None) -> Catalog:
    if not catalog_file:
        return merged_catalog()
    return merged_catalog(load_catalog_file(catalog_file))


def _section(raw: dict, key: str) -> dict[str, dict]:
    section = raw.get(key)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise CatalogConfigError(f"{key} must be a mapping of id -> entry")
    for k, v in section.items():
        if not isinstance(k, str) or not k.strip():
            raise CatalogConfigError(f"{key} ids must be non-empty strings")
        if not isinstance(v, dict):
            raise CatalogConfigError(f"{key} entry '{k}' must be a mapping")
    return section


def _entry_str(entry: dict, key: str, what: str) -> str:
    v = entry.get(key)
    if not isinstance(v, str) or not v.strip():
        raise CatalogConfigError(f"{what} {key} must be a non-empty string")
    return v.strip()
