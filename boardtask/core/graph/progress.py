"""Progress and blocked counts for a project, computed from nodes + edges."""
from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass
from typing import Iterable, Sequence

from boardtask.core.model import (
    DONE_STATUS_ID,
    IN_PROGRESS_STATUS_ID,
    TODO_STATUS_ID,
    Edge,
    Node,
    ProjectGraph,
)


@dataclass(frozen=True)
class ProjectProgress:
    task_count: int
    status_counts: dict[str, int]
    done_count: int
    done_percent: int
    estimated_minutes: int
    estimated_display: str
    blocked_count: int
    blocked_todo_count: int
    blocked_in_progress_count: int


def compute_blocked(nodes: Sequence[Node], edges: Iterable[Edge]) -> tuple[int, int, int]:
    """Count nodes that are blocked.

    A node is blocked when it is not a root, is not done, and has at least one
    parent that is itself not a root and not done. A parent that is only an
    entry point (root) never blocks its children.

    Returns (blocked_count, blocked_todo_count, blocked_in_progress_count).
    """

    parent_ids_by_child: dict[str, list[str]] = defaultdict(list)
    for e in edges:
        parent_ids_by_child[e.child_id].append(e.parent_id)

    status_by_id = {n.id: n.status_id for n in nodes}

    def is_root(node_id: str) -> bool:
        return node_id not in parent_ids_by_child

    def is_done(node_id: str) -> bool:
        return status_by_id.get(node_id) == DONE_STATUS_ID

    def has_blocking_parent(node_id: str) -> bool:
        return any(
            not is_root(pid) and not is_done(pid) for pid in parent_ids_by_child.get(node_id, [])
        )

    blocked_count = 0
    blocked_todo_count = 0
    blocked_in_progress_count = 0

    for n in nodes:
        if is_root(n.id) or is_done(n.id) or not has_blocking_parent(n.id):
            continue
        blocked_count += 1
        if n.status_id == TODO_STATUS_ID:
            blocked_todo_count += 1
        elif n.status_id == IN_PROGRESS_STATUS_ID:
            blocked_in_progress_count += 1

    return blocked_count, blocked_todo_count, blocked_in_progress_count


def task_nodes(nodes: Sequence[Node]) -> list[Node]:
    """Nodes that are not the grouping parent of another node."""
    group_ids = {n.parent_id for n in nodes if n.parent_id is not None}
    return [n for n in nodes if n.id not in group_ids]


def format_estimated_minutes(minutes: int) -> str:
    if minutes == 0:
        return "—"
    if minutes < 60:
        return f"{minutes} min"
    h, m = divmod(minutes, 60)
    if m == 0:
        return f"{h} h"
    return f"{h} h {m} min"


def summarize_progress(graph: ProjectGraph) -> ProjectProgress:
    tasks = task_nodes(graph.nodes)
    counts = Counter(n.status_id for n in tasks)
    done = counts.get(DONE_STATUS_ID, 0)
    percent = (done * 100) // len(tasks) if tasks else 0
    minutes = sum(n.estimated_minutes or 0 for n in tasks)
    blocked, blocked_todo, blocked_in_progress = compute_blocked(graph.nodes, graph.edges)

    return ProjectProgress(
        task_count=len(tasks),
        status_counts=dict(counts),
        done_count=done,
        done_percent=percent,
        estimated_minutes=minutes,
        estimated_display=format_estimated_minutes(minutes),
        blocked_count=blocked,
        blocked_todo_count=blocked_todo,
        blocked_in_progress_count=blocked_in_progress,
    )
