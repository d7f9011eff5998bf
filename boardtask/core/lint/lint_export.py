from __future__ import annotations

from collections import Counter, defaultdict
from typing import Any, Optional

from boardtask.core.errors import ExportValidationError


# Lint rules for export documents. Each one names a structural anomaly that
# import tolerates (it never aborts on these) but that usually means the file
# was hand-edited or partially corrupted:
# - L_DUPLICATE_ID: two nodes (or two slots) share an id
# - L_DANGLING_EDGE: edge endpoint is not a node in the document (dropped on import)
# - L_SELF_LOOP: edge from a node to itself
# - L_UNKNOWN_PARENT: parent_id names no node (grouping dropped on import)
# - L_UNKNOWN_SLOT: slot_id names no slot (slot dropped on import)
# - L_ASSIGNEE_DROPPED: assigned_user_id is never carried across an import
# - L_CYCLE_DETECTED: dependency cycle exists


def lint_export(doc: dict[str, Any]) -> list[ExportValidationError]:
    """Lint an export document (best effort).

    Runs on partially-invalid input; validate_export owns the shape checks.
    """

    file = _cast_optional_str(doc.get("__file__"))

    nodes = doc.get("nodes")
    if not isinstance(nodes, list):
        return []
    raw_slots = doc.get("slots")
    slots = raw_slots if isinstance(raw_slots, list) else []
    raw_edges = doc.get("edges")
    edges = raw_edges if isinstance(raw_edges, list) else []

    id_to_index: dict[str, int] = {}
    ids: list[str] = []
    for i, raw in enumerate(nodes):
        if not isinstance(raw, dict):
            continue
        nid = raw.get("id")
        if not isinstance(nid, str):
            continue
        ids.append(nid)
        id_to_index.setdefault(nid, i)

    slot_ids: list[str] = [
        s["id"] for s in slots if isinstance(s, dict) and isinstance(s.get("id"), str)
    ]

    errors: list[ExportValidationError] = []

    def add(code: str, message: str, path: str) -> None:
        errors.append(ExportValidationError(code=code, message=message, file=file, path=path))

    # Rule: duplicate ids
    for key, items, all_ids in (("nodes", nodes, ids), ("slots", slots, slot_ids)):
        counts = Counter(all_ids)
        seen: set[str] = set()
        for i, raw in enumerate(items):
            if not isinstance(raw, dict):
                continue
            rid = raw.get("id")
            if not isinstance(rid, str) or counts[rid] < 2:
                continue
            if rid not in seen:
                seen.add(rid)
                continue
            add("L_DUPLICATE_ID", f"duplicate id: {rid} (count={counts[rid]})", f"{key}[{i}].id")

    # Rules: dangling edges and self loops
    children_of: dict[str, list[str]] = defaultdict(list)
    for i, raw in enumerate(edges):
        if not isinstance(raw, dict):
            continue
        parent, child = raw.get("parent_id"), raw.get("child_id")
        for end, value in (("parent_id", parent), ("child_id", child)):
            if isinstance(value, str) and value not in id_to_index:
                add("L_DANGLING_EDGE", f"edge references unknown node: {value}", f"edges[{i}].{end}")
        if not isinstance(parent, str) or not isinstance(child, str):
            continue
        if parent == child:
            add("L_SELF_LOOP", f"edge from node to itself: {parent}", f"edges[{i}]")
        if parent in id_to_index and child in id_to_index:
            children_of[parent].append(child)

    # Rules: per-node references
    known_slots = set(slot_ids)
    for i, raw in enumerate(nodes):
        if not isinstance(raw, dict):
            continue
        parent_id = raw.get("parent_id")
        if isinstance(parent_id, str) and parent_id not in id_to_index:
            add("L_UNKNOWN_PARENT", f"parent_id references unknown node: {parent_id}", f"nodes[{i}].parent_id")
        slot_id = raw.get("slot_id")
        if isinstance(slot_id, str) and slot_id not in known_slots:
            add("L_UNKNOWN_SLOT", f"slot_id references unknown slot: {slot_id}", f"nodes[{i}].slot_id")
        if isinstance(raw.get("assigned_user_id"), str):
            add(
                "L_ASSIGNEE_DROPPED",
                "assigned_user_id is not carried across import",
                f"nodes[{i}].assigned_user_id",
            )

    # Rule: cycle detection
    graph = {nid: children_of.get(nid, []) for nid in id_to_index}
    for nid, msg in _detect_cycles(graph):
        add("L_CYCLE_DETECTED", msg, f"nodes[{id_to_index.get(nid, 0)}].id")

    return _sorted(errors)


def _detect_cycles(children_of: dict[str, list[str]]) -> list[tuple[str, str]]:
    WHITE, GRAY, BLACK = 0, 1, 2
    state: dict[str, int] = {nid: WHITE for nid in children_of.keys()}
    emitted: set[str] = set()
    out: list[tuple[str, str]] = []

    # Iterative DFS: hand-edited exports can hold long chains.
    for start in list(state.keys()):
        if state[start] != WHITE:
            continue
        path: list[str] = [start]
        iters = [iter(children_of.get(start, []))]
        state[start] = GRAY
        while iters:
            u = path[-1]
            v = next(iters[-1], None)
            if v is None:
                state[u] = BLACK
                path.pop()
                iters.pop()
                continue
            if v == u:
                # self loops are reported by L_SELF_LOOP
                continue
            if state.get(v) == GRAY:
                cycle = path[path.index(v):] + [v]
                key = "->".join(cycle)
                if key not in emitted:
                    emitted.add(key)
                    out.append((u, "dependency cycle detected: " + " -> ".join(cycle)))
            elif state.get(v) == WHITE:
                state[v] = GRAY
                path.append(v)
                iters.append(iter(children_of.get(v, [])))

    return out


def _sorted(errors: list[ExportValidationError]) -> list[ExportValidationError]:
    return sorted(errors, key=lambda e: (e.file or "", e.path or "", e.code))


def _cast_optional_str(v: Any) -> Optional[str]:
    return v if isinstance(v, str) else None
