from __future__ import annotations

import logging
from collections import defaultdict, deque
from typing import Sequence

from boardtask.core.model import Edge, Node

logger = logging.getLogger(__name__)


def topological_order(nodes: Sequence[Node], edges: Sequence[Edge]) -> list[int]:
    """Return indices into nodes so that parents come before children.

    Only edges whose endpoints are both in `nodes` are considered. The result is
    a permutation of range(len(nodes)):

    - edge-connected nodes in Kahn order (ties keep input order),
    - then connected nodes stuck behind a cycle, in input order,
    - then nodes that take part in no edge, in input order.

    Cycles never raise.
    """

    # First occurrence wins for duplicate ids.
    id_to_idx: dict[str, int] = {}
    for i, n in enumerate(nodes):
        id_to_idx.setdefault(n.id, i)

    in_degree = [0] * len(nodes)
    children: dict[int, list[int]] = defaultdict(list)
    connected: set[int] = set()

    for e in edges:
        p_idx = id_to_idx.get(e.parent_id)
        c_idx = id_to_idx.get(e.child_id)
        if p_idx is None or c_idx is None:
            continue
        children[p_idx].append(c_idx)
        in_degree[c_idx] += 1
        connected.add(p_idx)
        connected.add(c_idx)

    q: deque[int] = deque(i for i in range(len(nodes)) if i in connected and in_degree[i] == 0)
    order: list[int] = []
    while q:
        cur = q.popleft()
        order.append(cur)
        for nxt in children.get(cur, []):
            in_degree[nxt] -= 1
            if in_degree[nxt] == 0:
                q.append(nxt)

    placed = set(order)
    cyclic = [i for i in range(len(nodes)) if i in connected and i not in placed]
    if cyclic:
        logger.debug("topological_order: %d node(s) left behind a cycle", len(cyclic))
    isolated = [i for i in range(len(nodes)) if i not in connected]

    return order + cyclic + isolated
