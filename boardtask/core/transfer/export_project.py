from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from boardtask.core.model import EXPORT_VERSION, ProjectGraph


def export_project(graph: ProjectGraph, exported_at: Optional[str] = None) -> dict[str, Any]:
    """Build the JSON export document for a project.

    Ids are kept as-is; they only serve to link nodes, edges and slots inside the
    document and are replaced on import.
    """

    if exported_at is None:
        exported_at = datetime.now(timezone.utc).replace(microsecond=0).isoformat()

    return {
        "version": EXPORT_VERSION,
        "exported_at": exported_at,
        "project": {"title": graph.title},
        "slots": [{"id": s.id, "name": s.name, "sort_order": s.sort_order} for s in graph.slots],
        "nodes": [
            {
                "id": n.id,
                "node_type_id": n.node_type_id,
                "status_id": n.status_id,
                "title": n.title,
                "description": n.description,
                "estimated_minutes": n.estimated_minutes,
                "slot_id": n.slot_id,
                "parent_id": n.parent_id,
                "assigned_user_id": n.assigned_user_id,
            }
            for n in graph.nodes
        ],
        "edges": [{"parent_id": e.parent_id, "child_id": e.child_id} for e in graph.edges],
    }


def export_filename(title: str) -> str:
    """Attachment filename for a project export, e.g. "project-Q3-Launch.json"."""
    cleaned = "".join(c if _is_filename_safe(c) else "_" for c in title)
    cleaned = cleaned.strip()[:80].strip()
    if not cleaned:
        return "project.json"
    return f"project-{cleaned.replace(' ', '-')}.json"


def _is_filename_safe(c: str) -> bool:
    return (c.isascii() and c.isalnum()) or c in " -_"
