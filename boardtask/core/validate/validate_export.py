from __future__ import annotations

from collections import Counter
from typing import Any, Callable, Iterable, Optional, TypeVar, cast

from boardtask.core.errors import BoardtaskError, ExportLoadError, ExportValidationError
from boardtask.core.model import EXPORT_VERSION, Edge, Node, ProjectExport, Slot

T = TypeVar("T")

_NODE_REQUIRED_STR = ("id", "node_type_id", "status_id", "title")
_NODE_OPTIONAL_STR = ("description", "slot_id", "parent_id", "assigned_user_id")


def parse_export(doc: dict[str, Any]) -> ProjectExport:
    """Turn a loaded document into a ProjectExport.

    Only checks shape (types and required fields); raises the first problem found
    as ExportLoadError. Version and title are checked by check_importable.
    """
    export, errors = _parse(doc)
    if errors:
        raise errors[0]
    assert export is not None
    return export


def check_importable(export: ProjectExport, file: Optional[str] = None) -> list[ExportValidationError]:
    """The checks that abort an import: supported version and a non-empty title."""
    errors: list[ExportValidationError] = []
    if export.version != EXPORT_VERSION:
        errors.append(
            ExportValidationError(
                code="E_UNSUPPORTED_VERSION",
                message=f"unsupported export version {export.version}; expected {EXPORT_VERSION}",
                file=file,
                path="version",
            )
        )
    if not export.title.strip():
        errors.append(
            ExportValidationError(
                code="E_EMPTY_TITLE",
                message="project title is required",
                file=file,
                path="project.title",
            )
        )
    return errors


def validate_export(doc: dict[str, Any]) -> tuple[Optional[ProjectExport], list[BoardtaskError]]:
    """Validate an export document.

    Returns (export, errors). Export is None when errors exist.
    """
    export, errors = _parse(doc)
    if export is None:
        return None, _sorted(errors)

    v_errors = check_importable(export, file=_file_of(doc))
    if v_errors:
        return None, _sorted(v_errors)
    return export, []


def summarize_export(export: ProjectExport) -> str:
    return (
        f"OK: {export.title.strip()} (version {export.version}): "
        f"{len(export.nodes)} nodes, {len(export.edges)} edges, {len(export.slots)} slots"
    )


def type_counts(export: ProjectExport) -> dict[str, int]:
    return dict(Counter(n.node_type_id for n in export.nodes))


def _parse(doc: dict[str, Any]) -> tuple[Optional[ProjectExport], list[BoardtaskError]]:
    file = _file_of(doc)
    errors: list[BoardtaskError] = []

    def err(code: str, message: str, path: str) -> None:
        errors.append(ExportLoadError(code=code, message=message, file=file, path=path))

    version = doc.get("version")
    if version is None:
        err("E_REQUIRED_FIELD", "version is required", "version")
    elif isinstance(version, bool) or not isinstance(version, int):
        err("E_INVALID_TYPE", "version must be an integer", "version")

    exported_at = doc.get("exported_at")
    if exported_at is not None and not isinstance(exported_at, str):
        err("E_INVALID_TYPE", "exported_at must be a string", "exported_at")

    title: Optional[str] = None
    project = doc.get("project")
    if not isinstance(project, dict):
        err("E_REQUIRED_FIELD", "project is required and must be an object", "project")
    elif not isinstance(project.get("title"), str):
        err("E_REQUIRED_FIELD", "project.title is required and must be a string", "project.title")
    else:
        title = project["title"]

    slots = _parse_list(doc, "slots", _parse_slot, err)
    nodes = _parse_list(doc, "nodes", _parse_node, err)
    edges = _parse_list(doc, "edges", _parse_edge, err)

    if errors:
        return None, errors

    return (
        ProjectExport(
            version=cast(int, version),
            title=cast(str, title),
            slots=slots,
            nodes=nodes,
            edges=edges,
            exported_at=cast(Optional[str], exported_at),
        ),
        [],
    )


def _parse_list(
    doc: dict[str, Any],
    key: str,
    parse_item: Callable[[dict[str, Any]], T],
    err: Callable[[str, str, str], None],
) -> list[T]:
    raw_items = doc.get(key)
    if raw_items is None:
        return []
    if not isinstance(raw_items, list):
        err("E_INVALID_TYPE", f"{key} must be an array", key)
        return []

    out: list[T] = []
    for i, raw in enumerate(raw_items):
        item_path = f"{key}[{i}]"
        if not isinstance(raw, dict):
            err("E_INVALID_TYPE", "item must be an object", item_path)
            continue
        try:
            out.append(parse_item(raw))
        except _FieldError as e:
            err(e.code, e.message, f"{item_path}.{e.field}")
        except ValueError as e:
            err("E_INVALID_TYPE", str(e), item_path)
    return out


class _FieldError(Exception):
    def __init__(self, code: str, field: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.field = field
        self.message = message


def _parse_slot(raw: dict[str, Any]) -> Slot:
    _require(raw, ("id", "name"))
    sort_order = raw.get("sort_order")
    if isinstance(sort_order, bool) or not isinstance(sort_order, int):
        raise _FieldError("E_REQUIRED_FIELD", "sort_order", "sort_order is required and must be an integer")
    return Slot(id=raw["id"], name=raw["name"], sort_order=sort_order)


def _parse_node(raw: dict[str, Any]) -> Node:
    _require(raw, _NODE_REQUIRED_STR)
    for key in _NODE_OPTIONAL_STR:
        if raw.get(key) is not None and not isinstance(raw.get(key), str):
            raise _FieldError("E_INVALID_TYPE", key, f"{key} must be a string")
    est = raw.get("estimated_minutes")
    if est is not None and (isinstance(est, bool) or not isinstance(est, int)):
        raise _FieldError("E_INVALID_TYPE", "estimated_minutes", "estimated_minutes must be an integer")

    return Node(
        id=raw["id"],
        node_type_id=raw["node_type_id"],
        status_id=raw["status_id"],
        title=raw["title"],
        description=raw.get("description"),
        estimated_minutes=est,
        slot_id=raw.get("slot_id"),
        parent_id=raw.get("parent_id"),
        assigned_user_id=raw.get("assigned_user_id"),
    )


def _parse_edge(raw: dict[str, Any]) -> Edge:
    _require(raw, ("parent_id", "child_id"))
    return Edge(parent_id=raw["parent_id"], child_id=raw["child_id"])


def _require(raw: dict[str, Any], keys: Iterable[str]) -> None:
    for key in keys:
        if not isinstance(raw.get(key), str):
            raise _FieldError("E_REQUIRED_FIELD", key, f"{key} is required and must be a string")


def _file_of(doc: dict[str, Any]) -> Optional[str]:
    f = doc.get("__file__")
    return f if isinstance(f, str) else None


def _sorted(errors: Iterable[BoardtaskError]) -> list[BoardtaskError]:
    return sorted(
        list(errors),
        key=lambda e: (
            e.file or "",
            e.path or "",
            e.code,
        ),
    )
