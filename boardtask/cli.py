from __future__ import annotations

import json
from typing import Any, Optional

import typer
from rich.console import Console
from rich.table import Table

from boardtask.core.catalog.catalog_config import Catalog, CatalogConfigError, load_and_merge
from boardtask.core.config import configure_logging, settings_from_env
from boardtask.core.errors import BoardtaskError, ExportLoadError, ExportValidationError
from boardtask.core.graph.ordering import topological_order
from boardtask.core.graph.progress import ProjectProgress, summarize_progress
from boardtask.core.ids import new_id
from boardtask.core.io.load_export import dump_export, load_export
from boardtask.core.lint.lint_export import lint_export
from boardtask.core.model import ProjectExport
from boardtask.core.transfer.export_project import export_filename, export_project
from boardtask.core.transfer.reimport import reimport
from boardtask.core.validate.validate_export import summarize_export, type_counts, validate_export

app = typer.Typer(add_completion=False, no_args_is_help=True)


@app.callback()
def _callback(
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level (default: $BOARDTASK_LOG_LEVEL or WARNING)",
    ),
) -> None:
    """Boardtask project graph CLI."""
    level = log_level or settings_from_env().log_level
    if level == "WARNING" and log_level is None:
        # Python's last-resort handler already prints warnings to stderr.
        return
    try:
        configure_logging(level)
    except ValueError as e:
        _print_errors([BoardtaskError(code="E_CONFIG", message=str(e), path="log_level")])
        raise typer.Exit(code=2)


@app.command("validate")
def validate(
    path: str = typer.Argument(..., help="Path to a project export (.json/.yaml/.yml)"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Validate a project export: shape, version and title."""
    _check_format(format, ("text", "json"), "E_VALIDATE_UNKNOWN_FORMAT")

    def _emit_json(ok: bool, *, exit_code: int, errors: list[BoardtaskError], summary: dict | None) -> None:
        payload = {
            "tool": "boardtask",
            "command": "validate",
            "ok": ok,
            "error_count": len(errors),
            "errors": [_to_item(e) for e in errors],
            "summary": summary,
        }
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        raise typer.Exit(code=exit_code)

    try:
        doc = load_export(path)
    except ExportLoadError as e:
        if format == "json":
            _emit_json(False, exit_code=1, errors=[e], summary=None)
        _print_errors([e])
        raise typer.Exit(code=1)

    export, errors = validate_export(doc)
    if errors:
        if format == "json":
            _emit_json(False, exit_code=2, errors=errors, summary=None)
        _print_errors(errors)
        raise typer.Exit(code=2)

    assert export is not None

    if format == "text":
        typer.echo(summarize_export(export))
        return

    summary = {
        "title": export.title.strip(),
        "version": export.version,
        "node_count": len(export.nodes),
        "edge_count": len(export.edges),
        "slot_count": len(export.slots),
        "type_counts": type_counts(export),
    }
    _emit_json(True, exit_code=0, errors=[], summary=summary)


@app.command("lint")
def lint(
    path: str = typer.Argument(..., help="Path to a project export (.json/.yaml/.yml)"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Report structural anomalies that import would silently drop."""
    _check_format(format, ("text", "json"), "E_LINT_UNKNOWN_FORMAT")

    def _emit_json(ok: bool, errors: list[BoardtaskError], exit_code: int) -> None:
        payload = {
            "tool": "boardtask",
            "command": "lint",
            "ok": ok,
            "error_count": len(errors),
            "errors": [_to_item(e) for e in errors],
        }
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        raise typer.Exit(code=exit_code)

    try:
        doc = load_export(path)
    except ExportLoadError as e:
        if format == "json":
            _emit_json(False, [e], 1)
        _print_errors([e])
        raise typer.Exit(code=1)

    _, validation_errors = validate_export(doc)
    errors: list[BoardtaskError] = list(lint_export(doc)) + validation_errors

    if format == "text":
        if errors:
            _print_errors(errors)
            raise typer.Exit(code=2)
        typer.echo("OK: lint passed")
        return

    if errors:
        _emit_json(False, errors, 2)
    _emit_json(True, [], 0)


@app.command("summary")
def summary(
    path: str = typer.Argument(..., help="Path to a project export (.json/.yaml/.yml)"),
    format: str = typer.Option("text", "--format", help="Output format: text|json|table"),
    catalog_file: Optional[str] = typer.Option(
        None,
        "--catalog-file",
        help="Optional YAML file to add/override statuses and node types",
    ),
) -> None:
    """Progress and blocked-task counts for a project."""
    _check_format(format, ("text", "json", "table"), "E_SUMMARY_UNKNOWN_FORMAT")
    export = _load_valid(path)
    catalog = _load_catalog(catalog_file)
    graph = export.to_graph()
    progress = summarize_progress(graph)

    if format == "json":
        payload = {
            "tool": "boardtask",
            "command": "summary",
            "title": export.title.strip(),
            "task_count": progress.task_count,
            "status_counts": {catalog.status_name(k): v for k, v in progress.status_counts.items()},
            "done_percent": progress.done_percent,
            "estimated_minutes": progress.estimated_minutes,
            "root_count": len(graph.roots()),
            "blocked": {
                "total": progress.blocked_count,
                "todo": progress.blocked_todo_count,
                "in_progress": progress.blocked_in_progress_count,
            },
        }
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        return

    if format == "table":
        _print_progress_table(export, progress, catalog)
        return

    typer.echo(f"{export.title.strip()}: {progress.task_count} tasks, {progress.done_percent}% done")
    for status in catalog.ordered_statuses():
        typer.echo(f"- {status.name}: {progress.status_counts.get(status.id, 0)}")
    for sid in sorted(set(progress.status_counts) - set(catalog.statuses)):
        typer.echo(f"- {sid}: {progress.status_counts[sid]}")
    typer.echo(f"Estimated: {progress.estimated_display}")
    typer.echo(
        f"Blocked: {progress.blocked_count} "
        f"(to do={progress.blocked_todo_count}, in progress={progress.blocked_in_progress_count})"
    )


@app.command("order")
def order(
    path: str = typer.Argument(..., help="Path to a project export (.json/.yaml/.yml)"),
) -> None:
    """Print nodes in import order (parents before children)."""
    export = _load_valid(path)
    for i in topological_order(export.nodes, export.edges):
        n = export.nodes[i]
        typer.echo(f"{n.id}\t{n.title}")


@app.command("reimport")
def reimport_cmd(
    path: str = typer.Argument(..., help="Path to a project export (.json/.yaml/.yml)"),
    out: str = typer.Option(..., "--out", help="Path to write the re-keyed export"),
    title: Optional[str] = typer.Option(None, "--title", help="Title for the imported project"),
) -> None:
    """Re-key an export with fresh ids, as importing it into a new project would."""
    try:
        doc = load_export(path)
    except ExportLoadError as e:
        _print_errors([e])
        raise typer.Exit(code=1)

    if title is not None:
        doc["project"] = {"title": title}

    export, errors = validate_export(doc)
    if errors or export is None:
        _print_errors(errors)
        raise typer.Exit(code=2)

    result = reimport(export, new_id)
    dump_export(export_project(result.to_graph()), out)

    msg = f"OK: wrote {out} (nodes={len(result.nodes)}, edges={len(result.edges)}, slots={len(result.slots)}"
    if result.dropped_edges:
        msg += f", dropped_edges={result.dropped_edges}"
    typer.echo(msg + ")")


@app.command("export-name")
def export_name(
    path: str = typer.Argument(..., help="Path to a project export (.json/.yaml/.yml)"),
) -> None:
    """Print the download filename for a project export."""
    export = _load_valid(path)
    typer.echo(export_filename(export.title))


@app.command("catalog")
def catalog_cmd(
    catalog_file: Optional[str] = typer.Option(
        None,
        "--catalog-file",
        help="Optional YAML file to add/override statuses and node types",
    ),
) -> None:
    """List known task statuses and node types."""
    catalog = _load_catalog(catalog_file)

    typer.echo("Statuses:")
    for s in catalog.ordered_statuses():
        typer.echo(f"- {s.id}: {s.name}")
    typer.echo("Node types:")
    for t in sorted(catalog.node_types.values(), key=lambda t: t.name):
        typer.echo(f"- {t.id}: {t.name} ({t.color})")


def _load_valid(path: str) -> ProjectExport:
    try:
        doc = load_export(path)
    except ExportLoadError as e:
        _print_errors([e])
        raise typer.Exit(code=1)

    export, errors = validate_export(doc)
    if errors or export is None:
        _print_errors(errors)
        raise typer.Exit(code=2)
    return export


def _load_catalog(catalog_file: Optional[str]) -> Catalog:
    catalog_file = catalog_file or settings_from_env().catalog_file
    try:
        return load_and_merge(catalog_file)
    except FileNotFoundError:
        _print_errors(
            [
                ExportLoadError(
                    code="E_CATALOG_FILE_NOT_FOUND",
                    message=f"catalog file not found: {catalog_file}",
                    path="catalog_file",
                )
            ]
        )
        raise typer.Exit(code=1)
    except CatalogConfigError as e:
        _print_errors(
            [
                ExportValidationError(
                    code="E_CATALOG_FILE_INVALID",
                    message=str(e),
                    path="catalog_file",
                )
            ]
        )
        raise typer.Exit(code=2)


def _print_progress_table(export: ProjectExport, progress: ProjectProgress, catalog: Catalog) -> None:
    table = Table(title=export.title.strip())
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Tasks", str(progress.task_count))
    for status in catalog.ordered_statuses():
        table.add_row(status.name, str(progress.status_counts.get(status.id, 0)))
    table.add_row("Done", f"{progress.done_percent}%")
    table.add_row("Estimated", progress.estimated_display)
    table.add_row("Blocked", str(progress.blocked_count))
    table.add_row("Blocked (to do)", str(progress.blocked_todo_count))
    table.add_row("Blocked (in progress)", str(progress.blocked_in_progress_count))
    Console().print(table)


def _check_format(format: str, allowed: tuple[str, ...], code: str) -> None:
    if format in allowed:
        return
    err = ExportValidationError(
        code=code,
        message=f"unknown format: {format} (choose one of: {', '.join(allowed)})",
        path="format",
    )
    _print_errors([err])
    raise typer.Exit(code=2)


def _to_item(e: BoardtaskError) -> dict[str, Any]:
    if isinstance(e, ExportLoadError):
        source = "load"
    elif e.code.startswith("L_"):
        source = "lint"
    else:
        source = "validate"
    return {
        "code": e.code,
        "message": e.message,
        "file": e.file,
        "path": e.path,
        "severity": "error",
        "source": source,
    }


def _print_errors(errors: list[BoardtaskError]) -> None:
    errors_sorted = sorted(errors, key=lambda e: (e.file or "", e.path or "", e.code))
    for e in errors_sorted:
        typer.echo(str(e), err=True)


def main() -> None:
    app(prog_name="boardtask")


cli = typer.main.get_command(app)

if __name__ == "__main__":
    main()
