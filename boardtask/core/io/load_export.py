from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml

from boardtask.core.errors import ExportLoadError


def load_export(path: str) -> dict[str, Any]:
    """Load a YAML/JSON project export.

    Does not coerce types; parse_export owns shape checking.
    """

    p = Path(path)
    if not p.exists():
        raise ExportLoadError(
            code="E_FILE_NOT_FOUND",
            message="file does not exist",
            file=str(p),
        )

    suffix = p.suffix.lower()
    if suffix not in {".yaml", ".yml", ".json"}:
        raise ExportLoadError(
            code="E_UNSUPPORTED_FORMAT",
            message="supported formats are .yaml/.yml and .json",
            file=str(p),
        )

    raw_text = p.read_text(encoding="utf-8")

    try:
        if suffix == ".json":
            data = json.loads(raw_text)
        else:
            data = yaml.safe_load(raw_text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        code = "E_JSON_PARSE" if suffix == ".json" else "E_YAML_PARSE"
        raise ExportLoadError(code=code, message=str(e), file=str(p)) from e

    if not isinstance(data, dict):
        raise ExportLoadError(
            code="E_INVALID_TOP_LEVEL",
            message="top-level document must be a mapping/object",
            file=str(p),
        )

    data["__file__"] = str(p)
    return data


def dump_export(doc: dict[str, Any], path: str) -> None:
    """Write an export document as JSON or YAML (by suffix).

    The file is written to a temporary sibling and moved into place, so readers
    never observe a partially written document.
    """

    p = Path(path)
    if str(p.parent) not in (".", ""):
        p.parent.mkdir(parents=True, exist_ok=True)

    body = {k: v for k, v in doc.items() if k != "__file__"}
    fd, tmp = tempfile.mkstemp(dir=str(p.parent), prefix=f".{p.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            if p.suffix.lower() in {".yaml", ".yml"}:
                yaml.safe_dump(body, f, sort_keys=False, default_flow_style=False, allow_unicode=True)
            else:
                json.dump(body, f, indent=2, ensure_ascii=False)
                f.write("\n")
        os.replace(tmp, p)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise
