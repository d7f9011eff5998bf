from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class BoardtaskError(Exception):
    """A coded problem located in an export document.

    `file` is the document it came from (when loaded from disk) and `path` the
    JSON path inside it, e.g. "nodes[2].status_id". The CLI prints these one per
    line; callers match on `code`.
    """

    code: str
    message: str
    file: Optional[str] = None
    path: Optional[str] = None

    @property
    def location(self) -> str:
        loc = ":".join(p for p in (self.file, self.path) if p)
        return loc or "<project>"

    def __str__(self) -> str:
        return f"{self.location}: {self.code}: {self.message}"


class ExportLoadError(BoardtaskError):
    """The document could not be read or decoded."""


class ExportValidationError(BoardtaskError):
    """The document was read but its content is rejected."""


class ImportValidationError(ExportValidationError):
    """Raised by reimport for the two checks that abort an import (version, title)."""


class GraphError(BoardtaskError):
    """An edit would break a graph invariant (unknown node, self edge, ...)."""
