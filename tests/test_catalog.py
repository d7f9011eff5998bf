import pytest

from boardtask.core.catalog.catalog_config import (
    DEFAULT_NODE_TYPES,
    CatalogConfigError,
    load_and_merge,
    load_catalog_file,
)
from boardtask.core.model import DONE_STATUS_ID, TODO_STATUS_ID


def test_defaults():
    catalog = load_and_merge(None)
    assert [s.name for s in catalog.ordered_statuses()] == ["To do", "In progress", "Done"]
    assert catalog.node_types == DEFAULT_NODE_TYPES
    assert catalog.status_name("unknown-id") == "unknown-id"


def test_file_overrides_and_adds():
    catalog = load_and_merge("examples/catalog.yaml")
    assert catalog.status_name(TODO_STATUS_ID) == "Backlog"
    assert catalog.status_name(DONE_STATUS_ID) == "Done"
    assert catalog.status_name("01JSTATUS00000000REVIEW00") == "In review"
    assert "01JNODETYPE00000000CHORE00" in catalog.node_types
    assert len(catalog.node_types) == len(DEFAULT_NODE_TYPES) + 1


def test_empty_file_is_no_override(tmp_path):
    p = tmp_path / "empty.yaml"
    p.write_text("", encoding="utf-8")
    assert load_catalog_file(str(p)).statuses == {}


@pytest.mark.parametrize(
    "text",
    [
        "- a\n",
        "colors: {}\n",
        "statuses: [1, 2]\n",
        "statuses:\n  x: {sort_order: 1}\n",
        "statuses:\n  x: {name: X, sort_order: high}\n",
        "node_types:\n  t: {name: T}\n",
        "statuses: [unclosed\n",
    ],
)
def test_invalid_files(tmp_path, text):
    p = tmp_path / "bad.yaml"
    p.write_text(text, encoding="utf-8")
    with pytest.raises(CatalogConfigError):
        load_catalog_file(str(p))


def test_missing_file():
    with pytest.raises(FileNotFoundError):
        load_and_merge("examples/nope.yaml")
