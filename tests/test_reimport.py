import itertools

import pytest

from boardtask.core.errors import ImportValidationError
from boardtask.core.io.load_export import load_export
from boardtask.core.model import EXPORT_VERSION, Edge, Node, ProjectExport, ProjectGraph, Slot
from boardtask.core.transfer.export_project import export_project
from boardtask.core.transfer.reimport import reimport
from boardtask.core.validate.validate_export import parse_export


def counter_ids(prefix: str = "NEW"):
    c = itertools.count(1)
    return lambda: f"{prefix}-{next(c):03d}"


def _graph() -> ProjectGraph:
    return ProjectGraph(
        title="Roadmap",
        slots=[Slot(id="s1", name="Sprint 1", sort_order=0), Slot(id="s2", name="Sprint 2", sort_order=1)],
        nodes=[
            Node(id="group", title="Group"),
            Node(id="c", title="C", parent_id="group", slot_id="s2", estimated_minutes=15),
            Node(id="b", title="B", description="middle", parent_id="group", estimated_minutes=30),
            Node(id="a", title="A", slot_id="s1", estimated_minutes=45, assigned_user_id="user-1"),
        ],
        edges=[Edge(parent_id="a", child_id="b"), Edge(parent_id="b", child_id="c")],
    )


def test_round_trip_preserves_structure_with_fresh_ids():
    src = _graph()
    export = parse_export(export_project(src))
    result = reimport(export, counter_ids())
    dst = result.to_graph()

    assert dst.title == "Roadmap"
    assert len(dst.nodes) == len(src.nodes)
    assert len(dst.edges) == len(src.edges)
    assert len(dst.slots) == len(src.slots)

    old_ids = {n.id for n in src.nodes} | {s.id for s in src.slots}
    assert not old_ids & ({n.id for n in dst.nodes} | {s.id for s in dst.slots})

    new_to_old = {v: k for k, v in result.node_id_map.items()}
    slot_new_to_old = {v: k for k, v in result.slot_id_map.items()}
    src_by_id = {n.id: n for n in src.nodes}
    for n in dst.nodes:
        old = src_by_id[new_to_old[n.id]]
        assert (n.title, n.description, n.estimated_minutes, n.status_id, n.node_type_id) == (
            old.title,
            old.description,
            old.estimated_minutes,
            old.status_id,
            old.node_type_id,
        )
        assert (new_to_old[n.parent_id] if n.parent_id else None) == old.parent_id
        assert (slot_new_to_old[n.slot_id] if n.slot_id else None) == old.slot_id

    rewritten = {(new_to_old[e.parent_id], new_to_old[e.child_id]) for e in dst.edges}
    assert rewritten == {(e.parent_id, e.child_id) for e in src.edges}


def test_result_does_not_depend_on_source_id_values():
    src = _graph()
    renamed = {"group": "zz-9", "a": "0", "b": "q", "c": "m-1"}
    src2 = ProjectGraph(
        title=src.title,
        slots=src.slots,
        nodes=[
            Node(
                id=renamed[n.id],
                title=n.title,
                description=n.description,
                estimated_minutes=n.estimated_minutes,
                slot_id=n.slot_id,
                parent_id=renamed[n.parent_id] if n.parent_id else None,
            )
            for n in src.nodes
        ],
        edges=[Edge(parent_id=renamed[e.parent_id], child_id=renamed[e.child_id]) for e in src.edges],
    )

    r1 = reimport(parse_export(export_project(src)), counter_ids())
    r2 = reimport(parse_export(export_project(src2)), counter_ids())
    assert r1.nodes == r2.nodes
    assert r1.edges == r2.edges
    assert r1.slots == r2.slots


def test_nodes_are_emitted_parents_first():
    result = reimport(parse_export(export_project(_graph())), counter_ids())
    titles = [n.title for n in result.nodes]
    assert titles.index("A") < titles.index("B") < titles.index("C")
    assert titles.index("Group") < titles.index("B")


def test_assignee_is_never_carried_over():
    result = reimport(parse_export(export_project(_graph())), counter_ids())
    assert all(n.assigned_user_id is None for n in result.nodes)


def test_version_mismatch_is_rejected_before_generating_ids():
    calls: list[str] = []

    def gen() -> str:
        calls.append("x")
        return f"id-{len(calls)}"

    export = ProjectExport(version=EXPORT_VERSION + 1, title="Future", nodes=[Node(id="a")])
    with pytest.raises(ImportValidationError) as exc:
        reimport(export, gen)
    assert exc.value.code == "E_UNSUPPORTED_VERSION"
    assert calls == []


def test_blank_title_is_rejected():
    with pytest.raises(ImportValidationError) as exc:
        reimport(ProjectExport(version=EXPORT_VERSION, title="  \t"), counter_ids())
    assert exc.value.code == "E_EMPTY_TITLE"


def test_title_is_trimmed():
    result = reimport(ProjectExport(version=EXPORT_VERSION, title="  Spaced  "), counter_ids())
    assert result.title == "Spaced"


def test_dangling_edges_are_dropped_silently():
    doc = load_export("examples/dangling-edge.json")
    result = reimport(parse_export(doc), counter_ids())

    assert len(result.nodes) == 2
    assert len(result.edges) == 1
    assert result.dropped_edges == 1
    e = result.edges[0]
    assert (e.parent_id, e.child_id) == (result.node_id_map["a"], result.node_id_map["b"])


def test_unresolved_parent_and_slot_become_none():
    doc = load_export("examples/dangling-edge.json")
    result = reimport(parse_export(doc), counter_ids())
    b = next(n for n in result.nodes if n.title == "B")
    assert b.parent_id is None
    assert b.slot_id is None


def test_parent_processed_later_is_not_linked():
    # b depends on a while b groups a: a cycle, so a is placed first and its
    # group parent is not mapped yet.
    export = ProjectExport(
        version=EXPORT_VERSION,
        title="Odd",
        nodes=[Node(id="a", parent_id="b"), Node(id="b")],
        edges=[Edge(parent_id="a", child_id="b")],
    )
    result = reimport(export, counter_ids())
    by_old = {old: next(n for n in result.nodes if n.id == new) for old, new in result.node_id_map.items()}
    assert by_old["a"].parent_id is None


def test_cycles_still_import_every_node_and_edge():
    doc = load_export("examples/cycle.json")
    result = reimport(parse_export(doc), counter_ids())
    assert len(result.nodes) == 3
    assert len(result.edges) == 3


def test_duplicate_edges_collapse():
    export = ProjectExport(
        version=EXPORT_VERSION,
        title="Dupes",
        nodes=[Node(id="a"), Node(id="b")],
        edges=[Edge(parent_id="a", child_id="b"), Edge(parent_id="a", child_id="b")],
    )
    result = reimport(export, counter_ids())
    assert len(result.edges) == 1
    assert result.dropped_edges == 0


def test_one_id_per_slot_and_node():
    calls: list[int] = []

    def gen() -> str:
        calls.append(1)
        return f"id-{len(calls)}"

    reimport(parse_export(export_project(_graph())), gen)
    assert len(calls) == 2 + 4


def test_duplicate_id_edges_follow_first_occurrence():
    export = ProjectExport(
        version=EXPORT_VERSION,
        title="Dupes",
        nodes=[Node(id="x", title="first"), Node(id="x", title="second"), Node(id="y", title="Y")],
        edges=[Edge(parent_id="x", child_id="y")],
    )
    result = reimport(export, counter_ids())

    assert len(result.nodes) == 3
    assert len({n.id for n in result.nodes}) == 3
    by_id = {n.id: n for n in result.nodes}
    (e,) = result.edges
    assert by_id[e.parent_id].title == "first"
    assert by_id[e.child_id].title == "Y"
    assert by_id[result.node_id_map["x"]].title == "first"


def test_node_grouped_under_itself_loses_its_group():
    export = ProjectExport(
        version=EXPORT_VERSION,
        title="Self group",
        nodes=[Node(id="a", title="A", parent_id="a")],
    )
    result = reimport(export, counter_ids())

    (n,) = result.nodes
    assert n.id == result.node_id_map["a"]
    assert n.parent_id is None
