import itertools

import pytest

from introspection.dependency_graph import DependencyGraph
from schema import ColumnDef, EngineKind, EngineMetadata, ForeignKeyDef, SemanticType, TableDef


def _table(name, *references):
    """Table with an ``id`` key and one ``<target>_ref`` column per referenced table."""
    columns = [ColumnDef(name="id", native_type="int", semantic_type=SemanticType.INTEGER)]
    foreign_keys = []
    for index, target in enumerate(references):
        column = f"{target}_ref_{index}"
        columns.append(
            ColumnDef(name=column, native_type="int", semantic_type=SemanticType.INTEGER)
        )
        foreign_keys.append(
            ForeignKeyDef(
                name=f"fk_{name}_{index}", column=column, foreign_table=target, foreign_column="id"
            )
        )
    return TableDef(
        name=name,
        columns=columns,
        foreign_keys=foreign_keys,
        engine_metadata=EngineMetadata(engine=EngineKind.POSTGRES),
    )


def _order(tables):
    graph = DependencyGraph()
    ordered = graph.order(graph.build(tables), [table.name for table in tables])
    return graph, ordered


def test_build_excludes_self_references():
    """Self-referencing keys do not become dependencies."""
    graph = DependencyGraph().build([_table("categories", "categories"), _table("users")])

    assert graph == {"categories": set(), "users": set()}


def test_dependencies_come_first():
    """Referenced tables are created before the tables that reference them."""
    tables = [_table("comments", "posts", "users"), _table("posts", "users"), _table("users")]

    _, ordered = _order(tables)

    assert ordered == ["users", "posts", "comments"]


def test_ties_keep_input_order():
    """Independent tables keep their input order."""
    tables = [_table("zebras"), _table("apples"), _table("mangoes")]

    _, ordered = _order(tables)

    assert ordered == ["zebras", "apples", "mangoes"]


def test_dependencies_visited_in_input_order():
    """A table's dependencies are visited in input order, not name order."""
    tables = [_table("orders", "zones", "accounts"), _table("zones"), _table("accounts")]

    _, ordered = _order(tables)

    assert ordered == ["zones", "accounts", "orders"]


def test_cycle_is_broken_and_recorded():
    """A two-table cycle still yields a full order and reports the skipped edge."""
    tables = [_table("a", "b"), _table("b", "a")]

    graph, ordered = _order(tables)

    assert ordered == ["b", "a"]
    assert graph.cyclic_edges == [("b", "a")]


def test_unresolved_foreign_keys_are_reported():
    """Keys pointing outside the table set are dropped from the graph and recorded."""
    graph = DependencyGraph()
    built = graph.build([_table("posts", "users")])

    assert built == {"posts": set()}
    unresolved = graph.unresolved_foreign_keys
    assert [(item.table, item.foreign_key, item.foreign_table) for item in unresolved] == [
        ("posts", "fk_posts_0", "users")
    ]


@pytest.mark.parametrize(
    "tables",
    [
        [_table("a", "b"), _table("b", "c"), _table("c", "a")],
        [_table("a", "b", "c"), _table("b", "c"), _table("c", "a", "b"), _table("d", "d")],
        [_table("x", "y"), _table("y", "x"), _table("z", "x", "y")],
    ],
)
def test_order_is_a_permutation_and_deterministic(tables):
    """Every table appears exactly once, for any input order, and repeats are identical."""
    for permutation in itertools.permutations(tables):
        _, first = _order(list(permutation))
        _, second = _order(list(permutation))

        assert sorted(first) == sorted(table.name for table in tables)
        assert len(first) == len(set(first))
        assert first == second


def test_acyclic_order_respects_every_edge():
    """Without cycles every dependency precedes its dependent."""
    tables = [
        _table("line_items", "orders", "products"),
        _table("orders", "customers"),
        _table("products", "vendors"),
        _table("customers"),
        _table("vendors"),
    ]

    graph, ordered = _order(tables)
    position = {name: index for index, name in enumerate(ordered)}

    assert graph.cyclic_edges == []
    for table, dependencies in DependencyGraph().build(tables).items():
        for dependency in dependencies:
            assert position[dependency] < position[table]


def test_long_chain_is_ordered_without_recursion_limit():
    """A foreign-key chain deeper than the interpreter recursion limit still orders."""
    depth = 2000
    tables = [_table(f"t{index}", f"t{index + 1}") for index in range(depth - 1)]
    tables.append(_table(f"t{depth - 1}"))

    graph, ordered = _order(tables)

    assert ordered == [f"t{index}" for index in reversed(range(depth))]
    assert graph.cyclic_edges == []


def test_long_cycle_is_broken_once():
    """Closing a long chain into a ring records exactly one deferred edge."""
    depth = 1500
    tables = [_table(f"t{index}", f"t{(index + 1) % depth}") for index in range(depth)]

    graph, ordered = _order(tables)

    assert sorted(ordered) == sorted(table.name for table in tables)
    assert graph.cyclic_edges == [(f"t{depth - 1}", "t0")]
    assert ordered[0] == f"t{depth - 1}"
