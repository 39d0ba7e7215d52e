"""Tests for relationship analysis (connections, layers, spatial relations)"""

from vsdx2json.analysis import (
    ShapeConnection,
    analyze_connections,
    do_overlap,
    find_spatial_relationships,
    flatten_shapes,
    group_shapes_by_layer,
    is_contained,
    summarize,
)
from vsdx2json.model import ConnectionPoint, Layer, Shape1D, Shape2D, ShapeGraph


def _box(shape_id, pin_x, pin_y, size=10.0, text="", page="P1", **kwargs):
    return Shape2D(id=shape_id, text=text or shape_id, page_name=page,
                   pin_x=pin_x, pin_y=pin_y, width=size, height=size, **kwargs)


# ---- connections ----

def test_analyze_connections_with_positions() -> None:
    a = _box("A", 5, 5, text="Start")
    b = _box("B", 25, 5, text="End")
    connector = Shape1D(
        id="K", text="flows", page_name="P1", from_shape_id="A", to_shape_id="B",
        from_connection_point=ConnectionPoint(id="1", x=10, y=5),
        to_connection_point=ConnectionPoint(id="0", x=20, y=5),
    )
    connections = analyze_connections([a, b, connector])
    assert len(connections) == 1
    connection = connections[0]
    assert (connection.from_shape_id, connection.to_shape_id) == ("A", "B")
    assert (connection.from_position, connection.to_position) == ("right", "left")
    assert str(connection) == "Start → flows → End"


def test_analyze_connections_unresolved_and_other_pages() -> None:
    a = _box("A", 5, 5, page="P2")
    connector = Shape1D(id="K", page_name="P1", from_shape_id="A", to_shape_id="missing")
    connection = analyze_connections([a, connector])[0]
    assert connection == ShapeConnection(connector_id="K")


def test_flatten_shapes_from_graph_and_trees() -> None:
    group = _box("G", 5, 5)
    group.add_sub_shape(_box("A", 5, 5))
    graph = ShapeGraph(roots_2d=[group], roots_1d=[Shape1D(id="K")])
    assert [s.id for s in flatten_shapes(graph)] == ["G", "A", "K"]
    assert [s.id for s in flatten_shapes([group])] == ["G", "A"]


# ---- layers ----

def test_group_shapes_by_layer() -> None:
    flow = Layer(id="0", name="Flow")
    a = _box("A", 0, 0, layers=[flow.copy()])
    b = _box("B", 0, 0, layers=[flow.copy(), Layer(id="1", name="Notes")])
    c = _box("C", 0, 0)
    grouped = group_shapes_by_layer([a, b, c])
    assert list(grouped) == [("0", "Flow"), ("1", "Notes")]
    assert grouped[("0", "Flow")] == [a, b]
    assert grouped[("1", "Notes")] == [b]


# ---- spatial ----

def test_containment_and_overlap() -> None:
    outer = _box("O", 10, 10, size=20)
    inner = _box("I", 10, 10, size=4)
    touching = _box("T", 25, 10, size=10)
    far = _box("F", 100, 100, size=2)
    assert is_contained(outer, inner)
    assert not is_contained(inner, outer)
    assert do_overlap(outer, touching)
    assert not do_overlap(outer, far)


def test_find_spatial_relationships_same_page_only() -> None:
    outer = _box("O", 10, 10, size=20)
    inner = _box("I", 10, 10, size=4)
    other_page = _box("X", 10, 10, size=4, page="P2")
    far = _box("F", 100, 100, size=2)
    connector = Shape1D(id="K", page_name="P1")
    related = find_spatial_relationships([outer, inner, other_page, far, connector])
    assert related == {("P1", "O"): [inner], ("P1", "I"): [outer]}


def test_find_spatial_relationships_same_id_on_two_pages() -> None:
    outer_1 = _box("1", 10, 10, size=20, page="P1")
    inner_1 = _box("2", 10, 10, size=4, page="P1")
    outer_2 = _box("1", 10, 10, size=20, page="P2")
    inner_2 = _box("2", 10, 10, size=4, page="P2")
    related = find_spatial_relationships([outer_1, inner_1, outer_2, inner_2])
    assert related == {
        ("P1", "1"): [inner_1],
        ("P1", "2"): [outer_1],
        ("P2", "1"): [inner_2],
        ("P2", "2"): [outer_2],
    }


# ---- summary ----

def test_summarize() -> None:
    a = _box("A", 5, 5, layers=[Layer(id="0", name="Flow")])
    b = _box("B", 25, 5)
    connector = Shape1D(id="K", text="K", page_name="P1", from_shape_id="A", to_shape_id="B",
                        from_connection_point=ConnectionPoint(id="1", x=10, y=5))
    report = summarize(ShapeGraph(document_id="doc.vsdx", roots_2d=[a, b], roots_1d=[connector]))
    assert "Document: doc.vsdx" in report
    assert "Shapes: 2 2D, 1 1D" in report
    assert "Connections: 1" in report
    assert "K: A → K → B [right -> -]" in report
    assert "0: Flow (1 shapes)" in report
    assert "Spatially related shapes: 0" in report


def test_summarize_lists_spatial_relations_per_page() -> None:
    graph = ShapeGraph(document_id="doc.vsdx", roots_2d=[
        _box("1", 10, 10, size=20, page="P1"), _box("2", 10, 10, size=4, page="P1"),
        _box("1", 10, 10, size=20, page="P2"), _box("2", 10, 10, size=4, page="P2"),
    ])
    report = summarize(graph)
    assert "Spatially related shapes: 4" in report
    assert "  P1/1: 2" in report
    assert "  P2/1: 2" in report


def test_summarize_uses_tolerance() -> None:
    a = _box("A", 5, 5)
    b = _box("B", 25, 5)
    connector = Shape1D(id="K", text="K", page_name="P1", from_shape_id="A", to_shape_id="B",
                        from_connection_point=ConnectionPoint(id="3", x=5, y=0))
    graph = ShapeGraph(document_id="doc.vsdx", roots_2d=[a, b], roots_1d=[connector])
    assert "[bottom -> -]" in summarize(graph)
    assert "[left -> -]" in summarize(graph, tolerance=0.6)
