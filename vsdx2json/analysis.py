"""
Relationship analysis module

Post-hoc enrichment of a built shape graph: connector source/target pairing with
connection point positions, grouping by layer, and spatial containment/overlap
between 2D shapes
"""
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple, Union

from .config import POSITION_EDGE_TOLERANCE
from .model.shapes import BaseShape, Shape1D, Shape2D, ShapeGraph


@dataclass
class ShapeConnection:
    """A connector with the shapes it links"""
    connector_id: str = ""
    connector_text: str = ""
    from_shape_id: str = ""
    from_shape_text: str = ""
    to_shape_id: str = ""
    to_shape_text: str = ""
    # Position of the attached connection point on the source/target shape
    from_position: str = ""
    to_position: str = ""

    def __str__(self) -> str:
        return f"{self.from_shape_text} → {self.connector_text} → {self.to_shape_text}"


def flatten_shapes(shapes: Union[ShapeGraph, Iterable[BaseShape]]) -> List[BaseShape]:
    """Every shape of a graph (or of the given trees), each once"""
    if isinstance(shapes, ShapeGraph):
        return list(shapes.iter_shapes())
    result: List[BaseShape] = []
    for shape in shapes:
        result.extend(shape.iter_shapes())
    return result


def analyze_connections(shapes: Iterable[BaseShape],
                        tolerance: float = POSITION_EDGE_TOLERANCE) -> List[ShapeConnection]:
    """Pair each connector with its source/target 2D shapes"""
    shapes = list(shapes)
    lookup: Dict[Tuple[str, str], Shape2D] = {}
    for shape in shapes:
        if isinstance(shape, Shape2D):
            lookup.setdefault((shape.page_name, shape.id), shape)

    connections = []
    for connector in shapes:
        if not isinstance(connector, Shape1D):
            continue
        connection = ShapeConnection(connector_id=connector.id, connector_text=connector.text)
        source = lookup.get((connector.page_name, connector.from_shape_id)) if connector.from_shape_id else None
        if source is not None:
            connection.from_shape_id = source.id
            connection.from_shape_text = source.text
            if connector.from_connection_point is not None:
                connection.from_position = source.classify_point(connector.from_connection_point, tolerance)
        target = lookup.get((connector.page_name, connector.to_shape_id)) if connector.to_shape_id else None
        if target is not None:
            connection.to_shape_id = target.id
            connection.to_shape_text = target.text
            if connector.to_connection_point is not None:
                connection.to_position = target.classify_point(connector.to_connection_point, tolerance)
        connections.append(connection)
    return connections


def group_shapes_by_layer(shapes: Iterable[BaseShape]) -> Dict[Tuple[str, str], List[BaseShape]]:
    """(layer id, layer name) -> shapes on that layer"""
    result: Dict[Tuple[str, str], List[BaseShape]] = {}
    for shape in shapes:
        for layer in shape.layers:
            result.setdefault((layer.id, layer.name), []).append(shape)
    return result


def is_contained(outer: Shape2D, inner: Shape2D) -> bool:
    """inner lies completely inside outer's bounding box"""
    return (inner.left >= outer.left and inner.right <= outer.right
            and inner.bottom >= outer.bottom and inner.top <= outer.top)


def do_overlap(a: Shape2D, b: Shape2D) -> bool:
    """Axis-aligned bounding boxes touch or intersect"""
    if a.right < b.left or b.right < a.left:
        return False
    if a.bottom > b.top or b.bottom > a.top:
        return False
    return True


def find_spatial_relationships(shapes: Iterable[BaseShape]) -> Dict[Tuple[str, str], List[Shape2D]]:
    """
    (page name, shape ID) -> 2D shapes on the same page that contain, are contained by, or overlap it

    Shapes without related shapes are omitted.
    """
    shapes_2d = [shape for shape in shapes if isinstance(shape, Shape2D)]
    result: Dict[Tuple[str, str], List[Shape2D]] = {}
    for shape in shapes_2d:
        related = [
            other for other in shapes_2d
            if other is not shape
            and other.page_name == shape.page_name
            and (is_contained(shape, other) or is_contained(other, shape) or do_overlap(shape, other))
        ]
        if related:
            result.setdefault((shape.page_name, shape.id), []).extend(related)
    return result


def summarize(graph: ShapeGraph, tolerance: float = POSITION_EDGE_TOLERANCE) -> str:
    """Advisory text report for a document; tolerance is used for connection point positions"""
    shapes = flatten_shapes(graph)
    connections = analyze_connections(shapes, tolerance)
    layers = group_shapes_by_layer(shapes)
    spatial = find_spatial_relationships(shapes)

    count_2d = sum(1 for shape in shapes if isinstance(shape, Shape2D))
    lines = [
        f"Document: {graph.document_id}",
        f"Shapes: {count_2d} 2D, {len(shapes) - count_2d} 1D "
        f"({len(graph.roots_2d)} 2D roots, {len(graph.roots_1d)} 1D roots)",
        f"Connections: {len(connections)}",
    ]
    for connection in connections:
        ends = ""
        if connection.from_position or connection.to_position:
            ends = f" [{connection.from_position or '-'} -> {connection.to_position or '-'}]"
        lines.append(f"  {connection.connector_id}: {connection}{ends}")
    lines.append(f"Layers: {len(layers)}")
    for (layer_id, layer_name), members in layers.items():
        lines.append(f"  {layer_id}: {layer_name} ({len(members)} shapes)")
    lines.append(f"Spatially related shapes: {len(spatial)}")
    for (page_name, shape_id), related in spatial.items():
        lines.append(f"  {page_name}/{shape_id}: {', '.join(other.id for other in related)}")
    return "\n".join(lines)
