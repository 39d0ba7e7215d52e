"""
Shape graph building module

Turns the flat staging records of a document into the final tree: 1D/2D
partition, connector endpoint resolution against specific connection points,
re-parenting of group children and removal of re-parented shapes from the roots
"""
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from ..logger import ExtractionLogger
from ..model.intermediate import ConnectionPoint, ShapeRecord
from ..model.shapes import BaseShape, Shape1D, Shape2D, ShapeGraph

ShapeKey = Tuple[str, str]  # (page name, shape ID)


def descriptor_segments(descriptor: str) -> List[str]:
    """Split an accumulated Connect descriptor into its per-record segments"""
    return [segment.strip() for segment in (descriptor or "").split(";") if segment.strip()]


def part_tokens(segment: str) -> Iterator[str]:
    """Values of "...Part=value" tokens in a descriptor segment, in order"""
    for token in segment.split(","):
        if "=" not in token:
            continue
        key, value = token.split("=", 1)
        if "part" in key.lower() and value.strip():
            yield value.strip()


def resolve_connection_point(shape: BaseShape, segment: str, x: float, y: float) -> Optional[ConnectionPoint]:
    """
    Pick the connection point of shape a connector end attaches to

    A Part token naming an existing point ID wins; otherwise the point nearest
    to (x, y) is used (first in list order on ties).
    """
    for point_id in part_tokens(segment):
        point = shape.get_connection_point_by_id(point_id)
        if point is not None:
            return point
    point, _ = shape.get_nearest_connection_point(x, y)
    return point


class ShapeGraphBuilder:
    """Build a ShapeGraph from staging records"""

    def __init__(self, logger: Optional[ExtractionLogger] = None):
        """
        Args:
            logger: ExtractionLogger instance (optional)
        """
        self.logger = logger

    def build(self, records: Iterable[ShapeRecord], document_id: str = "") -> ShapeGraph:
        """
        Build the shape tree

        Records are not modified, so building twice from the same list yields
        equal graphs made of fresh objects.

        Args:
            records: Staging records of every page of one document
            document_id: Caller-supplied document identity (source path/name)

        Returns:
            ShapeGraph whose roots hold every shape exactly once
        """
        shapes_2d: Dict[ShapeKey, Shape2D] = {}
        shapes_1d: Dict[ShapeKey, Shape1D] = {}
        for record in records:
            key = (record.page_name, record.shape_id)
            if key in shapes_2d or key in shapes_1d:
                if self.logger:
                    self.logger.warn_duplicate_shape(record.shape_id, record.page_name)
                continue
            if record.is_1d_shape:
                shapes_1d[key] = self._make_1d(record)
            else:
                shapes_2d[key] = self._make_2d(record)

        for connector in shapes_1d.values():
            self._resolve_endpoints(connector, shapes_2d, shapes_1d)

        reparented_2d = self._reparent(shapes_2d, shapes_2d)
        reparented_1d = self._reparent(shapes_1d, shapes_2d)

        graph = ShapeGraph(
            document_id=document_id,
            roots_2d=[shape for key, shape in shapes_2d.items() if key not in reparented_2d],
            roots_1d=[shape for key, shape in shapes_1d.items() if key not in reparented_1d],
        )
        if self.logger:
            self.logger.debug(
                f"Built graph for {document_id}: {len(shapes_2d)} 2D / {len(shapes_1d)} 1D shapes, "
                f"{len(graph.roots_2d)} 2D roots, {len(graph.roots_1d)} 1D roots"
            )
        return graph

    @staticmethod
    def _populate(shape: BaseShape, record: ShapeRecord):
        shape.connection_points = list(record.connection_points_array)
        shape.layers = [layer.copy() for layer in record.layers]
        shape.layer_membership = record.layer_membership
        shape.parse_shape_data(record.shape_data)

    def _make_2d(self, record: ShapeRecord) -> Shape2D:
        shape = Shape2D(
            id=record.shape_id,
            text=record.shape_text,
            master=record.master_name,
            type=record.shape_type,
            parent_id=record.parent_shape_id,
            page_name=record.page_name,
            pin_x=record.position_x,
            pin_y=record.position_y,
            width=record.width,
            height=record.height,
        )
        self._populate(shape, record)
        return shape

    def _make_1d(self, record: ShapeRecord) -> Shape1D:
        shape = Shape1D(
            id=record.shape_id,
            text=record.shape_text,
            master=record.master_name,
            type=record.shape_type,
            parent_id=record.parent_shape_id,
            page_name=record.page_name,
            from_shape_id=record.begin_connected_to,
            to_shape_id=record.end_connected_to,
            from_cell=record.connection_points,
            to_cell=record.connection_points,
            begin_x=record.begin_x,
            begin_y=record.begin_y,
            end_x=record.end_x,
            end_y=record.end_y,
        )
        self._populate(shape, record)
        return shape

    def _find_shape(self, page_name: str, shape_id: str,
                    shapes_2d: Dict[ShapeKey, Shape2D],
                    shapes_1d: Dict[ShapeKey, Shape1D]) -> Optional[BaseShape]:
        key = (page_name, shape_id)
        return shapes_2d.get(key) or shapes_1d.get(key)

    def _resolve_endpoints(self, connector: Shape1D,
                           shapes_2d: Dict[ShapeKey, Shape2D],
                           shapes_1d: Dict[ShapeKey, Shape1D]):
        if connector.from_shape_id:
            source = self._find_shape(connector.page_name, connector.from_shape_id, shapes_2d, shapes_1d)
            if source is None:
                if self.logger:
                    self.logger.warn_unresolved_connection(connector.id, connector.from_shape_id, "source")
            else:
                segments = descriptor_segments(connector.from_cell)
                connector.from_connection_point = resolve_connection_point(
                    source, segments[0] if segments else "", connector.begin_x, connector.begin_y
                )

        if connector.to_shape_id:
            target = self._find_shape(connector.page_name, connector.to_shape_id, shapes_2d, shapes_1d)
            if target is None:
                if self.logger:
                    self.logger.warn_unresolved_connection(connector.id, connector.to_shape_id, "target")
            else:
                segments = descriptor_segments(connector.to_cell)
                connector.to_connection_point = resolve_connection_point(
                    target, segments[-1] if segments else "", connector.end_x, connector.end_y
                )

    @staticmethod
    def _reparent(shapes: Dict[ShapeKey, BaseShape], parents: Dict[ShapeKey, Shape2D]) -> set:
        """Attach shapes to their 2D parent; returns the keys that were moved"""
        moved = set()
        for key, shape in shapes.items():
            if not shape.parent_id:
                continue
            parent = parents.get((shape.page_name, shape.parent_id))
            if parent is None or parent is shape:
                continue
            parent.add_sub_shape(shape)
            moved.add(key)
        return moved
