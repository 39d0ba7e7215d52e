"""
Shape graph model

Persisted output tree: BaseShape with the Shape2D (container) and Shape1D
(connector) variants, and the ShapeGraph document container
"""
import math
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Iterator, Iterable, Tuple

from .intermediate import ConnectionPoint, Layer
from ..config import POSITION_EDGE_TOLERANCE
from ..geom.bounds import POSITIONS, classify_position, distance


@dataclass
class BaseShape:
    """Fields shared by every shape in the output tree"""
    id: str = ""
    text: str = ""
    master: str = ""
    type: str = ""
    parent_id: str = ""
    page_name: str = ""
    sub_shapes: List["BaseShape"] = field(default_factory=list)
    connection_points: List[ConnectionPoint] = field(default_factory=list)
    layers: List[Layer] = field(default_factory=list)
    layer_membership: str = ""
    shape_data: Dict[str, str] = field(default_factory=dict)

    type_discriminator = ""

    def add_sub_shape(self, shape: Optional["BaseShape"]):
        """Add a child shape once (identity based)"""
        if shape is None:
            return
        if any(existing is shape for existing in self.sub_shapes):
            return
        self.sub_shapes.append(shape)

    def add_shape_data(self, key: str, value: str):
        """Add a property; empty keys or values are ignored"""
        if key and value:
            self.shape_data[key] = value

    def parse_shape_data(self, shape_data: str):
        """
        Parse a flattened "key1=value1; key2=value2" string into shape_data

        Entries without "=" are skipped; a later duplicate key overwrites an earlier one.
        """
        if not shape_data or not shape_data.strip():
            return
        for entry in shape_data.split(";"):
            if "=" not in entry:
                continue
            key, value = entry.split("=", 1)
            self.add_shape_data(key.strip(), value.strip())

    def get_connection_point_by_id(self, point_id: str) -> Optional[ConnectionPoint]:
        """First connection point with the given ID, or None"""
        for cp in self.connection_points:
            if cp.id == point_id:
                return cp
        return None

    def get_nearest_connection_point(self, x: float, y: float) -> Tuple[Optional[ConnectionPoint], float]:
        """
        Find the connection point closest to (x, y)

        Ties keep the first point in list order.

        Returns:
            (point, distance) tuple; (None, inf) when the shape has no points
        """
        nearest = None
        min_distance = math.inf
        for cp in self.connection_points:
            d = distance(cp.x, cp.y, x, y)
            if d < min_distance:
                nearest = cp
                min_distance = d
        return nearest, min_distance

    def get_connection_points_by_position(self, position: Optional[str]) -> List[ConnectionPoint]:
        """Connection points whose ID or name mentions the position keyword"""
        keyword = (position or "").lower()
        if keyword not in POSITIONS:
            return []
        return [
            cp for cp in self.connection_points
            if keyword in cp.id.lower() or keyword in cp.name.lower()
        ]

    def iter_shapes(self) -> Iterator["BaseShape"]:
        """Yield this shape and every descendant, depth first"""
        yield self
        for child in self.sub_shapes:
            yield from child.iter_shapes()

    def get_shape_summary(self) -> str:
        lines = [f"Shape ID: {self.id}", f"Type: {self.type}"]
        if self.text:
            lines.append(f"Text: {self.text}")
        if self.master:
            lines.append(f"Master: {self.master}")
        if self.connection_points:
            lines.append(f"Connection Points: {len(self.connection_points)}")
        if self.layers:
            lines.append(f"Layers: {len(self.layers)}")
        if self.sub_shapes:
            lines.append(f"Child Shapes: {len(self.sub_shapes)}")
        return "\n".join(lines) + "\n"

    def _base_dict(self) -> Dict[str, Any]:
        return {
            "Id": self.id,
            "Text": self.text,
            "Master": self.master,
            "Type": self.type,
            "ParentId": self.parent_id,
            "SubShapes": [child.to_dict(include_type=True) for child in self.sub_shapes],
            "ConnectionPoints": [cp.to_dict() for cp in self.connection_points],
            "Layers": [layer.to_dict() for layer in self.layers],
            "LayerMembership": self.layer_membership,
            "ShapeData": dict(self.shape_data),
        }

    def to_dict(self, include_type: bool = False) -> Dict[str, Any]:
        data = self._base_dict()
        if include_type and self.type_discriminator:
            return {"$type": self.type_discriminator, **data}
        return data


@dataclass
class Shape2D(BaseShape):
    """Shape defined by a pin point and a bounding box"""
    pin_x: float = 0.0
    pin_y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    type_discriminator = "2D"

    @property
    def left(self) -> float:
        return self.pin_x - self.width / 2

    @property
    def right(self) -> float:
        return self.pin_x + self.width / 2

    @property
    def top(self) -> float:
        return self.pin_y + self.height / 2

    @property
    def bottom(self) -> float:
        return self.pin_y - self.height / 2

    def contains_point(self, x: float, y: float) -> bool:
        return self.left <= x <= self.right and self.bottom <= y <= self.top

    def classify_point(self, cp: ConnectionPoint, tolerance: float = POSITION_EDGE_TOLERANCE) -> str:
        """Position of a connection point relative to this shape's bounds"""
        return classify_position(cp.x, cp.y, self.left, self.bottom, self.width, self.height, tolerance)

    def get_organized_connection_points(self, tolerance: float = POSITION_EDGE_TOLERANCE) -> Dict[str, List[ConnectionPoint]]:
        """Connection points bucketed into top/right/bottom/left/center"""
        result: Dict[str, List[ConnectionPoint]] = {position: [] for position in POSITIONS}
        for cp in self.connection_points:
            result[self.classify_point(cp, tolerance)].append(cp)
        return result

    def get_connectors(self, connectors: Iterable["Shape1D"]) -> List["Shape1D"]:
        """Connectors that start or end at this shape"""
        return [c for c in connectors if c.from_shape_id == self.id or c.to_shape_id == self.id]

    def get_connected_shapes(
        self, shapes: Iterable["Shape2D"], connectors: Iterable["Shape1D"]
    ) -> Dict[str, List["Shape2D"]]:
        """Shapes linked to this one through connectors, split into incoming/outgoing"""
        by_id: Dict[str, Shape2D] = {}
        for shape in shapes:
            by_id.setdefault(shape.id, shape)
        result: Dict[str, List[Shape2D]] = {"incoming": [], "outgoing": []}
        for connector in connectors:
            if connector.to_shape_id == self.id and connector.from_shape_id in by_id:
                result["incoming"].append(by_id[connector.from_shape_id])
            if connector.from_shape_id == self.id and connector.to_shape_id in by_id:
                result["outgoing"].append(by_id[connector.to_shape_id])
        return result

    def get_shape_summary(self) -> str:
        summary = super().get_shape_summary()
        summary += f"Position: ({self.pin_x}, {self.pin_y})\n"
        summary += f"Size: {self.width} x {self.height}\n"
        return summary

    def _base_dict(self) -> Dict[str, Any]:
        data = super()._base_dict()
        data.update({
            "PinX": self.pin_x,
            "PinY": self.pin_y,
            "Width": self.width,
            "Height": self.height,
        })
        return data


@dataclass
class Shape1D(BaseShape):
    """Connector defined by begin and end coordinates"""
    from_shape_id: str = ""
    to_shape_id: str = ""
    from_cell: str = ""
    to_cell: str = ""
    begin_x: float = 0.0
    begin_y: float = 0.0
    end_x: float = 0.0
    end_y: float = 0.0
    # Resolved by the graph builder
    from_connection_point: Optional[ConnectionPoint] = None
    to_connection_point: Optional[ConnectionPoint] = None

    type_discriminator = "1D"

    @property
    def length(self) -> float:
        return distance(self.begin_x, self.begin_y, self.end_x, self.end_y)

    @property
    def angle(self) -> float:
        """Direction from begin to end in degrees"""
        return math.degrees(math.atan2(self.end_y - self.begin_y, self.end_x - self.begin_x))

    def get_midpoint(self) -> Tuple[float, float]:
        return ((self.begin_x + self.end_x) / 2, (self.begin_y + self.end_y) / 2)

    def is_point_near_line(self, x: float, y: float, tolerance: float = 0.1) -> bool:
        """True if (x, y) lies within tolerance of the begin-end segment"""
        dx = self.end_x - self.begin_x
        dy = self.end_y - self.begin_y
        length = math.hypot(dx, dy)
        if length < 0.0001:
            return distance(x, y, self.begin_x, self.begin_y) <= tolerance

        line_distance = abs(dy * x - dx * y + self.end_x * self.begin_y - self.end_y * self.begin_x) / length
        if line_distance > tolerance:
            return False

        # Projection must fall inside the segment
        t = ((x - self.begin_x) * dx + (y - self.begin_y) * dy) / (dx * dx + dy * dy)
        return 0 <= t <= 1

    def get_shape_summary(self) -> str:
        summary = super().get_shape_summary()
        summary += f"From: ({self.begin_x}, {self.begin_y})\n"
        summary += f"To: ({self.end_x}, {self.end_y})\n"
        summary += f"Length: {self.length:.2f}\n"
        if self.from_shape_id:
            summary += f"Connected From: {self.from_shape_id}\n"
        if self.to_shape_id:
            summary += f"Connected To: {self.to_shape_id}\n"
        return summary

    def _base_dict(self) -> Dict[str, Any]:
        data = super()._base_dict()
        data.update({
            "FromShapeId": self.from_shape_id,
            "ToShapeId": self.to_shape_id,
            "FromCell": self.from_cell,
            "ToCell": self.to_cell,
            "BeginX": self.begin_x,
            "BeginY": self.begin_y,
            "EndX": self.end_x,
            "EndY": self.end_y,
            "FromConnectionPoint": self.from_connection_point.to_dict() if self.from_connection_point else None,
            "ToConnectionPoint": self.to_connection_point.to_dict() if self.to_connection_point else None,
        })
        return data


@dataclass
class ShapeGraph:
    """Final shape tree for one document"""
    document_id: str = ""
    roots_2d: List[Shape2D] = field(default_factory=list)
    roots_1d: List[Shape1D] = field(default_factory=list)

    def iter_shapes(self) -> Iterator[BaseShape]:
        """Every shape in the tree, each exactly once"""
        for root in self.roots_2d:
            yield from root.iter_shapes()
        for root in self.roots_1d:
            yield from root.iter_shapes()

    def find(self, shape_id: str, page_name: Optional[str] = None) -> Optional[BaseShape]:
        for shape in self.iter_shapes():
            if shape.id == shape_id and (page_name is None or shape.page_name == page_name):
                return shape
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filename": self.document_id,
            "Shape2D": [shape.to_dict() for shape in self.roots_2d],
            "Shape1D": [shape.to_dict() for shape in self.roots_1d],
        }
