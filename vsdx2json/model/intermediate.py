"""
Intermediate model module

Plain records produced while parsing the XML parts: connection points, layers,
master stencil information and the flat per-shape staging record
"""
from dataclasses import dataclass, field, replace
from typing import List, Dict, Any

from ..config import SHAPE_DATA_SEPARATOR


@dataclass(frozen=True)
class ConnectionPoint:
    """Named anchor location on a shape, in shape-local units"""
    id: str = ""
    name: str = ""
    type: str = ""
    x: float = 0.0
    y: float = 0.0
    dir_x: str = ""
    dir_y: str = ""

    def is_valid(self) -> bool:
        """A point is kept only when it has an ID and a non-origin coordinate"""
        return bool(self.id) and (self.x != 0 or self.y != 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "Id": self.id,
            "Name": self.name,
            "Type": self.type,
            "X": self.x,
            "Y": self.y,
            "DirX": self.dir_x,
            "DirY": self.dir_y,
        }


@dataclass
class Layer:
    """Visual layer definition (IDs are unique within a page only)"""
    id: str = ""
    name: str = ""
    index: int = 0
    visible: bool = False
    print: bool = False
    active: bool = False
    lock: bool = False
    color: str = ""
    status: str = ""

    def copy(self) -> "Layer":
        """Shapes own copies of layers, never shared instances"""
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "Id": self.id,
            "Name": self.name,
            "Index": self.index,
            "Visible": self.visible,
            "Print": self.print,
            "Active": self.active,
            "Lock": self.lock,
            "Color": self.color,
            "Status": self.status,
        }


@dataclass
class MasterInfo:
    """
    Master stencil definition

    Built once per document from the master parts and read-only afterwards;
    shapes copy the fields they need.
    """
    id: str = ""
    name: str = ""
    stencil_name: str = ""
    base_id: str = ""
    unique_id: str = ""
    type: str = ""
    is_1d_shape: bool = False
    width: float = 0.0
    height: float = 0.0
    connection_points: List[ConnectionPoint] = field(default_factory=list)
    layers: List[Layer] = field(default_factory=list)
    shape_data: Dict[str, str] = field(default_factory=dict)

    @property
    def has_connection_points(self) -> bool:
        return len(self.connection_points) > 0

    @property
    def has_layers(self) -> bool:
        return len(self.layers) > 0

    def add_shape_data(self, key: str, value: str):
        """Add a property; empty keys or values are ignored"""
        if key and value:
            self.shape_data[key] = value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "Id": self.id,
            "Name": self.name,
            "StencilName": self.stencil_name,
            "BaseId": self.base_id,
            "UniqueId": self.unique_id,
            "Type": self.type,
            "Is1DShape": self.is_1d_shape,
            "Width": self.width,
            "Height": self.height,
            "ConnectionPoints": [cp.to_dict() for cp in self.connection_points],
            "Layers": [layer.to_dict() for layer in self.layers],
            "ShapeData": dict(self.shape_data),
        }

    def __str__(self) -> str:
        return (
            f"{self.name} (ID: {self.id}, Type: {self.type}, "
            f"ConnectionPoints: {len(self.connection_points)}, Layers: {len(self.layers)})"
        )


@dataclass
class ShapeRecord:
    """
    Staging record: one per raw shape element, group children included.

    Created by the shape extractor, consumed by the graph builder.
    """
    shape_id: str = ""
    shape_name: str = ""
    page_name: str = ""
    parent_shape_id: str = ""
    shape_text: str = ""
    shape_type: str = ""
    master_name: str = ""
    is_1d_shape: bool = False
    # 2D geometry
    position_x: float = 0.0
    position_y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    # 1D geometry
    begin_x: float = 0.0
    begin_y: float = 0.0
    end_x: float = 0.0
    end_y: float = 0.0
    # Connector endpoint descriptors
    begin_connected_to: str = ""
    end_connected_to: str = ""
    connection_points: str = ""
    connection_points_array: List[ConnectionPoint] = field(default_factory=list)
    layers: List[Layer] = field(default_factory=list)
    layer_membership: str = ""
    shape_data: str = ""

    def append_shape_data(self, entries: List[str]):
        """Append key=value entries to the flattened property string"""
        entries = [entry for entry in entries if entry]
        if not entries:
            return
        joined = SHAPE_DATA_SEPARATOR.join(entries)
        if self.shape_data:
            self.shape_data = f"{self.shape_data}{SHAPE_DATA_SEPARATOR}{joined}"
        else:
            self.shape_data = joined

    def has_layer(self, layer_id: str) -> bool:
        return any(layer.id == layer_id for layer in self.layers)

    def to_row(self) -> Dict[str, Any]:
        """Scalar fields for the staging CSV export"""
        return {
            "ShapeId": self.shape_id,
            "ShapeName": self.shape_name,
            "PageName": self.page_name,
            "ParentShapeId": self.parent_shape_id,
            "ShapeText": self.shape_text,
            "ShapeType": self.shape_type,
            "MasterName": self.master_name,
            "Is1DShape": self.is_1d_shape,
            "PositionX": self.position_x,
            "PositionY": self.position_y,
            "Width": self.width,
            "Height": self.height,
            "BeginX": self.begin_x,
            "BeginY": self.begin_y,
            "EndX": self.end_x,
            "EndY": self.end_y,
            "BeginConnectedTo": self.begin_connected_to,
            "EndConnectedTo": self.end_connected_to,
            "ConnectionPoints": self.connection_points,
            "ConnectionPointCount": len(self.connection_points_array),
            "LayerMembership": self.layer_membership,
            "ShapeData": self.shape_data,
        }


STAGING_CSV_FIELDS: List[str] = list(ShapeRecord().to_row().keys())
