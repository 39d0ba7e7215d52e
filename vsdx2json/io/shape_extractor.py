"""
Shape extraction module

Walks the Shape elements of a page depth first (group children included) and
produces one ShapeRecord per element, enriched with geometry, master-derived
defaults, connector endpoints, connection points and layer membership
"""
from typing import Dict, Iterable, List, Optional
from lxml import etree as ET

from ..config import ExtractionConfig, default_config
from ..geom.formula import parse_float, to_float
from ..logger import ExtractionLogger
from ..mapping.connect_map import ConnectIndex
from ..mapping.connection_points import ConnectionPointExtractor
from ..mapping.layer_map import LayerExtractor
from ..model.intermediate import MasterInfo, ShapeRecord
from .xml_utils import (
    ancestor, cell_value, child_text, children, descendants, element_text,
    first_child, first_descendant, get_attr, local_name,
)

_ENDPOINT_CELLS = ("BeginX", "BeginY", "EndX", "EndY")
_XFORM_CELLS = ("PinX", "PinY", "Width", "Height")


def top_level_shapes(page_root: ET._Element) -> List[ET._Element]:
    """Shape elements of a page that are not nested inside another shape"""
    if local_name(page_root) == "Shapes":
        collections = [page_root]
    else:
        collections = [c for c in descendants(page_root, "Shapes") if ancestor(c, "Shape") is None]
    if not collections:
        # No <Shapes> wrapper: outermost Shape elements
        return [s for s in descendants(page_root, "Shape") if ancestor(s, "Shape") is None]
    shapes = []
    for collection in collections:
        shapes.extend(children(collection, "Shape"))
    return shapes


class ShapeExtractor:
    """Produce staging records from page XML"""

    def __init__(self, logger: Optional[ExtractionLogger] = None, config: Optional[ExtractionConfig] = None):
        """
        Args:
            logger: ExtractionLogger instance (optional)
            config: ExtractionConfig instance (uses default_config if None)
        """
        self.config = config or default_config
        self.logger = logger
        self.point_extractor = ConnectionPointExtractor(logger)
        self.layer_extractor = LayerExtractor(logger)

    def extract_page(
        self,
        page_root: ET._Element,
        page_name: str,
        masters: Dict[str, MasterInfo],
        connects: Optional[ConnectIndex] = None,
    ) -> List[ShapeRecord]:
        """Extract every shape of one page"""
        return self.extract(top_level_shapes(page_root), page_name, masters, connects)

    def extract(
        self,
        shapes: Iterable[ET._Element],
        page_name: str,
        masters: Dict[str, MasterInfo],
        connects: Optional[ConnectIndex] = None,
        parent_id: str = "",
        records: Optional[List[ShapeRecord]] = None,
    ) -> List[ShapeRecord]:
        """
        Recursively extract shapes in document order

        Args:
            shapes: Shape elements to process
            page_name: Name of the owning page
            masters: Master ID -> MasterInfo
            connects: Connect index of the page (optional)
            parent_id: ID of the enclosing group shape ("" at page level)
            records: List to append to (a new list if None)

        Returns:
            Staging records; a group precedes its children
        """
        if records is None:
            records = []
        for shape in shapes:
            record = self.extract_shape(shape, page_name, masters, connects, parent_id)
            records.append(record)
            if record.shape_type == "Group":
                group_children = [
                    child
                    for collection in children(shape, "Shapes")
                    for child in children(collection, "Shape")
                ]
                if group_children:
                    self.extract(group_children, page_name, masters, connects, record.shape_id, records)
        return records

    def extract_shape(
        self,
        shape: ET._Element,
        page_name: str,
        masters: Dict[str, MasterInfo],
        connects: Optional[ConnectIndex] = None,
        parent_id: str = "",
    ) -> ShapeRecord:
        """Build the staging record for a single Shape element (children are not visited)"""
        record = ShapeRecord(
            shape_id=get_attr(shape, "ID"),
            shape_name=get_attr(shape, "Name"),
            page_name=page_name,
            parent_shape_id=parent_id or "",
            shape_type=get_attr(shape, "Type"),
        )
        # Structural hint only; the master name decides below
        record.is_1d_shape = any(
            cell.get("N") == "Type" and cell.get("V") == "1"
            for cell in descendants(shape, "Cell")
        )

        record.shape_text = element_text(first_descendant(shape, "Text"))
        self._read_xform(shape, record)
        self._read_xform_1d(shape, record)
        self._apply_master(shape, record, masters)
        self._read_props(shape, record)

        if record.is_1d_shape and connects is not None:
            entry = connects.get(record.shape_id)
            if entry is not None:
                record.begin_connected_to = entry.begin_connected_to
                record.end_connected_to = entry.end_connected_to
                record.connection_points = entry.descriptor

        record.connection_points_array.extend(
            self.point_extractor.extract(shape, record.width, record.height, owner_id=record.shape_id)
        )
        self.layer_extractor.apply(shape, record)
        return record

    def _read_xform(self, shape: ET._Element, record: ShapeRecord):
        xform = first_child(shape, "XForm")
        if xform is not None:
            values = [to_float(child_text(xform, name)) for name in _XFORM_CELLS]
        else:
            # Cell format: <Cell N="PinX" V=".."/> directly under the shape
            values = [to_float(cell_value(shape, name)) for name in _XFORM_CELLS]
        record.position_x, record.position_y, record.width, record.height = values

    def _read_xform_1d(self, shape: ET._Element, record: ShapeRecord):
        values = {name: 0.0 for name in _ENDPOINT_CELLS}
        xform_1d = first_child(shape, "XForm1D")
        if xform_1d is not None:
            for name in _ENDPOINT_CELLS:
                values[name] = to_float(child_text(xform_1d, name))
            if self.logger:
                self.logger.debug(f"XForm1D found for shape {record.shape_id}: {values}")

        # Endpoint cells anywhere below the shape override XForm1D; last one wins
        for cell in descendants(shape, "Cell"):
            name = cell.get("N")
            if name in values:
                number = parse_float(cell.get("V"))
                if number is not None:
                    values[name] = number
        record.begin_x = values["BeginX"]
        record.begin_y = values["BeginY"]
        record.end_x = values["EndX"]
        record.end_y = values["EndY"]

    def _apply_master(self, shape: ET._Element, record: ShapeRecord, masters: Dict[str, MasterInfo]):
        master_id = get_attr(shape, "Master")
        master = masters.get(master_id) if master_id else None
        if master_id and master is None and self.logger:
            self.logger.warn_unresolved_master(record.shape_id, master_id, record.page_name)

        if master is not None:
            record.master_name = master.name
            record.connection_points_array.extend(master.connection_points)
            record.layers.extend(layer.copy() for layer in master.layers)
            record.append_shape_data([f"{key}={value}" for key, value in master.shape_data.items()])
            if self.config.inherit_master_size:
                if record.width == 0:
                    record.width = master.width
                if record.height == 0:
                    record.height = master.height

        explicit_1d = record.is_1d_shape
        keyword = self.config.connector_keyword.lower()
        record.is_1d_shape = bool(record.master_name) and keyword in record.master_name.lower()
        if explicit_1d != record.is_1d_shape and self.logger:
            self.logger.debug(
                f"Shape {record.shape_id}: 1D classification {explicit_1d} -> {record.is_1d_shape} "
                f"from master name {record.master_name!r}"
            )

    @staticmethod
    def _read_props(shape: ET._Element, record: ShapeRecord):
        entries = []
        for prop in descendants(shape, "Prop"):
            name = get_attr(prop, "Name")
            value = get_attr(prop, "Value")
            if name and value:
                entries.append(f"{name}={value}")
        record.append_shape_data(entries)
