"""
Master stencil resolution

Parses the master parts of a document into MasterInfo records keyed by master ID:
identity, 1D classification, default size, connection points, layers and custom data
"""
from pathlib import PurePosixPath
from typing import Dict, Iterable, List, Mapping, Optional, Union
from lxml import etree as ET

from ..config import ExtractionConfig, default_config
from ..geom.formula import to_float
from ..io.xml_utils import (
    cell_value, child_text, descendants, first_child, first_descendant,
    get_attr, local_name, parse_xml,
)
from ..logger import ExtractionLogger
from ..mapping.connection_points import ConnectionPointExtractor
from ..mapping.layer_map import LayerExtractor
from ..model.intermediate import MasterInfo


def stencil_name_from_part(part_name: str) -> str:
    """Stencil name: file stem up to the first "_" (e.g. "basic_u.xml" -> "basic")"""
    stem = PurePosixPath(part_name).stem
    return stem.split("_", 1)[0]


def group_by_stencil(masters: Iterable[MasterInfo]) -> Dict[str, List[MasterInfo]]:
    """Group masters by stencil name, preserving input order"""
    result: Dict[str, List[MasterInfo]] = {}
    for master in masters:
        result.setdefault(master.stencil_name, []).append(master)
    return result


class MasterResolver:
    """Build the master map for one document"""

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

    def resolve(self, parts: Mapping[str, Union[ET._Element, str, bytes]]) -> Dict[str, MasterInfo]:
        """
        Parse every master part

        Args:
            parts: Part name -> parsed root element or raw XML

        Returns:
            Master ID -> MasterInfo (a later definition of the same ID replaces an earlier one)
        """
        masters: Dict[str, MasterInfo] = {}
        for part_name, part in parts.items():
            root = part if isinstance(part, ET._Element) else parse_xml(part)
            for master in self.parse_part(part_name, root):
                masters[master.id] = master
        if self.logger:
            self.logger.debug(f"Resolved {len(masters)} masters from {len(parts)} parts")
        return masters

    def parse_part(self, part_name: str, root: ET._Element) -> List[MasterInfo]:
        stencil_name = stencil_name_from_part(part_name)
        candidates = [root] if local_name(root) == "Master" else []
        candidates.extend(descendants(root, "Master"))
        result = []
        for element in candidates:
            master = self.parse_master(element, stencil_name)
            if master is None:
                if self.logger:
                    self.logger.warn_skipped_master(get_attr(element, "Name"), part_name)
                continue
            result.append(master)
        return result

    def parse_master(self, element: ET._Element, stencil_name: str = "") -> Optional[MasterInfo]:
        """Parse one Master element; returns None when it has no ID"""
        master_id = get_attr(element, "ID")
        if not master_id:
            return None

        name = get_attr(element, "Name") or get_attr(element, "NameU")
        master = MasterInfo(
            id=master_id,
            name=name,
            stencil_name=stencil_name,
            base_id=get_attr(element, "BaseID"),
            unique_id=get_attr(element, "UniqueID"),
            type=self._master_type(element),
        )

        has_type_cell = any(
            cell.get("N") == "Type" and cell.get("V") == "1"
            for cell in descendants(element, "Cell")
        )
        master.is_1d_shape = has_type_cell or self.config.connector_keyword.lower() in name.lower()

        master.width, master.height = self._default_size(element)
        master.connection_points = self.point_extractor.extract(
            element, master.width, master.height, deep=True, owner_id=f"master {master_id}"
        )
        master.layers = self.layer_extractor.extract_definitions(element)
        self._collect_shape_data(element, master)

        if self.logger:
            self.logger.debug(f"Master {master}")
        return master

    @staticmethod
    def _master_type(element: ET._Element) -> str:
        master_type = get_attr(element, "Type")
        if master_type:
            return master_type
        return get_attr(first_descendant(element, "Shape"), "Type")

    @staticmethod
    def _default_size(element: ET._Element) -> tuple:
        xform = first_child(element, "XForm")
        if xform is None:
            xform = first_descendant(element, "XForm")
        if xform is not None:
            return to_float(child_text(xform, "Width")), to_float(child_text(xform, "Height"))

        # Cell format: <Shape><Cell N="Width" V=".."/></Shape>
        shape = first_descendant(element, "Shape")
        if shape is not None:
            return to_float(cell_value(shape, "Width")), to_float(cell_value(shape, "Height"))
        return 0.0, 0.0

    def _collect_shape_data(self, element: ET._Element, master: MasterInfo):
        for prop in descendants(element, "Prop"):
            master.add_shape_data(get_attr(prop, "Name"), get_attr(prop, "Value"))
        allowed = set(self.config.master_data_cells)
        for cell in descendants(element, "Cell"):
            cell_name = get_attr(cell, "N")
            if cell_name in allowed:
                master.add_shape_data(cell_name, get_attr(cell, "V"))