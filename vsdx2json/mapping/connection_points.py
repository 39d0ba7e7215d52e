"""
Connection point mapping module

Discovers connection points in the three encodings found in diagram packages:
- Row format: <Connections><Row IX= Name=><Cell N="X" V=/>...</Row></Connections>
- Section format: <Section N="Connection"><Row N=|IX=><Cell N="X" V="Width*0.5"/>...</Row></Section>
- Direct-element format: <Connection ID= NameU=><X>..</X><Y>..</Y></Connection>

Points from all formats are kept in that order; there is no de-duplication across formats.
"""
from typing import List, Optional
from lxml import etree as ET

from ..geom.formula import evaluate_formula, parse_float
from ..io.xml_utils import children, descendants, find_sections, child_text, get_attr
from ..logger import ExtractionLogger
from ..model.intermediate import ConnectionPoint


class ConnectionPointExtractor:
    """Extract connection points from a shape or master element"""

    def __init__(self, logger: Optional[ExtractionLogger] = None):
        """
        Args:
            logger: ExtractionLogger instance (optional)
        """
        self.logger = logger

    def extract(self, element: ET._Element, width: float = 0.0, height: float = 0.0,
                deep: bool = False, owner_id: str = "") -> List[ConnectionPoint]:
        """
        Collect connection points from all supported formats

        Args:
            element: Shape (or Master) element
            width: Owner width, used to evaluate "Width*n" formulas
            height: Owner height, used to evaluate "Height*n" formulas
            deep: Search Connections/Section containers anywhere below element
                  instead of only among its direct children (used for masters)
            owner_id: ID used in debug messages

        Returns:
            Points with a non-empty ID and a non-origin coordinate, in discovery order
        """
        points: List[ConnectionPoint] = []
        points.extend(self._from_rows(element, deep))
        points.extend(self._from_sections(element, width, height, deep))
        points.extend(self._from_connection_elements(element))

        kept = [cp for cp in points if cp.is_valid()]
        if self.logger:
            for cp in kept:
                self.logger.debug(f"Found connection point {cp.id} at ({cp.x}, {cp.y}) for shape {owner_id}")
        return kept

    def _from_rows(self, element: ET._Element, deep: bool) -> List[ConnectionPoint]:
        containers = descendants(element, "Connections") if deep else children(element, "Connections")
        points = []
        for container in containers:
            for row in children(container, "Row"):
                values = {"X": 0.0, "Y": 0.0, "DirX": "", "DirY": "", "Type": ""}
                for cell in children(row, "Cell"):
                    name = cell.get("N") or ""
                    raw = cell.get("V") or ""
                    if name in ("X", "Y"):
                        number = parse_float(raw)
                        if number is not None:
                            values[name] = number
                    elif name in ("DirX", "DirY", "Type"):
                        values[name] = raw
                points.append(ConnectionPoint(
                    id=get_attr(row, "IX"),
                    name=get_attr(row, "Name"),
                    type=values["Type"],
                    x=values["X"],
                    y=values["Y"],
                    dir_x=values["DirX"],
                    dir_y=values["DirY"],
                ))
        return points

    def _from_sections(self, element: ET._Element, width: float, height: float,
                       deep: bool) -> List[ConnectionPoint]:
        points = []
        for section in find_sections(element, "Connection", deep=deep):
            for row in children(section, "Row"):
                values = {"X": 0.0, "Y": 0.0, "DirX": "", "DirY": "", "Type": ""}
                for cell in children(row, "Cell"):
                    name = cell.get("N") or ""
                    if name in ("X", "Y"):
                        raw = cell.get("V") or cell.get("F") or ""
                        number = parse_float(raw)
                        values[name] = number if number is not None else evaluate_formula(raw, width, height)
                    elif name in ("DirX", "DirY", "Type"):
                        values[name] = cell.get("V") or ""
                row_name = get_attr(row, "N")
                points.append(ConnectionPoint(
                    id=row_name or get_attr(row, "IX"),
                    name=row_name,
                    type=values["Type"],
                    x=values["X"],
                    y=values["Y"],
                    dir_x=values["DirX"],
                    dir_y=values["DirY"],
                ))
        return points

    def _from_connection_elements(self, element: ET._Element) -> List[ConnectionPoint]:
        points = []
        for conn in descendants(element, "Connection"):
            x = parse_float(child_text(conn, "X"))
            y = parse_float(child_text(conn, "Y"))
            points.append(ConnectionPoint(
                id=get_attr(conn, "ID"),
                name=get_attr(conn, "NameU"),
                type=(child_text(conn, "Type") or "").strip(),
                x=x if x is not None else 0.0,
                y=y if y is not None else 0.0,
                dir_x=(child_text(conn, "DirX") or "").strip(),
                dir_y=(child_text(conn, "DirY") or "").strip(),
            ))
        return points
