"""
Layer mapping module

Resolves a shape's layer membership (LayerMem/LayerMember) and the detailed layer
definitions it refers to, looked up first inside the shape and then on the owning page
"""
from typing import List, Optional, Iterator, Tuple
from lxml import etree as ET

from ..io.xml_utils import (
    ancestor, cell_value, children, descendants, element_text, find_sections,
    first_child, get_attr,
)
from ..logger import ExtractionLogger
from ..model.intermediate import Layer, ShapeRecord

_LAYER_BOOL_CELLS = ("Visible", "Print", "Active", "Lock")


def _split_ids(text: Optional[str]) -> List[str]:
    """Split "0;1" style membership lists"""
    if not text:
        return []
    return [part.strip() for part in text.split(";") if part.strip()]


class LayerExtractor:
    """Extract layer membership and layer definitions"""

    def __init__(self, logger: Optional[ExtractionLogger] = None):
        """
        Args:
            logger: ExtractionLogger instance (optional)
        """
        self.logger = logger

    @staticmethod
    def parse_layer(element: ET._Element, layer_id: Optional[str] = None) -> Layer:
        """
        Build a Layer from a <Layer IX=..> element or a Section N="Layer" row

        Detail values come from nested Cell N=.. V=.. elements; flags are true only for "1".
        """
        layer_id = layer_id if layer_id is not None else get_attr(element, "IX")
        try:
            index = int(layer_id)
        except ValueError:
            index = 0
        name = cell_value(element, "Name")
        flags = {flag: (cell_value(element, flag) or "") == "1" for flag in _LAYER_BOOL_CELLS}
        return Layer(
            id=layer_id,
            name=name if name is not None else get_attr(element, "Name"),
            index=index,
            visible=flags["Visible"],
            print=flags["Print"],
            active=flags["Active"],
            lock=flags["Lock"],
            color=cell_value(element, "Color") or "",
            status=cell_value(element, "Status") or "",
        )

    @staticmethod
    def iter_definitions(element: ET._Element) -> Iterator[Tuple[str, ET._Element]]:
        """(layer id, element) for every layer definition below element"""
        for layer in descendants(element, "Layer"):
            layer_id = get_attr(layer, "IX")
            if layer_id:
                yield layer_id, layer
        for section in find_sections(element, "Layer", deep=True):
            for row in children(section, "Row"):
                layer_id = get_attr(row, "IX")
                if layer_id:
                    yield layer_id, row

    @staticmethod
    def _page_definitions(page: ET._Element) -> Iterator[Tuple[str, ET._Element]]:
        for layers in children(page, "Layers"):
            for layer in children(layers, "Layer"):
                layer_id = get_attr(layer, "IX")
                if layer_id:
                    yield layer_id, layer
        page_sheet = first_child(page, "PageSheet")
        if page_sheet is not None:
            for section in find_sections(page_sheet, "Layer"):
                for row in children(section, "Row"):
                    layer_id = get_attr(row, "IX")
                    if layer_id:
                        yield layer_id, row

    def extract_definitions(self, element: ET._Element) -> List[Layer]:
        """Every layer defined below element, first definition per ID (used for masters)"""
        layers: List[Layer] = []
        seen = set()
        for layer_id, definition in self.iter_definitions(element):
            if layer_id in seen:
                continue
            seen.add(layer_id)
            layers.append(self.parse_layer(definition, layer_id))
        return layers

    @staticmethod
    def extract_membership(shape: ET._Element) -> List[str]:
        """
        Layer IDs listed in the shape's LayerMem child

        Accepts <LayerMem><LayerMember>0</LayerMember></LayerMem> and the cell form
        <Section N="LayerMem"><Row><Cell N="LayerMember" V="0;1"/></Row></Section>.
        """
        ids: List[str] = []
        for layer_mem in children(shape, "LayerMem"):
            for member in descendants(layer_mem, "LayerMember"):
                ids.extend(_split_ids(element_text(member)))
        for section in find_sections(shape, "LayerMem"):
            for cell in descendants(section, "Cell"):
                if cell.get("N") == "LayerMember":
                    ids.extend(_split_ids(cell.get("V")))
        return ids

    def apply(self, shape: ET._Element, record: ShapeRecord):
        """
        Fill record.layer_membership and append the referenced layers to record.layers

        Layers already present on the record (same ID) are not added twice.
        """
        membership = self.extract_membership(shape)
        if not membership:
            return
        record.layer_membership = ",".join(membership)

        # Definitions embedded in the shape itself
        local = {}
        for layer_id, definition in self.iter_definitions(shape):
            local.setdefault(layer_id, definition)
        for layer_id in membership:
            definition = local.get(layer_id)
            if definition is not None and not record.has_layer(layer_id):
                record.layers.append(self.parse_layer(definition, layer_id))

        # Page-level definitions
        page = ancestor(shape, "Page")
        if page is None:
            return
        wanted = set(membership)
        for layer_id, definition in self._page_definitions(page):
            if layer_id in wanted and not record.has_layer(layer_id):
                record.layers.append(self.parse_layer(definition, layer_id))
                if self.logger:
                    self.logger.debug(f"Shape {record.shape_id} joined page layer {layer_id}")
