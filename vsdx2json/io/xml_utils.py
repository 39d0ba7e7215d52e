"""
XML access helpers

Namespace-agnostic lookups by local name over lxml elements. Missing elements and
attributes resolve to None/"" instead of raising.
"""
from typing import Iterator, List, Optional, Union
from lxml import etree as ET


def local_name(element: ET._Element) -> str:
    """Local tag name without namespace; "" for comments and processing instructions"""
    tag = element.tag
    if not isinstance(tag, str):
        return ""
    return ET.QName(tag).localname


def parse_xml(data: Union[str, bytes]) -> ET._Element:
    """Parse an XML part and return its root element"""
    if isinstance(data, str):
        data = data.encode("utf-8")
    parser = ET.XMLParser(remove_blank_text=True, resolve_entities=False)
    return ET.fromstring(data, parser)


def get_attr(element: Optional[ET._Element], name: str) -> str:
    """Attribute value, or "" when the element or attribute is missing"""
    if element is None:
        return ""
    return element.get(name) or ""


def children(element: ET._Element, name: str) -> Iterator[ET._Element]:
    """Direct children with the given local name, in document order"""
    for child in element:
        if local_name(child) == name:
            yield child


def first_child(element: ET._Element, name: str) -> Optional[ET._Element]:
    return next(children(element, name), None)


def descendants(element: ET._Element, name: str) -> Iterator[ET._Element]:
    """All descendants (not the element itself) with the given local name"""
    for child in element.iterdescendants():
        if local_name(child) == name:
            yield child


def first_descendant(element: ET._Element, name: str) -> Optional[ET._Element]:
    return next(descendants(element, name), None)


def ancestor(element: ET._Element, name: str) -> Optional[ET._Element]:
    """Nearest ancestor with the given local name"""
    for parent in element.iterancestors():
        if local_name(parent) == name:
            return parent
    return None


def element_text(element: Optional[ET._Element]) -> str:
    """Concatenated text content of an element (including tails of nested elements)"""
    if element is None:
        return ""
    return "".join(element.itertext())


def child_text(element: ET._Element, name: str) -> Optional[str]:
    """Text content of the first direct child with the given name, or None if absent"""
    child = first_child(element, name)
    if child is None:
        return None
    return element_text(child)


def cell_value(element: ET._Element, cell_name: str) -> Optional[str]:
    """V attribute of the direct child Cell with N=cell_name, or None if absent"""
    for cell in children(element, "Cell"):
        if cell.get("N") == cell_name:
            return cell.get("V")
    return None


def find_sections(element: ET._Element, section_name: str, deep: bool = False) -> List[ET._Element]:
    """Section elements with N=section_name directly under element (or anywhere below)"""
    candidates = descendants(element, "Section") if deep else children(element, "Section")
    return [section for section in candidates if section.get("N") == section_name]
