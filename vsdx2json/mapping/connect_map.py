"""
Connect mapping module

Indexes page-level <Connect> records by the connector's sheet ID. The first target
becomes the begin-connected shape, the most recent target the end-connected shape,
and the part descriptors accumulate as a "; "-joined log.
"""
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Optional, Tuple, Union
from lxml import etree as ET

from ..config import CONNECT_DESCRIPTOR_SEPARATOR
from ..io.xml_utils import descendants, get_attr, parse_xml
from ..logger import ExtractionLogger


@dataclass(frozen=True)
class ConnectEntry:
    """Accumulated endpoints of one connector"""
    begin_connected_to: str
    end_connected_to: str
    descriptor: str


class ConnectIndex:
    """Map from FromSheet (connector ID) to its accumulated ConnectEntry"""

    def __init__(self, logger: Optional[ExtractionLogger] = None):
        """
        Args:
            logger: ExtractionLogger instance (optional)
        """
        self.logger = logger
        self._entries: Dict[str, ConnectEntry] = {}

    @classmethod
    def from_parts(cls, parts: Iterable[Union[ET._Element, str, bytes]],
                   logger: Optional[ExtractionLogger] = None) -> "ConnectIndex":
        """Build an index over every Connect element of the given page parts"""
        index = cls(logger=logger)
        for part in parts:
            root = part if isinstance(part, ET._Element) else parse_xml(part)
            index.add_part(root)
        return index

    def add_part(self, root: ET._Element):
        """Accumulate every Connect element found below root"""
        for connect in descendants(root, "Connect"):
            self.add(
                get_attr(connect, "FromSheet"),
                get_attr(connect, "ToSheet"),
                get_attr(connect, "FromPart"),
                get_attr(connect, "ToPart"),
            )

    def add(self, from_sheet: str, to_sheet: str, from_part: str = "", to_part: str = ""):
        """Accumulate one Connect record; records without FromSheet are ignored"""
        if not from_sheet:
            return
        descriptor = f"FromPart={from_part}, ToPart={to_part}"
        existing = self._entries.get(from_sheet)
        if existing is None:
            self._entries[from_sheet] = ConnectEntry(to_sheet, "", descriptor)
        else:
            self._entries[from_sheet] = ConnectEntry(
                existing.begin_connected_to,
                to_sheet,
                existing.descriptor + CONNECT_DESCRIPTOR_SEPARATOR + descriptor,
            )
        if self.logger:
            self.logger.debug(f"Connect {from_sheet} -> {to_sheet} ({descriptor})")

    def get(self, shape_id: str) -> Optional[ConnectEntry]:
        return self._entries.get(shape_id)

    def items(self) -> Iterator[Tuple[str, ConnectEntry]]:
        return iter(self._entries.items())

    def __contains__(self, shape_id: object) -> bool:
        return shape_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
