"""
.vsdx file loading module

Provides validation and loading of .vsdx packages (ZIP containers), discovery of
master and page parts, page naming, XML part dumping, and the per-document
extraction pass (masters and connects first, then shapes page by page)
"""
import re
import zipfile
import zlib
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Dict, List, Mapping, Optional, Union
from lxml import etree as ET

from ..config import (
    MASTERS_PART_PREFIX, MIN_ZIP_SIZE, PAGES_PART_PREFIX, ExtractionConfig, default_config,
)
from ..logger import ExtractionLogger
from ..mapping.connect_map import ConnectIndex
from ..model.intermediate import MasterInfo, ShapeRecord
from ..stencil.masters import MasterResolver
from .shape_extractor import ShapeExtractor
from .xml_utils import children, descendants, first_descendant, get_attr, local_name, parse_xml

_PAGES_INDEX = PAGES_PART_PREFIX + "pages.xml"
_PAGES_RELS = PAGES_PART_PREFIX + "_rels/pages.xml.rels"

# Raised by ZipFile.read for damaged, encrypted or unsupported entries
_ARCHIVE_READ_ERRORS = (zipfile.BadZipFile, zlib.error, RuntimeError, NotImplementedError, EOFError)


class VsdxError(Exception):
    """Base error for document-level failures"""


class InvalidDocumentError(VsdxError):
    """The input is not a readable diagram package"""


def natural_key(name: str) -> List[Union[int, str]]:
    """Sort key placing page2.xml before page10.xml"""
    return [int(part) if part.isdigit() else part.lower() for part in re.split(r'(\d+)', name)]


def is_shape_page_part(part_name: str) -> bool:
    """True for page parts that carry shapes (page1.xml, not the pages.xml index)"""
    return PurePosixPath(part_name).stem.lower() != "pages"


@dataclass
class VsdxDocument:
    """Raw XML parts of one document"""
    document_id: str
    master_parts: Dict[str, bytes] = field(default_factory=dict)
    page_parts: Dict[str, bytes] = field(default_factory=dict)
    # Page part name -> display name from the pages index (when present)
    page_names: Dict[str, str] = field(default_factory=dict)

    def shape_page_parts(self) -> Dict[str, bytes]:
        return {name: data for name, data in self.page_parts.items() if is_shape_page_part(name)}


@dataclass
class ExtractionResult:
    """Output of the extraction pass for one document"""
    document_id: str
    masters: Dict[str, MasterInfo] = field(default_factory=dict)
    records: List[ShapeRecord] = field(default_factory=list)


class VsdxLoader:
    """.vsdx loading and shape extraction"""

    def __init__(self, logger: Optional[ExtractionLogger] = None, config: Optional[ExtractionConfig] = None):
        """
        Args:
            logger: ExtractionLogger instance
            config: ExtractionConfig instance (uses default_config if None)
        """
        self.config = config or default_config
        self.logger = logger
        self.master_resolver = MasterResolver(logger, self.config)
        self.shape_extractor = ShapeExtractor(logger, self.config)

    # ---- container ----
    def validate_file(self, path: Path):
        """
        Check that path is an existing, non-truncated ZIP archive

        Raises:
            InvalidDocumentError: when the file cannot be a .vsdx package
        """
        if not path.exists():
            raise InvalidDocumentError(f"File does not exist: {path}")
        if path.stat().st_size < MIN_ZIP_SIZE:
            raise InvalidDocumentError(f"File too small to be a valid ZIP archive: {path}")
        if not zipfile.is_zipfile(path):
            raise InvalidDocumentError(f"The file '{path}' is not a valid ZIP archive or is corrupt.")

    def load_file(self, path: Union[str, Path]) -> VsdxDocument:
        """
        Load the master and page parts of a .vsdx file

        Args:
            path: File path (also used as the document identity)

        Returns:
            VsdxDocument with raw XML bytes per part

        Raises:
            InvalidDocumentError: unreadable archive or no page parts
        """
        path = Path(path)
        self.validate_file(path)
        document = VsdxDocument(document_id=str(path))
        try:
            with zipfile.ZipFile(path) as archive:
                names = sorted(archive.namelist(), key=natural_key)
                for name in names:
                    if not name.endswith(".xml"):
                        continue
                    if name.startswith(MASTERS_PART_PREFIX):
                        document.master_parts[name] = archive.read(name)
                    elif name.startswith(PAGES_PART_PREFIX) and "/_rels/" not in name:
                        document.page_parts[name] = archive.read(name)
                if _PAGES_INDEX in names and _PAGES_RELS in names:
                    document.page_names = self._page_names_from_index(
                        archive.read(_PAGES_INDEX), archive.read(_PAGES_RELS)
                    )
        except _ARCHIVE_READ_ERRORS as e:
            raise InvalidDocumentError(f"Invalid ZIP archive: {path}. Error: {e}") from e
        except ET.XMLSyntaxError as e:
            raise InvalidDocumentError(f"Malformed pages index in {path}: {e}") from e

        if not document.shape_page_parts():
            raise InvalidDocumentError(f"File is not a valid VSDX file (no pages found): {path}")
        if self.logger:
            self.logger.debug(
                f"Loaded {path}: {len(document.master_parts)} master parts, {len(document.page_parts)} page parts"
            )
        return document

    @staticmethod
    def from_parts(document_id: str,
                   master_parts: Optional[Mapping[str, Union[str, bytes]]] = None,
                   page_parts: Optional[Mapping[str, Union[str, bytes]]] = None) -> VsdxDocument:
        """Build a document from in-memory XML text keyed by part name"""
        def _as_bytes(data: Union[str, bytes]) -> bytes:
            return data.encode("utf-8") if isinstance(data, str) else data

        return VsdxDocument(
            document_id=document_id,
            master_parts={name: _as_bytes(data) for name, data in (master_parts or {}).items()},
            page_parts={name: _as_bytes(data) for name, data in (page_parts or {}).items()},
        )

    def dump_xml(self, path: Union[str, Path], out_dir: Optional[Path] = None) -> Path:
        """
        Write every XML part of the archive to a "<stem>_XML" directory

        Entries whose names are absolute or climb out of the directory are skipped.

        Returns:
            The directory written to
        """
        path = Path(path)
        self.validate_file(path)
        target = out_dir or path.with_name(f"{path.stem}_XML")
        try:
            with zipfile.ZipFile(path) as archive:
                for name in archive.namelist():
                    if not name.endswith(".xml"):
                        continue
                    destination = self._dump_destination(target, name)
                    if destination is None:
                        if self.logger:
                            self.logger.debug(f"Skipping unsafe entry name in {path}: {name!r}")
                        continue
                    destination.parent.mkdir(parents=True, exist_ok=True)
                    destination.write_bytes(archive.read(name))
        except _ARCHIVE_READ_ERRORS as e:
            raise InvalidDocumentError(f"Invalid ZIP archive: {path}. Error: {e}") from e
        if self.logger:
            self.logger.debug(f"Dumped XML parts of {path} to {target}")
        return target

    @staticmethod
    def _dump_destination(target: Path, name: str) -> Optional[Path]:
        """File path for an archive entry below target, or None if it would land elsewhere"""
        entry = PurePosixPath(name.replace("\\", "/"))
        if entry.is_absolute() or ".." in entry.parts or not entry.parts:
            return None
        destination = target.joinpath(*entry.parts)
        if target.resolve() not in destination.resolve().parents:
            return None
        return destination

    @staticmethod
    def _page_names_from_index(pages_xml: bytes, rels_xml: bytes) -> Dict[str, str]:
        """Map page part names to page names via pages.xml and its relationships"""
        targets: Dict[str, str] = {}
        for rel in descendants(parse_xml(rels_xml), "Relationship"):
            target = get_attr(rel, "Target")
            if target:
                targets[get_attr(rel, "Id")] = PAGES_PART_PREFIX + target.lstrip("/").split("/")[-1]

        names: Dict[str, str] = {}
        for page in descendants(parse_xml(pages_xml), "Page"):
            for rel in children(page, "Rel"):
                rel_id = next((value for key, value in rel.attrib.items() if ET.QName(key).localname == "id"), "")
                part_name = targets.get(rel_id)
                if part_name and page.get("Name"):
                    names[part_name] = page.get("Name")
        return names

    # ---- extraction ----
    def page_name(self, part_name: str, root: ET._Element, document: Optional[VsdxDocument] = None) -> str:
        """
        Page display name

        File stem, replaced by the pages index name, replaced by the Name of a Page
        element inside the part itself.
        """
        name = PurePosixPath(part_name).stem
        if document is not None and part_name in document.page_names:
            name = document.page_names[part_name]
        page = root if local_name(root) == "Page" else first_descendant(root, "Page")
        if page is not None and page.get("Name"):
            name = page.get("Name")
        return name

    def _parse_part(self, document: VsdxDocument, part_name: str, data: bytes) -> ET._Element:
        try:
            return parse_xml(data)
        except ET.XMLSyntaxError as e:
            raise InvalidDocumentError(f"Malformed XML part {part_name} in {document.document_id}: {e}") from e

    def extract(self, document: VsdxDocument) -> ExtractionResult:
        """
        Run masters, connects and shape extraction for one document

        Masters and every page's connect index are complete before the first
        shape is extracted.

        Raises:
            InvalidDocumentError: a part is not well-formed XML
        """
        master_roots = {
            name: self._parse_part(document, name, data) for name, data in document.master_parts.items()
        }
        page_roots = {
            name: self._parse_part(document, name, data) for name, data in document.shape_page_parts().items()
        }

        masters = self.master_resolver.resolve(master_roots)
        connects = {name: ConnectIndex.from_parts([root], logger=self.logger) for name, root in page_roots.items()}

        result = ExtractionResult(document_id=document.document_id, masters=masters)
        for part_name, root in page_roots.items():
            page_name = self.page_name(part_name, root, document)
            records = self.shape_extractor.extract_page(root, page_name, masters, connects[part_name])
            if self.logger:
                self.logger.debug(f"Page {page_name!r} ({part_name}): {len(records)} shapes")
            result.records.extend(records)
        return result
