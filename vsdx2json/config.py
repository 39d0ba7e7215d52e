"""
Extraction configuration module

Defines shared constants and the ExtractionConfig dataclass used by the loader,
extractors, graph builder and exporters
"""
from dataclasses import dataclass, field
from typing import Optional, Tuple

# Master name fragment that marks a shape as 1D (case-insensitive)
CONNECTOR_KEYWORD = "connector"

# Styling/metadata cells copied from a master into its ShapeData map
MASTER_DATA_CELLS: Tuple[str, ...] = (
    "LineColor",
    "FillColor",
    "LinePattern",
    "FillPattern",
    "LineWeight",
    "BeginArrow",
    "EndArrow",
    "DisplayName",
    "Category",
    "Description",
)

# Relative band width used to classify a connection point as an edge point
POSITION_EDGE_TOLERANCE = 0.1

# Separator between accumulated Connect descriptors ("FromPart=9, ToPart=3; FromPart=12, ToPart=3")
CONNECT_DESCRIPTOR_SEPARATOR = "; "

# Separator between flattened key=value shape data entries
SHAPE_DATA_SEPARATOR = "; "

# Part prefixes inside the .vsdx container
MASTERS_PART_PREFIX = "visio/masters/"
PAGES_PART_PREFIX = "visio/pages/"

# Smallest possible ZIP archive (End of Central Directory record)
MIN_ZIP_SIZE = 22


@dataclass
class ExtractionConfig:
    """Options for a document extraction run"""
    export_json: bool = True
    export_csv: bool = True
    export_masters: bool = True
    # Write every XML part to "<stem>_XML/" beside the input
    dump_xml: bool = False
    # Shapes with zero Width/Height take the master default size
    inherit_master_size: bool = False
    # None: write outputs beside the input document
    output_dir: Optional[str] = None
    json_indent: int = 2
    connector_keyword: str = CONNECTOR_KEYWORD
    master_data_cells: Tuple[str, ...] = field(default_factory=lambda: MASTER_DATA_CELLS)
    position_tolerance: float = POSITION_EDGE_TOLERANCE


default_config = ExtractionConfig()
