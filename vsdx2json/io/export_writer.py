"""
Export module

Writes the shape graph as JSON (default values suppressed), the staging records
as CSV, and the master map grouped by stencil as JSON
"""
import csv
import json
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

from ..config import ExtractionConfig, default_config
from ..logger import ExtractionLogger
from ..model.intermediate import MasterInfo, ShapeRecord, STAGING_CSV_FIELDS
from ..model.shapes import ShapeGraph
from ..stencil.masters import group_by_stencil


def is_default_value(value: Any) -> bool:
    """None, False, zero, blank strings and empty collections count as defaults"""
    if value is None:
        return True
    if isinstance(value, bool):
        return value is False
    if isinstance(value, (int, float)):
        return value == 0
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def prune_defaults(value: Any) -> Any:
    """
    Recursively drop default-valued entries from dicts

    List items are kept (pruned themselves); a list or dict that ends up empty is
    removed from its parent dict.
    """
    if isinstance(value, dict):
        pruned = {}
        for key, item in value.items():
            item = prune_defaults(item)
            if not is_default_value(item):
                pruned[key] = item
        return pruned
    if isinstance(value, (list, tuple)):
        return [prune_defaults(item) for item in value]
    return value


def graph_to_json(graph: ShapeGraph, indent: Optional[int] = 2, exclude_defaults: bool = True) -> str:
    data = graph.to_dict()
    if exclude_defaults:
        data = prune_defaults(data)
    return json.dumps(data, indent=indent, ensure_ascii=False)


def masters_to_json(masters: Dict[str, MasterInfo], indent: Optional[int] = 2) -> str:
    grouped = group_by_stencil(masters.values())
    data = {stencil: [master.to_dict() for master in items] for stencil, items in grouped.items()}
    return json.dumps(data, indent=indent, ensure_ascii=False)


class ExportWriter:
    """Write extraction artifacts next to the source document (or into output_dir)"""

    def __init__(self, logger: Optional[ExtractionLogger] = None, config: Optional[ExtractionConfig] = None):
        """
        Args:
            logger: ExtractionLogger instance
            config: ExtractionConfig instance (uses default_config if None)
        """
        self.config = config or default_config
        self.logger = logger

    def output_paths(self, document_path: Union[str, Path]) -> Dict[str, Path]:
        """
        Output file paths for a document

        Returns:
            Dict with 'json' (<stem>.json), 'csv' (<stem>_export.csv) and
            'masters' (<stem>_masters.json)
        """
        document_path = Path(document_path)
        directory = Path(self.config.output_dir) if self.config.output_dir else document_path.parent
        stem = document_path.stem
        return {
            "json": directory / f"{stem}.json",
            "csv": directory / f"{stem}_export.csv",
            "masters": directory / f"{stem}_masters.json",
        }

    def write_graph_json(self, graph: ShapeGraph, path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(graph_to_json(graph, indent=self.config.json_indent), encoding="utf-8")
        if self.logger:
            self.logger.info(f"Wrote shape graph to {path}")
        return path

    def write_staging_csv(self, records: Iterable[ShapeRecord], path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        count = 0
        with path.open("w", newline="", encoding="utf-8") as handle:
            writer = csv.DictWriter(handle, fieldnames=STAGING_CSV_FIELDS)
            writer.writeheader()
            for record in records:
                writer.writerow(record.to_row())
                count += 1
        if self.logger:
            self.logger.info(f"Wrote {count} staging records to {path}")
        return path

    def write_masters_json(self, masters: Dict[str, MasterInfo], path: Path) -> Optional[Path]:
        """Write masters grouped by stencil; nothing is written for an empty map"""
        if not masters:
            return None
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(masters_to_json(masters, indent=self.config.json_indent), encoding="utf-8")
        if self.logger:
            self.logger.info(f"Exported {len(masters)} master stencils to {path}")
        return path
