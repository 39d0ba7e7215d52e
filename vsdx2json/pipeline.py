"""
Document pipeline

Runs load -> extract -> build -> export for one document, and processes several
documents one at a time so that a failing document does not stop the others
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from .config import ExtractionConfig, default_config
from .io.export_writer import ExportWriter
from .io.vsdx_loader import VsdxDocument, VsdxError, VsdxLoader
from .logger import ExtractionLogger
from .mapping.graph_builder import ShapeGraphBuilder
from .model.intermediate import MasterInfo, ShapeRecord
from .model.shapes import ShapeGraph


@dataclass
class DocumentResult:
    """Everything produced for one document"""
    document_id: str
    masters: Dict[str, MasterInfo] = field(default_factory=dict)
    records: List[ShapeRecord] = field(default_factory=list)
    graph: ShapeGraph = field(default_factory=ShapeGraph)
    outputs: List[Path] = field(default_factory=list)


@dataclass
class DocumentFailure:
    document_id: str
    error: Exception

    def __str__(self) -> str:
        return f"{self.document_id}: {self.error}"


@dataclass
class BatchResult:
    results: List[DocumentResult] = field(default_factory=list)
    failures: List[DocumentFailure] = field(default_factory=list)


def build_document(document: VsdxDocument,
                   logger: Optional[ExtractionLogger] = None,
                   config: Optional[ExtractionConfig] = None) -> DocumentResult:
    """Extract and build the shape graph of an already loaded document (no files written)"""
    loader = VsdxLoader(logger=logger, config=config)
    extraction = loader.extract(document)
    graph = ShapeGraphBuilder(logger=logger).build(extraction.records, document.document_id)
    return DocumentResult(
        document_id=document.document_id,
        masters=extraction.masters,
        records=extraction.records,
        graph=graph,
    )


def process_document(path: Union[str, Path],
                     logger: Optional[ExtractionLogger] = None,
                     config: Optional[ExtractionConfig] = None,
                     write: bool = True) -> DocumentResult:
    """
    Process one .vsdx file

    Args:
        path: Input file path
        logger: ExtractionLogger instance (optional)
        config: ExtractionConfig instance (uses default_config if None)
        write: Write the exports selected in config

    Raises:
        VsdxError: the document is structurally invalid
    """
    config = config or default_config
    path = Path(path)
    loader = VsdxLoader(logger=logger, config=config)
    if config.dump_xml:
        loader.dump_xml(path)
    result = build_document(loader.load_file(path), logger=logger, config=config)

    if write:
        writer = ExportWriter(logger=logger, config=config)
        paths = writer.output_paths(path)
        if config.export_json:
            result.outputs.append(writer.write_graph_json(result.graph, paths["json"]))
        if config.export_csv:
            result.outputs.append(writer.write_staging_csv(result.records, paths["csv"]))
        if config.export_masters:
            masters_path = writer.write_masters_json(result.masters, paths["masters"])
            if masters_path is not None:
                result.outputs.append(masters_path)
    return result


def process_documents(paths: Iterable[Union[str, Path]],
                      logger: Optional[ExtractionLogger] = None,
                      config: Optional[ExtractionConfig] = None,
                      write: bool = True) -> BatchResult:
    """
    Process documents independently; failures are collected, not raised

    Documents whose outputs land on files already written for an earlier
    document of the batch (same stem with an output directory) are warned about.
    """
    batch = BatchResult()
    writer = ExportWriter(logger=logger, config=config or default_config)
    # Resolved JSON output path -> document that wrote it
    written: Dict[Path, str] = {}
    for path in paths:
        if logger:
            logger.info(f"Processing Visio file: {path}")
        try:
            result = process_document(path, logger=logger, config=config, write=write)
        except (VsdxError, OSError) as e:
            batch.failures.append(DocumentFailure(str(path), e))
            if logger:
                logger.error(f"Error processing file: {path}: {e}")
            continue
        batch.results.append(result)
        if logger:
            logger.info(f"Processed {len(result.records)} shapes.")
        if write:
            output = writer.output_paths(path)["json"].resolve()
            if output in written and logger:
                logger.warn_output_collision(result.document_id, written[output], str(output))
            written[output] = result.document_id
    return batch
