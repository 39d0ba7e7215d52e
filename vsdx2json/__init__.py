"""
vsdx2json: extract a typed shape graph (shapes, connectors, connection points,
layers) from Visio .vsdx packages
"""
from .io.vsdx_loader import InvalidDocumentError, VsdxError, VsdxLoader
from .mapping.graph_builder import ShapeGraphBuilder
from .model.shapes import Shape1D, Shape2D, ShapeGraph
from .pipeline import build_document, process_document, process_documents

__all__ = [
    "InvalidDocumentError",
    "Shape1D",
    "Shape2D",
    "ShapeGraph",
    "ShapeGraphBuilder",
    "VsdxError",
    "VsdxLoader",
    "build_document",
    "process_document",
    "process_documents",
]
