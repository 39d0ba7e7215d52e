"""
Data model: parse-time records and the persisted shape tree
"""
from .intermediate import ConnectionPoint, Layer, MasterInfo, ShapeRecord, STAGING_CSV_FIELDS
from .shapes import BaseShape, Shape1D, Shape2D, ShapeGraph

__all__ = [
    "BaseShape",
    "ConnectionPoint",
    "Layer",
    "MasterInfo",
    "STAGING_CSV_FIELDS",
    "Shape1D",
    "Shape2D",
    "ShapeGraph",
    "ShapeRecord",
]
