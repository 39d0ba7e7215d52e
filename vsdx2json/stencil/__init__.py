"""
Master stencil support: resolves the master parts of a document into MasterInfo
records that shape instances inherit names, connection points, layers and data from.
"""
from .masters import (
    MasterResolver,
    group_by_stencil,
    stencil_name_from_part,
)

__all__ = [
    "MasterResolver",
    "group_by_stencil",
    "stencil_name_from_part",
]
