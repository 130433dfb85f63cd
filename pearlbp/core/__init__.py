"""Core module for pearlbp.

This module contains the data model shared by network construction and
the inference engine, and the exception types raised by both.
"""

from .errors import (
    ConstructionError,
    ConstructionWarning,
    InconsistentEvidenceError,
    PearlBPError,
    QueryError,
)
from .types import NetworkModel, Node, NodeRole, ValueDomain

__all__ = [
    "ConstructionError",
    "ConstructionWarning",
    "InconsistentEvidenceError",
    "NetworkModel",
    "Node",
    "NodeRole",
    "PearlBPError",
    "QueryError",
    "ValueDomain",
]
