"""pearlbp: exact inference on discrete polytree Bayesian networks.

This package implements Pearl's belief propagation (pi/lambda message
passing) over networks whose nodes share one finite value domain.
Networks are built with :class:`BayesianNetwork` and queried with
:meth:`BayesianNetwork.infer`.
"""

import logging

try:
    from pearlbp._version import version as __version__
except ImportError:
    __version__ = "0.1.0"

from .core.errors import (
    ConstructionError,
    ConstructionWarning,
    InconsistentEvidenceError,
    PearlBPError,
    QueryError,
)
from .core.types import NodeRole, ValueDomain
from .inference.results import Posteriors, get_inferred_probability
from .networks.dag import BayesianNetwork

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "BayesianNetwork",
    "ConstructionError",
    "ConstructionWarning",
    "InconsistentEvidenceError",
    "NodeRole",
    "PearlBPError",
    "Posteriors",
    "QueryError",
    "ValueDomain",
    "get_inferred_probability",
]
