"""Network construction for pearlbp."""

from pearlbp.networks.dag import SUM_TOLERANCE, BayesianNetwork
from pearlbp.networks.graph import build_chain, build_polytree, build_tree

__all__ = [
    "SUM_TOLERANCE",
    "BayesianNetwork",
    "build_chain",
    "build_polytree",
    "build_tree",
]
