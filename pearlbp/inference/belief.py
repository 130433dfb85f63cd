"""Combine converged messages into normalized posteriors."""

from __future__ import annotations

import numpy as np

from pearlbp.core.errors import InconsistentEvidenceError
from pearlbp.core.types import NetworkModel
from pearlbp.inference.messages import MessageStore
from pearlbp.inference.propagation import Evidence, lambda_product, pi_support


def combine(
    model: NetworkModel,
    evidence: Evidence,
    messages: MessageStore,
) -> np.ndarray:
    """Return the posterior of every node as an ``(n_nodes, d)`` array.

    Row *i* is ``lambda(x) * BEL_pi(x)`` for node *i*, divided by its
    sum.

    Raises
    ------
    InconsistentEvidenceError
        If some node's unnormalized belief sums to zero, i.e. the
        evidence is impossible under the model.
    """
    posteriors = np.empty((len(model.nodes), len(model.domain)))
    for node in model.nodes:
        belief = lambda_product(model, node, messages) * pi_support(
            model, node, evidence, messages
        )
        total = belief.sum()
        if not (total > 0 and np.isfinite(total)):
            raise InconsistentEvidenceError(node.name)
        posteriors[node.id] = belief / total
    return posteriors
