"""Pearl's pi/lambda message passing on polytree Bayesian networks.

Provides:

* :func:`pi_support` – the causal support ``BEL_pi`` of a node.
* :func:`pi_message` / :func:`lambda_message` – the directional
  messages sent to a child / parent.
* :func:`propagate` – fills a :class:`MessageStore` with one pi message
  per parent -> child edge and one lambda message per child -> parent
  edge.

Two schedules are available.  ``"two_pass"`` walks the breadth-first
tree of every connected component, sending all messages towards the
component hub and then all messages away from it, so every message is
computed once.  ``"fixed_point"`` sweeps all nodes repeatedly and emits
each message as soon as its inputs are present, stopping after a sweep
that adds nothing.  On a polytree both produce the same messages.

Evidence is passed around as ``{node id: value index}``.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

import networkx as nx
import numpy as np

from pearlbp.core.types import NetworkModel, Node
from pearlbp.inference.messages import MessageStore

logger = logging.getLogger(__name__)

METHODS = ("two_pass", "fixed_point")
DEFAULT_METHOD = "two_pass"

Evidence = Dict[int, int]


# ------------------------------------------------------------------ #
#  Message formulas
# ------------------------------------------------------------------ #

def _evidence_mask(
    model: NetworkModel, node_id: int, evidence: Evidence
) -> np.ndarray:
    """Indicator of the observed value, or all ones when unobserved."""
    if node_id in evidence:
        return model.domain.indicator(evidence[node_id])
    return np.ones(len(model.domain))


def lambda_product(
    model: NetworkModel,
    node: Node,
    messages: MessageStore,
    exclude: Optional[int] = None,
) -> np.ndarray:
    """Product of the lambda messages from *node*'s children.

    The message from child *exclude*, if given, is left out.
    """
    out = np.ones(len(model.domain))
    for child in node.children:
        if child != exclude:
            out = out * messages.get_lambda(child, node.id)
    return out


def pi_support(
    model: NetworkModel,
    node: Node,
    evidence: Evidence,
    messages: MessageStore,
) -> np.ndarray:
    """Causal support ``BEL_pi`` of *node*.

    Observed nodes get the indicator of their value and unobserved roots
    their prior.  Otherwise the CPT is contracted, parent by parent,
    with the incoming pi messages; an observed parent's message is
    masked to its value so only consistent parent tuples contribute.
    """
    if node.id in evidence:
        return model.domain.indicator(evidence[node.id])
    if node.is_root:
        return node.prior.copy()

    table = node.cpt
    for parent in node.parents:
        incoming = messages.get_pi(parent, node.id) * _evidence_mask(
            model, parent, evidence
        )
        # Axis 0 of the remaining table is always the next parent.
        table = np.tensordot(incoming, table, axes=([0], [0]))
    return table


def pi_message(
    model: NetworkModel,
    node: Node,
    child: int,
    evidence: Evidence,
    messages: MessageStore,
) -> np.ndarray:
    """Message from *node* to its child *child*."""
    support = pi_support(model, node, evidence, messages)
    return lambda_product(model, node, messages, exclude=child) * support


def lambda_message(
    model: NetworkModel,
    node: Node,
    parent: int,
    evidence: Evidence,
    messages: MessageStore,
) -> np.ndarray:
    """Message from *node* to its parent *parent*.

    For each value ``p`` of the parent, sums over the parent tuples that
    put ``p`` at the parent's position and agree with the evidence on
    the other parents, weighting each tuple by the other parents' pi
    messages and by ``sum_x lambda(x) * CPT(x | tuple)``.
    """
    weights = lambda_product(model, node, messages) * _evidence_mask(
        model, node.id, evidence
    )
    table = node.cpt @ weights  # shape: (d,) * num_parents

    index = node.parent_index(parent)
    table = np.moveaxis(table, index, 0)
    others = node.parents[:index] + node.parents[index + 1:]
    for other in reversed(others):
        incoming = messages.get_pi(other, node.id) * _evidence_mask(
            model, other, evidence
        )
        table = table @ incoming
    return table


def _scale(message: np.ndarray, normalize: bool) -> np.ndarray:
    if normalize:
        total = message.sum()
        if total > 0 and np.isfinite(total):
            return message / total
    return message


# ------------------------------------------------------------------ #
#  Scheduling
# ------------------------------------------------------------------ #

def propagate(
    model: NetworkModel,
    evidence: Evidence,
    method: str = DEFAULT_METHOD,
    normalize: bool = True,
) -> MessageStore:
    """Compute every pi and lambda message of *model* under *evidence*.

    Parameters
    ----------
    model : NetworkModel
        A compiled polytree network.
    evidence : dict of int -> int
        Observed value index per node id.
    method : {"two_pass", "fixed_point"}
        Message schedule.
    normalize : bool
        Rescale each message with positive mass to sum to 1.  Posteriors
        do not depend on message scale; this only prevents underflow.

    Returns
    -------
    MessageStore
        A fresh store holding one message per directed edge.

    Raises
    ------
    ValueError
        If *method* is unknown.
    """
    if method not in METHODS:
        raise ValueError(
            f"Unknown propagation method '{method}'. "
            f"Valid methods: {list(METHODS)}"
        )

    messages = MessageStore()
    if method == "two_pass":
        _propagate_two_pass(model, evidence, messages, normalize)
    else:
        _propagate_fixed_point(model, evidence, messages, normalize)

    logger.debug(
        "Propagation (%s) produced %d pi and %d lambda messages",
        method, len(messages.pi), len(messages.lam),
    )
    return messages


def _send(
    model: NetworkModel,
    source: int,
    target: int,
    evidence: Evidence,
    messages: MessageStore,
    normalize: bool,
) -> None:
    node = model.nodes[source]
    if target in node.children:
        message = pi_message(model, node, target, evidence, messages)
        messages.set_pi(source, target, _scale(message, normalize))
    else:
        message = lambda_message(model, node, target, evidence, messages)
        messages.set_lambda(source, target, _scale(message, normalize))


def _propagate_two_pass(
    model: NetworkModel,
    evidence: Evidence,
    messages: MessageStore,
    normalize: bool,
) -> None:
    skeleton = model.graph.to_undirected()
    tree_edges = []
    for component in nx.connected_components(skeleton):
        hub = min(component)
        tree_edges.extend(nx.bfs_edges(skeleton, hub))

    # ---------- collect (towards each hub) ---------------------------- #
    for near, far in reversed(tree_edges):
        _send(model, far, near, evidence, messages, normalize)

    # ---------- distribute (away from each hub) ------------------------ #
    for near, far in tree_edges:
        _send(model, near, far, evidence, messages, normalize)


def _propagate_fixed_point(
    model: NetworkModel,
    evidence: Evidence,
    messages: MessageStore,
    normalize: bool,
) -> None:
    sweeps = 0
    while True:
        added = 0
        for node in model.nodes:
            added += _emit_pi(model, node, evidence, messages, normalize)
            added += _emit_lambda(model, node, evidence, messages, normalize)
        sweeps += 1
        if not added:
            break
    logger.debug("Fixed-point propagation converged after %d sweeps", sweeps)


def _emit_pi(
    model: NetworkModel,
    node: Node,
    evidence: Evidence,
    messages: MessageStore,
    normalize: bool,
) -> int:
    """Send the pi messages of *node* whose inputs are all present."""
    if not all(messages.has_pi(p, node.id) for p in node.parents):
        return 0
    waiting = [c for c in node.children if not messages.has_lambda(c, node.id)]
    if len(waiting) > 1:
        return 0

    added = 0
    for child in waiting or node.children:
        if not messages.has_pi(node.id, child):
            _send(model, node.id, child, evidence, messages, normalize)
            added += 1
    return added


def _emit_lambda(
    model: NetworkModel,
    node: Node,
    evidence: Evidence,
    messages: MessageStore,
    normalize: bool,
) -> int:
    """Send the lambda messages of *node* whose inputs are all present."""
    if not all(messages.has_lambda(c, node.id) for c in node.children):
        return 0
    waiting = [p for p in node.parents if not messages.has_pi(p, node.id)]
    if len(waiting) > 1:
        return 0

    added = 0
    for parent in waiting or node.parents:
        if not messages.has_lambda(node.id, parent):
            _send(model, node.id, parent, evidence, messages, normalize)
            added += 1
    return added
