"""Network construction utilities for pearlbp."""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

import numpy as np

from pearlbp.core.types import NodeRole
from pearlbp.networks.dag import BayesianNetwork


def _random_cpt(
    rng: np.random.Generator, num_parents: int, num_states: int
) -> np.ndarray:
    """CPT of shape ``(num_states,) * num_parents + (num_states,)``."""
    return rng.dirichlet(np.ones(num_states), size=(num_states,) * num_parents)


def _from_edges(
    num_nodes: int,
    edges: List[Tuple[int, int]],
    num_states: int,
    rng: np.random.Generator,
) -> BayesianNetwork:
    """Build a random network named ``X0 .. Xn-1`` from directed *edges*."""
    parents: Dict[int, List[int]] = {i: [] for i in range(num_nodes)}
    has_children = set()
    for u, v in edges:
        parents[v].append(u)
        has_children.add(u)

    bn = BayesianNetwork([f"s{i}" for i in range(num_states)])
    for i in range(num_nodes):
        if not parents[i]:
            bn.add_node(
                f"X{i}", NodeRole.ROOT, prior=rng.dirichlet(np.ones(num_states))
            )
        elif i in has_children:
            bn.add_node(f"X{i}", NodeRole.INTERMEDIATE)
        else:
            bn.add_node(f"X{i}", NodeRole.LEAF)

    for i in range(num_nodes):
        if parents[i]:
            ps = sorted(parents[i])
            bn.add_dependency(
                [f"X{p}" for p in ps],
                f"X{i}",
                _random_cpt(rng, len(ps), num_states),
            )
    return bn


def build_chain(
    num_nodes: int,
    num_states: int = 2,
    seed: Optional[int] = None,
) -> BayesianNetwork:
    """Build a chain-structured network ``X0 -> X1 -> ... -> Xn-1``."""
    rng = np.random.default_rng(seed)
    edges = [(i, i + 1) for i in range(num_nodes - 1)]
    return _from_edges(num_nodes, edges, num_states, rng)


def build_tree(
    num_nodes: int,
    num_states: int = 2,
    seed: Optional[int] = None,
) -> BayesianNetwork:
    """Build a balanced binary tree rooted at ``X0``.

    Node *i*'s children are ``2i+1`` and ``2i+2``.
    """
    rng = np.random.default_rng(seed)
    edges = [
        (i, c)
        for i in range(num_nodes)
        for c in (2 * i + 1, 2 * i + 2)
        if c < num_nodes
    ]
    return _from_edges(num_nodes, edges, num_states, rng)


def build_polytree(
    num_nodes: int,
    num_states: int = 2,
    seed: Optional[int] = None,
) -> BayesianNetwork:
    """Build a random polytree.

    Draws a random undirected tree (each node attaches to a random
    earlier node) and orients every edge at random, so nodes may have
    several parents and several roots may exist.
    """
    rng = np.random.default_rng(seed)
    edges = []
    for i in range(1, num_nodes):
        j = int(rng.integers(i))
        edges.append((j, i) if rng.random() < 0.5 else (i, j))
    return _from_edges(num_nodes, edges, num_states, rng)
