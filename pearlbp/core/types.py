"""Core types for pearlbp Bayesian networks."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, Iterable, Iterator, Optional, Tuple

import networkx as nx
import numpy as np


# ---------------------------------------------------------------------------
# Value domain
# ---------------------------------------------------------------------------

class ValueDomain:
    """Finite, ordered set of values shared by every node of a network.

    Each value is mapped to its position so that priors, CPTs and
    messages can be stored as plain numpy arrays.

    Parameters
    ----------
    values : iterable of hashable
        The domain values.  Must be non-empty and free of duplicates.

    Raises
    ------
    ValueError
        If *values* is empty, contains duplicates or unhashable items.
    """

    def __init__(self, values: Iterable[Hashable]) -> None:
        self._values: Tuple[Hashable, ...] = tuple(values)
        if not self._values:
            raise ValueError("Value domain must not be empty")
        index: Dict[Hashable, int] = {}
        for i, value in enumerate(self._values):
            try:
                if value in index:
                    raise ValueError(
                        f"Value domain contains duplicate value {value!r}"
                    )
                index[value] = i
            except TypeError as exc:
                raise ValueError(
                    f"Domain value {value!r} is not hashable"
                ) from exc
        self._index = index

    @property
    def values(self) -> Tuple[Hashable, ...]:
        return self._values

    def index(self, value: Any) -> int:
        """Return the position of *value*.

        Raises
        ------
        ValueError
            If *value* is not in the domain.
        """
        try:
            return self._index[value]
        except (KeyError, TypeError):
            raise ValueError(f"{value!r} is not in the value domain") from None

    def indicator(self, value_idx: int) -> np.ndarray:
        """Return the one-hot array selecting *value_idx*."""
        out = np.zeros(len(self._values))
        out[value_idx] = 1.0
        return out

    def __contains__(self, value: Any) -> bool:
        try:
            return value in self._index
        except TypeError:
            return False

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._values)

    def __getitem__(self, i: int) -> Hashable:
        return self._values[i]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValueDomain):
            return NotImplemented
        return self._values == other._values

    def __hash__(self) -> int:
        return hash(self._values)

    def __repr__(self) -> str:
        return f"ValueDomain({list(self._values)!r})"


# ---------------------------------------------------------------------------
# Network types
# ---------------------------------------------------------------------------

class NodeRole(enum.Enum):
    """Structural role of a node."""

    ROOT = "root"
    LEAF = "leaf"
    INTERMEDIATE = "intermediate"


@dataclass(frozen=True, eq=False)
class Node:
    """A node of a compiled network.

    ``cpt`` has shape ``(d,) * len(parents) + (d,)``: axis *i* indexes
    the value of parent *i* and the last axis the node's own value.
    """

    id: int
    name: str
    role: NodeRole
    parents: Tuple[int, ...] = ()
    children: Tuple[int, ...] = ()
    prior: Optional[np.ndarray] = None  # shape: (d,)
    cpt: Optional[np.ndarray] = None

    @property
    def is_root(self) -> bool:
        return self.role is NodeRole.ROOT

    def parent_index(self, parent_id: int) -> int:
        """Return the CPT axis of *parent_id*."""
        return self.parents.index(parent_id)


@dataclass(frozen=True, eq=False)
class NetworkModel:
    """Immutable snapshot of a network, consumed by the inference engine."""

    domain: ValueDomain
    nodes: Tuple[Node, ...]
    graph: nx.DiGraph = field(repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "_ids", {node.name: node.id for node in self.nodes}
        )

    def node_id(self, name: str) -> int:
        """Return the id of the node called *name*.

        Raises
        ------
        KeyError
            If no such node exists.
        """
        return self._ids[name]

    def __contains__(self, name: object) -> bool:
        return name in self._ids

    def __len__(self) -> int:
        return len(self.nodes)

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(node.name for node in self.nodes)
