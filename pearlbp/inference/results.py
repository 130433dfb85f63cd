"""Posterior results and value lookup."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Dict, Hashable, Iterator, Sequence

import numpy as np

from pearlbp.core.errors import QueryError
from pearlbp.core.types import ValueDomain


class Posteriors(Mapping):
    """Posterior distribution of every node from one :meth:`infer` call.

    Behaves as a read-only mapping ``name -> {value: probability}``.

    Parameters
    ----------
    domain : ValueDomain
        Domain the columns of *table* refer to.
    names : sequence of str
        Node names; ``names[i]`` labels row *i* of *table*.
    table : numpy.ndarray
        Array of shape ``(len(names), len(domain))``.
    """

    def __init__(
        self,
        domain: ValueDomain,
        names: Sequence[str],
        table: np.ndarray,
    ) -> None:
        if table.shape != (len(names), len(domain)):
            raise ValueError(
                f"Posterior table shape {table.shape} does not match "
                f"{len(names)} nodes over {len(domain)} values"
            )
        self.domain = domain
        self._names = tuple(names)
        self._rows = {name: i for i, name in enumerate(self._names)}
        self._table = table.copy()
        self._table.setflags(write=False)

    def row(self, name: str) -> int:
        """Return the table row of node *name*.

        Raises
        ------
        QueryError
            If *name* is not a node of the network.
        """
        try:
            return self._rows[name]
        except (KeyError, TypeError):
            raise QueryError(f"Node '{name}' not in network") from None

    def distribution(self, name: str) -> np.ndarray:
        """Return the posterior of *name* as an array in domain order."""
        return self._table[self.row(name)].copy()

    def probability(self, name: str, value: Hashable) -> float:
        """Return ``P(name = value | evidence)``."""
        return get_inferred_probability(self, name, value)

    @property
    def table(self) -> np.ndarray:
        """Read-only ``(n_nodes, d)`` array of all posteriors."""
        return self._table

    def __getitem__(self, name: str) -> Dict[Any, float]:
        row = self._table[self._rows[name]]
        return {value: float(p) for value, p in zip(self.domain, row)}

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def __repr__(self) -> str:
        return f"Posteriors(nodes={list(self._names)})"


def get_inferred_probability(
    posteriors: Posteriors,
    name: str,
    value: Hashable,
) -> float:
    """Return the posterior probability that node *name* takes *value*.

    Raises
    ------
    QueryError
        If *name* is not a node or *value* is not in the domain.
    """
    row = posteriors.row(name)
    try:
        col = posteriors.domain.index(value)
    except ValueError:
        raise QueryError(
            f"{value!r} is not a valid value. "
            f"Valid values: {list(posteriors.domain)}"
        ) from None
    return float(posteriors.table[row, col])
