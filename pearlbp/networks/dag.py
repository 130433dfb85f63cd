"""Discrete Bayesian network with Pearl belief propagation.

Provides :class:`BayesianNetwork`, the construction and query interface
of pearlbp.  The graph structure is stored in a
:class:`networkx.DiGraph`; priors and conditional probability tables
(CPTs) are stored as numpy arrays keyed by node name.

Every node draws its values from one shared value domain.  A network is
built node by node with :meth:`BayesianNetwork.add_node`, then
dependency by dependency with :meth:`BayesianNetwork.add_dependency`,
and queried with :meth:`BayesianNetwork.infer`.

Example
-------
>>> bn = BayesianNetwork([True, False])
>>> bn.add_node("rain", "root", prior={True: 0.2, False: 0.8})
>>> bn.add_node("wet", "leaf")
>>> bn.add_dependency(["rain"], "wet", {
...     (True,): {True: 0.9, False: 0.1},
...     (False,): {True: 0.1, False: 0.9},
... })
>>> posteriors = bn.infer({"wet": True})
>>> round(posteriors.probability("rain", True), 3)
0.692
"""

from __future__ import annotations

import logging
import warnings
from collections.abc import Mapping
from typing import Any, Dict, Hashable, Iterable, List, Optional, Sequence, Union

import networkx as nx
import numpy as np

from pearlbp.core.errors import ConstructionError, ConstructionWarning, QueryError
from pearlbp.core.types import NetworkModel, Node, NodeRole, ValueDomain
from pearlbp.inference.belief import combine
from pearlbp.inference.propagation import DEFAULT_METHOD, Evidence, propagate
from pearlbp.inference.results import Posteriors, get_inferred_probability

logger = logging.getLogger(__name__)

# Tolerance for the sum-to-one check on priors and CPT rows
SUM_TOLERANCE = 1e-7


class BayesianNetwork:
    """Polytree Bayesian network over a shared value domain.

    Each node is a root (carrying a prior), an intermediate node or a
    leaf (both carrying a CPT over their parents).  Invalid input raises
    :class:`ConstructionError` before the network is modified; a prior
    or CPT row that does not sum to 1 only emits a
    :class:`ConstructionWarning`.

    Parameters
    ----------
    domain : iterable of hashable
        Values every node can take.
    tolerance : float
        Allowed deviation of a prior or CPT row sum from 1.

    Examples
    --------
    >>> bn = BayesianNetwork(["low", "high"])
    >>> bn.add_node("A", "root", prior=[0.4, 0.6])
    >>> bn.add_node("B", "leaf")
    >>> bn.add_dependency(["A"], "B", np.array([[0.9, 0.1], [0.3, 0.7]]))
    >>> bn.infer().distribution("B").round(2)
    array([0.54, 0.46])
    """

    def __init__(
        self,
        domain: Iterable[Hashable],
        tolerance: float = SUM_TOLERANCE,
    ) -> None:
        try:
            self._domain = ValueDomain(domain)
        except ValueError as exc:
            raise ConstructionError(str(exc)) from exc
        self.tolerance = float(tolerance)
        self._graph: nx.DiGraph = nx.DiGraph()
        self._roles: Dict[str, NodeRole] = {}
        # name -> read-only numpy array
        self._priors: Dict[str, np.ndarray] = {}
        self._cpts: Dict[str, np.ndarray] = {}
        # name -> ordered parent names (defines the CPT axes)
        self._parents: Dict[str, List[str]] = {}
        self._model: Optional[NetworkModel] = None

    # ------------------------------------------------------------------ #
    #  Graph construction
    # ------------------------------------------------------------------ #

    def add_node(
        self,
        name: str,
        role: Union[NodeRole, str],
        prior: Any = None,
    ) -> None:
        """Add a node to the network.

        Parameters
        ----------
        name : str
            Unique identifier for this variable.
        role : NodeRole or {"root", "leaf", "intermediate"}
            Structural role.  Roots can only be parents, leaves can only
            be children.
        prior : mapping or array-like, optional
            Required for roots, forbidden otherwise.  Either a mapping
            ``value -> probability`` covering the whole domain or an
            array of probabilities in domain order.

        Raises
        ------
        ConstructionError
            If *name* already exists, *role* is unknown, or the prior is
            missing, unexpected or malformed.
        """
        if not isinstance(name, str):
            raise ConstructionError(
                f"Node name must be a string, got {type(name).__name__}"
            )
        if name in self._graph:
            raise ConstructionError(f"Node '{name}' already exists")
        role = _coerce_role(role)

        array = None
        if role is NodeRole.ROOT:
            if prior is None:
                raise ConstructionError(
                    f"Root node '{name}' requires a prior distribution"
                )
            array = self._distribution(prior, f"prior of root node '{name}'")
        elif prior is not None:
            raise ConstructionError(
                f"Only root nodes carry a prior; '{name}' is {role.value}"
            )

        self._graph.add_node(name)
        self._roles[name] = role
        if array is not None:
            self._priors[name] = array
        self._model = None
        logger.debug("Added %s node '%s'", role.value, name)

    def add_dependency(
        self,
        parents: Union[str, Sequence[str]],
        child: str,
        cpt: Any,
    ) -> None:
        """Declare the parents of *child* and its CPT.

        Parameters
        ----------
        parents : list of str
            Ordered parent names.  The order fixes the position of each
            parent's value in the CPT keys.
        child : str
            A non-root node that has no parents yet.
        cpt : mapping or array-like
            Either a mapping from a tuple of parent values (one per
            parent, in order) to a row mapping ``value -> probability``,
            or an array of shape ``(d,) * len(parents) + (d,)``.  Parent
            tuples missing from a mapping have probability zero.

        Raises
        ------
        ConstructionError
            If a node is unknown, *child* is a root or already has
            parents, a parent is a leaf or repeated, the edge would
            close an undirected cycle, or the CPT is malformed.
        """
        if isinstance(parents, str):
            parents = [parents]
        parents = list(parents)
        label = f"{parents} -> '{child}'"

        if not parents:
            raise ConstructionError(f"Dependency {label} has no parents")
        for name in [child] + parents:
            if name not in self._graph:
                raise ConstructionError(f"Node '{name}' not in network")
        if self._roles[child] is NodeRole.ROOT:
            raise ConstructionError(
                f"Cannot add dependency to root node '{child}'"
            )
        for p in parents:
            if self._roles[p] is NodeRole.LEAF:
                raise ConstructionError(
                    f"Cannot add dependency from leaf node '{p}'"
                )
        if child in parents:
            raise ConstructionError(f"Node '{child}' cannot be its own parent")
        if len(set(parents)) != len(parents):
            raise ConstructionError(f"Dependency {label} repeats a parent")
        if child in self._cpts:
            raise ConstructionError(
                f"Node '{child}' already has parents "
                f"{self._parents[child]}; declare all parents of a node "
                f"in a single dependency"
            )

        skeleton = self._graph.to_undirected()
        for p in parents:
            if nx.has_path(skeleton, p, child):
                raise ConstructionError(
                    f"Dependency {label} would create an undirected cycle "
                    f"through '{p}'; belief propagation requires a polytree"
                )
            skeleton.add_edge(p, child)

        array = self._cpt(parents, child, cpt)

        for p in parents:
            self._graph.add_edge(p, child)
        self._parents[child] = parents
        self._cpts[child] = array
        self._model = None
        logger.debug("Added dependency %s", label)

    # ----- validation helpers ---------------------------------------------

    def _distribution(self, dist: Any, label: str) -> np.ndarray:
        """Convert a prior or CPT row into a read-only array."""
        d = len(self._domain)
        if isinstance(dist, Mapping):
            for value in dist:
                if value not in self._domain:
                    raise ConstructionError(
                        f"The {label} contains {value!r}, which is not in "
                        f"the value domain"
                    )
            missing = [v for v in self._domain if v not in dist]
            if missing:
                raise ConstructionError(
                    f"The {label} does not cover the value domain; "
                    f"missing {missing}"
                )
            values = [dist[v] for v in self._domain]
        else:
            values = dist

        try:
            array = np.array(values, dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise ConstructionError(
                f"The {label} is not numeric: {exc}"
            ) from exc
        if array.shape != (d,):
            raise ConstructionError(
                f"The {label} has shape {array.shape}; expected ({d},)"
            )
        self._check_probabilities(array, label)
        self._check_sum(array, label)
        array.setflags(write=False)
        return array

    def _cpt(self, parents: List[str], child: str, cpt: Any) -> np.ndarray:
        """Convert a CPT into a read-only array with one axis per parent."""
        d = len(self._domain)
        k = len(parents)
        shape = (d,) * k + (d,)

        if not isinstance(cpt, Mapping):
            try:
                array = np.array(cpt, dtype=np.float64)
            except (TypeError, ValueError) as exc:
                raise ConstructionError(
                    f"CPT of '{child}' is not numeric: {exc}"
                ) from exc
            if array.shape != shape:
                raise ConstructionError(
                    f"CPT of '{child}' has shape {array.shape}; "
                    f"expected {shape}"
                )
            self._check_probabilities(array, f"CPT of '{child}'")
            for idx in np.ndindex(*shape[:-1]):
                key = tuple(self._domain[i] for i in idx)
                self._check_sum(array[idx], f"CPT row {key!r} of '{child}'")
            array.setflags(write=False)
            return array

        array = np.zeros(shape)
        for key, row in cpt.items():
            if not isinstance(key, tuple):
                raise ConstructionError(
                    f"CPT key {key!r} of '{child}' must be a tuple of "
                    f"parent values"
                )
            if len(key) != k:
                raise ConstructionError(
                    f"CPT key {key!r} of '{child}' has length {len(key)}; "
                    f"expected one value per parent ({k})"
                )
            try:
                idx = tuple(self._domain.index(v) for v in key)
            except ValueError as exc:
                raise ConstructionError(
                    f"CPT key {key!r} of '{child}' contains a value not in "
                    f"the value domain"
                ) from exc
            array[idx] = self._distribution(
                row, f"CPT row {key!r} of '{child}'"
            )
        array.setflags(write=False)
        return array

    @staticmethod
    def _check_probabilities(array: np.ndarray, label: str) -> None:
        if not np.all(np.isfinite(array)) or np.any(array < 0):
            raise ConstructionError(
                f"The {label} contains negative or non-finite probabilities"
            )

    def _check_sum(self, row: np.ndarray, label: str) -> None:
        total = float(row.sum())
        if abs(total - 1.0) > self.tolerance:
            warnings.warn(
                f"The {label} sums to {total!r}, not 1",
                ConstructionWarning,
                stacklevel=4,
            )

    # ------------------------------------------------------------------ #
    #  Internal: compile the immutable model
    # ------------------------------------------------------------------ #

    def model(self) -> NetworkModel:
        """Return the immutable :class:`NetworkModel` of this network.

        The snapshot is cached until the next construction call.

        Raises
        ------
        ConstructionError
            If a non-root node has not been given its dependency.
        """
        if self._model is not None:
            return self._model

        names = list(self._graph.nodes)
        incomplete = [
            n for n in names
            if self._roles[n] is not NodeRole.ROOT and n not in self._cpts
        ]
        if incomplete:
            raise ConstructionError(
                f"Nodes {incomplete} have no parents or CPT; call "
                f"add_dependency() for each before inference"
            )

        ids = {name: i for i, name in enumerate(names)}
        graph = nx.DiGraph()
        graph.add_nodes_from(range(len(names)))
        graph.add_edges_from((ids[u], ids[v]) for u, v in self._graph.edges)

        nodes = tuple(
            Node(
                id=ids[name],
                name=name,
                role=self._roles[name],
                parents=tuple(ids[p] for p in self._parents.get(name, [])),
                children=tuple(ids[c] for c in self._graph.successors(name)),
                prior=self._priors.get(name),
                cpt=self._cpts.get(name),
            )
            for name in names
        )
        self._model = NetworkModel(self._domain, nodes, nx.freeze(graph))
        logger.debug(
            "Compiled network with %d nodes and %d edges",
            len(nodes), graph.number_of_edges(),
        )
        return self._model

    # ------------------------------------------------------------------ #
    #  Inference
    # ------------------------------------------------------------------ #

    def infer(
        self,
        evidence: Optional[Mapping] = None,
        method: str = DEFAULT_METHOD,
        normalize_messages: bool = True,
    ) -> Posteriors:
        """Return the posterior of every node given *evidence*.

        Parameters
        ----------
        evidence : mapping of str -> value, optional
            Observed value per node name.
        method : {"two_pass", "fixed_point"}
            Message schedule, see :func:`pearlbp.inference.propagate`.
        normalize_messages : bool
            Rescale messages to sum to 1 while propagating.

        Returns
        -------
        Posteriors
            Fresh result object; nothing is cached between calls.

        Raises
        ------
        QueryError
            If *evidence* names an unknown node or value.
        InconsistentEvidenceError
            If *evidence* has zero probability under the model.
        ConstructionError
            If the network is incomplete.
        """
        model = self.model()
        resolved = self._resolve_evidence(model, evidence or {})
        messages = propagate(
            model, resolved, method=method, normalize=normalize_messages
        )
        table = combine(model, resolved, messages)
        return Posteriors(model.domain, model.names, table)

    def _resolve_evidence(
        self, model: NetworkModel, evidence: Mapping
    ) -> Evidence:
        resolved: Evidence = {}
        for name, value in evidence.items():
            if name not in model:
                raise QueryError(f"Variable '{name}' not in network")
            try:
                resolved[model.node_id(name)] = model.domain.index(value)
            except ValueError:
                raise QueryError(
                    f"{value!r} is not a valid value of '{name}'. "
                    f"Valid values: {list(model.domain)}"
                ) from None
        return resolved

    def get_inferred_probability(
        self,
        posteriors: Posteriors,
        name: str,
        value: Hashable,
    ) -> float:
        """Return ``P(name = value | evidence)`` from *posteriors*.

        Raises
        ------
        QueryError
            If *name* is not a node of this network or *value* is not in
            the domain.
        """
        if name not in self._graph:
            raise QueryError(f"Variable '{name}' not in network")
        return get_inferred_probability(posteriors, name, value)

    # ------------------------------------------------------------------ #
    #  Queries
    # ------------------------------------------------------------------ #

    @property
    def domain(self) -> ValueDomain:
        return self._domain

    @property
    def nodes(self) -> List[str]:
        """Return node names in insertion order."""
        return list(self._graph.nodes)

    @property
    def edges(self) -> List[tuple[str, str]]:
        """Return directed edges as (parent, child) tuples."""
        return list(self._graph.edges())

    def get_role(self, name: str) -> NodeRole:
        return self._roles[name]

    def get_parents(self, name: str) -> List[str]:
        """Return the ordered parent names of *name*."""
        return list(self._parents.get(name, []))

    def get_children(self, name: str) -> List[str]:
        return list(self._graph.successors(name))

    def describe(self) -> str:
        """Render the network as plain text, one block per node."""
        lines = [f"BayesianNetwork over {list(self._domain)}"]
        for i, name in enumerate(self._graph.nodes):
            lines.append(f"{i}: {name} ({self._roles[name].value})")
            if name in self._priors:
                lines.append(f"  prior: {self._format_row(self._priors[name])}")
            if name in self._cpts:
                lines.append(f"  parents: {self._parents[name]}")
                cpt = self._cpts[name]
                for idx in np.ndindex(*cpt.shape[:-1]):
                    if not cpt[idx].any():
                        continue
                    key = tuple(self._domain[j] for j in idx)
                    lines.append(f"    {key!r} -> {self._format_row(cpt[idx])}")
            children = self.get_children(name)
            if children:
                lines.append(f"  children: {children}")
        return "\n".join(lines)

    def _format_row(self, row: np.ndarray) -> str:
        return repr({v: float(p) for v, p in zip(self._domain, row)})

    def __repr__(self) -> str:
        return (
            f"BayesianNetwork(nodes={list(self._graph.nodes)}, "
            f"edges={list(self._graph.edges)})"
        )


def _coerce_role(role: Union[NodeRole, str]) -> NodeRole:
    if isinstance(role, NodeRole):
        return role
    try:
        return NodeRole(role)
    except ValueError:
        raise ConstructionError(
            f"Unknown node role {role!r}. "
            f"Valid roles: {[r.value for r in NodeRole]}"
        ) from None
