"""Tests for pearlbp/core/types.py and pearlbp/core/errors.py."""

from __future__ import annotations

import networkx as nx
import numpy as np
import pytest

from pearlbp.core.errors import (
    ConstructionError,
    InconsistentEvidenceError,
    PearlBPError,
    QueryError,
)
from pearlbp.core.types import NodeRole, ValueDomain
from pearlbp.networks.dag import BayesianNetwork


class TestValueDomain:
    """Tests for the shared value domain."""

    def test_index_follows_order(self) -> None:
        domain = ValueDomain(["low", "mid", "high"])
        assert domain.index("low") == 0
        assert domain.index("high") == 2
        assert len(domain) == 3
        assert list(domain) == ["low", "mid", "high"]
        assert domain[1] == "mid"

    def test_unknown_value_raises(self) -> None:
        domain = ValueDomain([True, False])
        with pytest.raises(ValueError, match="not in the value domain"):
            domain.index("maybe")

    def test_unhashable_value_is_not_contained(self) -> None:
        domain = ValueDomain(["a", "b"])
        assert ["a"] not in domain
        with pytest.raises(ValueError, match="not in the value domain"):
            domain.index(["a"])

    def test_empty_domain_raises(self) -> None:
        with pytest.raises(ValueError, match="must not be empty"):
            ValueDomain([])

    def test_duplicate_value_raises(self) -> None:
        with pytest.raises(ValueError, match="duplicate"):
            ValueDomain(["a", "b", "a"])

    def test_unhashable_domain_value_raises(self) -> None:
        with pytest.raises(ValueError, match="not hashable"):
            ValueDomain([["a"], ["b"]])

    def test_indicator(self) -> None:
        domain = ValueDomain(["a", "b", "c"])
        np.testing.assert_array_equal(domain.indicator(1), [0.0, 1.0, 0.0])

    def test_equality(self) -> None:
        assert ValueDomain([1, 2]) == ValueDomain([1, 2])
        assert ValueDomain([1, 2]) != ValueDomain([2, 1])


class TestNetworkModel:
    """Tests for the compiled, read-only network snapshot."""

    def _model(self):
        bn = BayesianNetwork(["a", "b"])
        bn.add_node("P", NodeRole.ROOT, prior=[0.5, 0.5])
        bn.add_node("Q", NodeRole.ROOT, prior=[0.2, 0.8])
        bn.add_node("C", NodeRole.LEAF)
        bn.add_dependency(["Q", "P"], "C", np.full((2, 2, 2), 0.5))
        return bn.model()

    def test_ids_follow_insertion_order(self) -> None:
        model = self._model()
        assert model.names == ("P", "Q", "C")
        assert [n.id for n in model.nodes] == [0, 1, 2]
        assert model.node_id("C") == 2

    def test_parent_order_is_kept(self) -> None:
        model = self._model()
        child = model.nodes[2]
        assert child.parents == (1, 0)
        assert child.parent_index(0) == 1
        assert model.nodes[0].children == (2,)

    def test_arrays_are_read_only(self) -> None:
        model = self._model()
        with pytest.raises(ValueError):
            model.nodes[0].prior[0] = 1.0
        with pytest.raises(ValueError):
            model.nodes[2].cpt[0, 0, 0] = 1.0

    def test_graph_is_frozen(self) -> None:
        model = self._model()
        assert sorted(model.graph.edges) == [(0, 2), (1, 2)]
        with pytest.raises(nx.NetworkXError):
            model.graph.add_edge(2, 0)

    def test_unknown_name_raises_key_error(self) -> None:
        model = self._model()
        assert "Z" not in model
        with pytest.raises(KeyError):
            model.node_id("Z")


class TestErrors:
    """Tests for the error taxonomy."""

    def test_input_errors_are_value_errors(self) -> None:
        assert issubclass(ConstructionError, ValueError)
        assert issubclass(QueryError, ValueError)
        assert issubclass(ConstructionError, PearlBPError)

    def test_inconsistent_evidence_is_distinct(self) -> None:
        exc = InconsistentEvidenceError("Mood")
        assert exc.node == "Mood"
        assert "zero probability" in str(exc)
        assert isinstance(exc, PearlBPError)
        assert not isinstance(exc, ValueError)
