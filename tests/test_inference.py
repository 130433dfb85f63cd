"""End-to-end inference tests for BayesianNetwork.infer.

Covers:
- The two-cause diagnostic network (posteriors after observing a leaf)
- Impossible evidence
- Rejection of dependencies from leaves before any inference
- Priors, indicator posteriors, normalization and idempotence
- Belief propagation vs brute-force enumeration on random polytrees
"""

from __future__ import annotations

import itertools

import numpy as np
import pytest

from pearlbp.core.errors import ConstructionError, InconsistentEvidenceError
from pearlbp.core.types import NodeRole
from pearlbp.networks.dag import BayesianNetwork
from pearlbp.networks.graph import build_chain, build_polytree, build_tree


# ------------------------------------------------------------------ #
#  Helpers
# ------------------------------------------------------------------ #

def _build_mood_network() -> BayesianNetwork:
    """Roots A, B; C has parents [A, B]; leaves D, E hang off C."""
    bn = BayesianNetwork([True, False])
    bn.add_node("A", NodeRole.ROOT, prior={True: 0.01, False: 0.99})
    bn.add_node("B", NodeRole.ROOT, prior={True: 0.1, False: 0.9})
    bn.add_node("C", NodeRole.INTERMEDIATE)
    bn.add_node("D", NodeRole.LEAF)
    bn.add_node("E", NodeRole.LEAF)
    bn.add_dependency(["A", "B"], "C", {
        (True, True): {True: 0.99, False: 0.01},
        (False, True): {True: 0.6, False: 0.4},
        (True, False): {True: 0.9, False: 0.1},
        (False, False): {True: 0.01, False: 0.99},
    })
    bn.add_dependency(["C"], "D", {
        (True,): {True: 0.3, False: 0.7},
        (False,): {True: 0.01, False: 0.99},
    })
    bn.add_dependency(["C"], "E", {
        (True,): {True: 0.9, False: 0.1},
        (False,): {True: 0.01, False: 0.99},
    })
    return bn


def _brute_force_marginals(
    bn: BayesianNetwork,
    evidence: dict | None = None,
) -> np.ndarray:
    """Compute exact marginals by enumerating all joint configurations."""
    model = bn.model()
    d = len(model.domain)
    observed = {
        model.node_id(name): model.domain.index(value)
        for name, value in (evidence or {}).items()
    }
    marginals = np.zeros((len(model.nodes), d))

    for assignment in itertools.product(range(d), repeat=len(model.nodes)):
        if any(assignment[i] != s for i, s in observed.items()):
            continue
        prob = 1.0
        for node in model.nodes:
            if node.is_root:
                prob *= node.prior[assignment[node.id]]
            else:
                key = tuple(assignment[p] for p in node.parents)
                prob *= node.cpt[key + (assignment[node.id],)]
        for i, s in enumerate(assignment):
            marginals[i, s] += prob

    return marginals / marginals.sum(axis=1, keepdims=True)


# ------------------------------------------------------------------ #
#  Reference scenarios
# ------------------------------------------------------------------ #

class TestDiagnosticNetwork:
    """Posteriors of the two-cause network after observing D = True."""

    @pytest.mark.parametrize("method", ["two_pass", "fixed_point"])
    def test_posteriors_given_d(self, method: str) -> None:
        bn = _build_mood_network()
        post = bn.infer({"D": True}, method=method)
        assert post.probability("A", True) == pytest.approx(0.0843, abs=0.002)
        assert post.probability("B", True) == pytest.approx(0.571, abs=0.002)
        assert post.probability("C", True) == pytest.approx(0.716, abs=0.002)
        assert post.probability("D", True) == 1.0
        assert post.probability("E", True) == pytest.approx(0.647, abs=0.002)

    def test_matches_brute_force(self) -> None:
        bn = _build_mood_network()
        post = bn.infer({"D": True})
        np.testing.assert_allclose(
            post.table, _brute_force_marginals(bn, {"D": True}), atol=1e-12
        )

    def test_explaining_away(self) -> None:
        """Observing one cause lowers the posterior of the other."""
        bn = _build_mood_network()
        only_d = bn.infer({"D": True}).probability("B", True)
        with_a = bn.infer({"D": True, "A": True}).probability("B", True)
        assert with_a < only_d


class TestImpossibleEvidence:
    """Evidence with zero probability under the model."""

    def test_zero_probability_observation_raises(self) -> None:
        bn = BayesianNetwork(["on", "off"])
        bn.add_node("Switch", "root", prior={"on": 0.5, "off": 0.5})
        bn.add_node("Lamp", "leaf")
        bn.add_dependency(["Switch"], "Lamp", {
            ("on",): {"on": 0.0, "off": 1.0},
            ("off",): {"on": 0.0, "off": 1.0},
        })
        for method in ("two_pass", "fixed_point"):
            with pytest.raises(InconsistentEvidenceError):
                bn.infer({"Lamp": "on"}, method=method)

    def test_contradiction_given_other_evidence_raises(self) -> None:
        """C = True is impossible once both parents are False."""
        bn = BayesianNetwork([True, False])
        bn.add_node("A", "root", prior=[0.5, 0.5])
        bn.add_node("B", "root", prior=[0.5, 0.5])
        bn.add_node("C", "leaf")
        bn.add_dependency(["A", "B"], "C", {
            (True, True): {True: 1.0, False: 0.0},
            (True, False): {True: 1.0, False: 0.0},
            (False, True): {True: 1.0, False: 0.0},
            (False, False): {True: 0.0, False: 1.0},
        })
        bn.infer({"C": True})
        with pytest.raises(InconsistentEvidenceError):
            bn.infer({"C": True, "A": False, "B": False})

    def test_not_reported_as_value_error(self) -> None:
        bn = BayesianNetwork(["on", "off"])
        bn.add_node("Switch", "root", prior=[1.0, 0.0])
        bn.add_node("Lamp", "leaf")
        bn.add_dependency(["Switch"], "Lamp", np.eye(2))
        with pytest.raises(InconsistentEvidenceError) as info:
            bn.infer({"Lamp": "off"})
        assert not isinstance(info.value, ValueError)


class TestLeafDependencyRejected:
    """Leaves cannot become parents."""

    def test_dependency_from_leaf_fails_before_inference(self) -> None:
        bn = _build_mood_network()
        bn.add_node("F", NodeRole.LEAF)
        with pytest.raises(ConstructionError, match="leaf node 'D'"):
            bn.add_dependency(["D"], "F", np.eye(2))
        assert bn.get_children("D") == []


# ------------------------------------------------------------------ #
#  Properties
# ------------------------------------------------------------------ #

class TestProperties:
    """Invariants that hold for every network and evidence set."""

    def test_roots_without_evidence_keep_prior(self) -> None:
        bn = _build_mood_network()
        post = bn.infer()
        np.testing.assert_allclose(post.distribution("A"), [0.01, 0.99],
                                   atol=1e-12)
        np.testing.assert_allclose(post.distribution("B"), [0.1, 0.9],
                                   atol=1e-12)

    def test_observed_nodes_are_indicators(self) -> None:
        bn = _build_mood_network()
        post = bn.infer({"C": False, "A": True})
        assert post["C"] == {True: 0.0, False: 1.0}
        assert post["A"] == {True: 1.0, False: 0.0}

    @pytest.mark.parametrize("seed", range(4))
    def test_posteriors_sum_to_one(self, seed: int) -> None:
        bn = build_polytree(15, num_states=3, seed=seed)
        post = bn.infer({"X3": "s2", "X9": "s0"})
        np.testing.assert_allclose(post.table.sum(axis=1), 1.0, atol=1e-9)

    def test_idempotent(self) -> None:
        bn = _build_mood_network()
        first = bn.infer({"E": False})
        second = bn.infer({"E": False})
        assert first is not second
        np.testing.assert_array_equal(first.table, second.table)

    def test_no_state_between_calls(self) -> None:
        bn = _build_mood_network()
        before = bn.infer()
        bn.infer({"D": True})
        after = bn.infer()
        np.testing.assert_array_equal(before.table, after.table)

    def test_long_chain_does_not_underflow(self) -> None:
        bn = build_chain(400, num_states=4, seed=3)
        post = bn.infer({"X0": "s1", "X399": "s2"})
        assert np.all(np.isfinite(post.table))
        np.testing.assert_allclose(post.table.sum(axis=1), 1.0, atol=1e-9)


# ------------------------------------------------------------------ #
#  Brute-force comparison
# ------------------------------------------------------------------ #

class TestAgainstBruteForce:
    """Belief propagation is exact on polytrees."""

    @pytest.mark.parametrize("method", ["two_pass", "fixed_point"])
    @pytest.mark.parametrize("seed", range(6))
    def test_random_polytree(self, method: str, seed: int) -> None:
        bn = build_polytree(7, num_states=2, seed=seed)
        rng = np.random.default_rng(seed)
        names = rng.choice(bn.nodes, size=2, replace=False)
        evidence = {str(n): f"s{rng.integers(2)}" for n in names}
        post = bn.infer(evidence, method=method)
        np.testing.assert_allclose(
            post.table, _brute_force_marginals(bn, evidence), atol=1e-10
        )

    @pytest.mark.parametrize("seed", range(3))
    def test_three_state_polytree(self, seed: int) -> None:
        bn = build_polytree(6, num_states=3, seed=100 + seed)
        evidence = {"X5": "s1"}
        post = bn.infer(evidence)
        np.testing.assert_allclose(
            post.table, _brute_force_marginals(bn, evidence), atol=1e-10
        )

    def test_tree_without_evidence(self) -> None:
        bn = build_tree(7, num_states=2, seed=0)
        np.testing.assert_allclose(
            bn.infer().table, _brute_force_marginals(bn), atol=1e-10
        )

    def test_unnormalized_messages_are_also_exact(self) -> None:
        bn = build_polytree(8, num_states=2, seed=42)
        evidence = {"X2": "s0", "X6": "s1"}
        post = bn.infer(evidence, normalize_messages=False)
        np.testing.assert_allclose(
            post.table, _brute_force_marginals(bn, evidence), atol=1e-10
        )
