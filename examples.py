"""Example usage of the pearlbp package.

This example demonstrates:
- Building a small diagnostic network and querying it with evidence
- Tagging "time flies like an arrow" with a chain of part-of-speech nodes
- Choosing between the two message schedules
- Detecting evidence that is impossible under the model
"""

from pearlbp import BayesianNetwork, InconsistentEvidenceError, NodeRole


def build_mood_network():
    """Two causes of a good mood, and two things a good mood leads to."""
    bn = BayesianNetwork([True, False])
    bn.add_node("Performance", NodeRole.ROOT, prior={True: 0.01, False: 0.99})
    bn.add_node("HorseRace", NodeRole.ROOT, prior={True: 0.1, False: 0.9})
    bn.add_node("Mood", NodeRole.INTERMEDIATE)
    bn.add_node("Bonus", NodeRole.LEAF)
    bn.add_node("Feast", NodeRole.LEAF)

    bn.add_dependency(["Performance", "HorseRace"], "Mood", {
        (True, True): {True: 0.99, False: 0.01},
        (False, True): {True: 0.6, False: 0.4},
        (True, False): {True: 0.9, False: 0.1},
        (False, False): {True: 0.01, False: 0.99},
    })
    bn.add_dependency(["Mood"], "Bonus", {
        (True,): {True: 0.3, False: 0.7},
        (False,): {True: 0.01, False: 0.99},
    })
    bn.add_dependency(["Mood"], "Feast", {
        (True,): {True: 0.9, False: 0.1},
        (False,): {True: 0.01, False: 0.99},
    })
    return bn


PARTS = ["noun", "verb", "adjective", "article", "preposition"]
WORDS = ["time", "flies", "like", "an", "arrow"]


def _row(**probs):
    """Distribution over parts and words, zero where not given."""
    return {v: probs.get(v, 0.0) for v in PARTS + WORDS}


def build_tagging_network():
    """Hidden part-of-speech chain with one observed word per position."""
    bn = BayesianNetwork(PARTS + WORDS)

    transition = {
        ("noun",): _row(noun=0.3, verb=0.4, adjective=0.1, preposition=0.2),
        ("verb",): _row(noun=0.1, adjective=0.5, article=0.2, preposition=0.2),
        ("adjective",): _row(noun=0.5, adjective=0.4, article=0.1),
        ("article",): _row(noun=0.7, preposition=0.3),
        ("preposition",): _row(noun=0.6, adjective=0.1, article=0.3),
    }
    emission = {
        ("noun",): _row(time=0.6, arrow=0.3, flies=0.1),
        ("verb",): _row(like=0.7, arrow=0.1, flies=0.2),
        ("adjective",): _row(like=1.0),
        ("article",): _row(an=1.0),
        ("preposition",): _row(like=1.0),
    }

    positions = [w.capitalize() for w in WORDS]
    bn.add_node(f"{positions[0]}Part", NodeRole.ROOT,
                prior=_row(noun=0.6, article=0.4))
    for pos in positions[1:]:
        bn.add_node(f"{pos}Part", NodeRole.INTERMEDIATE)
    for pos in positions:
        bn.add_node(f"{pos}Word", NodeRole.LEAF)

    for prev, pos in zip(positions, positions[1:]):
        bn.add_dependency([f"{prev}Part"], f"{pos}Part", transition)
    for pos in positions:
        bn.add_dependency([f"{pos}Part"], f"{pos}Word", emission)
    return bn


def mood_example():
    """Explain an observed bonus."""
    print("=" * 60)
    print("Diagnostic Network Example")
    print("=" * 60)

    bn = build_mood_network()
    posteriors = bn.infer({"Bonus": True})
    for name in bn.nodes:
        p = bn.get_inferred_probability(posteriors, name, True)
        print(f"   P({name} = True | Bonus = True): {p:.4f}")

    print("\n" + bn.describe())


def tagging_example():
    """Tag each word of "time flies like an arrow"."""
    print("\n" + "=" * 60)
    print("Part-of-Speech Tagging Example")
    print("=" * 60)

    bn = build_tagging_network()
    evidence = {f"{w.capitalize()}Word": w for w in WORDS}
    posteriors = bn.infer(evidence)
    for w in WORDS:
        dist = posteriors[f"{w.capitalize()}Part"]
        best = max(PARTS, key=dist.get)
        print(f"   {w:<6} -> {best:<12} ({dist[best]:.4f})")


def schedule_example():
    """Both message schedules give the same posteriors."""
    print("\n" + "=" * 60)
    print("Message Schedule Example")
    print("=" * 60)

    bn = build_mood_network()
    two_pass = bn.infer({"Feast": False}, method="two_pass")
    fixed_point = bn.infer({"Feast": False}, method="fixed_point")
    diff = abs(two_pass.table - fixed_point.table).max()
    print(f"   Max difference between schedules: {diff:.2e}")


def inconsistent_evidence_example():
    """An article can never be followed by a verb in the tagging model."""
    print("\n" + "=" * 60)
    print("Inconsistent Evidence Example")
    print("=" * 60)

    bn = build_tagging_network()
    try:
        bn.infer({"TimePart": "article", "FliesPart": "verb"})
    except InconsistentEvidenceError as exc:
        print(f"   {exc}")


if __name__ == "__main__":
    mood_example()
    tagging_example()
    schedule_example()
    inconsistent_evidence_example()

    print("\n" + "=" * 60)
    print("Examples completed successfully!")
    print("=" * 60 + "\n")
