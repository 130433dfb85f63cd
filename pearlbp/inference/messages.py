"""Per-call storage for pi and lambda messages."""

from __future__ import annotations

from typing import Dict, Iterator, Tuple

import numpy as np

Edge = Tuple[int, int]


class MessageStore:
    """Messages of one inference run, keyed by directed edge.

    ``pi`` holds parent -> child messages keyed ``(parent, child)``;
    ``lam`` holds child -> parent messages keyed ``(child, parent)``.
    A store is never shared between :meth:`infer` calls.
    """

    def __init__(self) -> None:
        self.pi: Dict[Edge, np.ndarray] = {}
        self.lam: Dict[Edge, np.ndarray] = {}

    # ----- pi ------------------------------------------------------------

    def has_pi(self, parent: int, child: int) -> bool:
        return (parent, child) in self.pi

    def get_pi(self, parent: int, child: int) -> np.ndarray:
        return self.pi[(parent, child)]

    def set_pi(self, parent: int, child: int, message: np.ndarray) -> None:
        self.pi[(parent, child)] = message

    # ----- lambda --------------------------------------------------------

    def has_lambda(self, child: int, parent: int) -> bool:
        return (child, parent) in self.lam

    def get_lambda(self, child: int, parent: int) -> np.ndarray:
        return self.lam[(child, parent)]

    def set_lambda(self, child: int, parent: int, message: np.ndarray) -> None:
        self.lam[(child, parent)] = message

    # ----- helpers -------------------------------------------------------

    def __len__(self) -> int:
        return len(self.pi) + len(self.lam)

    def __iter__(self) -> Iterator[Tuple[str, Edge]]:
        for edge in self.pi:
            yield "pi", edge
        for edge in self.lam:
            yield "lambda", edge

    def __repr__(self) -> str:
        return f"MessageStore(pi={len(self.pi)}, lambda={len(self.lam)})"
