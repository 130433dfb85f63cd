"""Inference algorithms for pearlbp."""

from pearlbp.inference.belief import combine
from pearlbp.inference.messages import MessageStore
from pearlbp.inference.propagation import (
    DEFAULT_METHOD,
    METHODS,
    lambda_message,
    pi_message,
    pi_support,
    propagate,
)
from pearlbp.inference.results import Posteriors, get_inferred_probability

__all__ = [
    "DEFAULT_METHOD",
    "METHODS",
    "MessageStore",
    "Posteriors",
    "combine",
    "get_inferred_probability",
    "lambda_message",
    "pi_message",
    "pi_support",
    "propagate",
]
