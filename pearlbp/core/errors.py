"""Exception and warning types raised by pearlbp."""


class PearlBPError(Exception):
    """Base class for all pearlbp errors."""


class ConstructionError(PearlBPError, ValueError):
    """A node or dependency could not be added to the network.

    Raised before any part of the network is modified, so a failed
    construction call leaves the network exactly as it was.
    """


class ConstructionWarning(UserWarning):
    """A prior or CPT row does not sum to 1 within the tolerance."""


class QueryError(PearlBPError, ValueError):
    """Evidence or a result lookup names an unknown node or value."""


class InconsistentEvidenceError(PearlBPError):
    """The evidence has zero probability under the model.

    Parameters
    ----------
    node : str
        Name of the node whose belief could not be normalized.
    """

    def __init__(self, node: str) -> None:
        self.node = node
        super().__init__(
            f"Evidence has zero probability under the model: belief of "
            f"node '{node}' cannot be normalized"
        )
