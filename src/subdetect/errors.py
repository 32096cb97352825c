from __future__ import annotations


class SubdetectError(Exception):
    pass


class DataAccessError(SubdetectError):
    """A read or write against the transaction source or subscription store failed.

    Aborts the current detection call. All engine writes are upserts keyed by
    natural identity, so callers may retry.
    """


class ClusterRejected(SubdetectError):
    # Internal skip signal; the engine records it and moves on.
    reason = "rejected"


class InsufficientOccurrences(ClusterRejected):
    reason = "insufficient_occurrences"


class NoCadenceMatch(ClusterRejected):
    reason = "no_cadence_match"

    def __init__(self, message: str = "", reason: str | None = None):
        super().__init__(message)
        if reason:
            self.reason = reason
