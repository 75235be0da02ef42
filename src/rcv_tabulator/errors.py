"""
Exceptions raised while tabulating a contest.

Two kinds of failure halt a tabulation and are kept apart so that callers can react
differently: an abort (the ballots or the rules do not allow a correct result) and a
cancellation (an operator declined to resolve an interactive tie-break).
"""


class TabulationError(RuntimeError):
    """Base class for failures that stop a tabulation."""

    cancelled_by_user = False


class TabulationAbortedError(TabulationError):
    """The input data or contest rules prevent the tabulation from completing."""

    def __init__(self, message: str = "Tabulation was cancelled due to a problem with the input data or config.") -> None:
        super().__init__(message)


class InvalidContestRulesError(TabulationAbortedError):
    """A rule value or combination of rule values is not allowed."""


class TabulationCancelledError(TabulationError):
    """An operator cancelled the tabulation from an interactive tie-break."""

    cancelled_by_user = True

    def __init__(self, message: str = "Tabulation was cancelled by the user!") -> None:
        super().__init__(message)
