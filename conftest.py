import decimal

import pytest

from rcv_tabulator.ballots import Ballot
from rcv_tabulator.rcv.tiebreak import TiebreakOracle


def make_ballots(marks_list, slices=None):
    """Build Ballots from lists of marks. `slices` is an optional slice key per ballot."""
    if slices is None:
        slices = [None] * len(marks_list)
    return [
        Ballot.from_marks(marks, ballot_id=str(idx), slice_key=slice_key)
        for idx, (marks, slice_key) in enumerate(zip(marks_list, slices), start=1)
    ]


def as_floats(d):
    return {k: float(v) for k, v in d.items()}


class FixedTiebreakOracle(TiebreakOracle):
    """Answers every tie-break with the first of `choices` that is tied, and remembers what it was asked."""

    def __init__(self, choices):
        self.choices = list(choices)
        self.calls = []

    def resolve(self, tied_candidates, selecting_winner, round_num, num_votes):
        self.calls.append((list(tied_candidates), selecting_winner, round_num, num_votes))
        return next(c for c in self.choices if c in tied_candidates)


@pytest.fixture
def ballots_from_marks():
    return make_ballots


@pytest.fixture
def fixed_oracle():
    return FixedTiebreakOracle


@pytest.fixture
def D():
    return decimal.Decimal
