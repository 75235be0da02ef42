"""
Contains RoundTally class, the vote totals of a single round.
"""

from __future__ import annotations
from typing import Dict, Iterable, List, Optional

import decimal
import enum

import rcv_tabulator.util as util
from rcv_tabulator.ballots import BallotStatus
from rcv_tabulator.rankings import RankingSet


class _TallyState(enum.Enum):
    BUILDING = "building"
    LOCKED = "locked"
    UNLOCKED_FOR_ADJUSTMENT = "unlocked_for_adjustment"


class RoundTally:
    """
    Candidate and ballot status totals for one round.

    A tally is filled while BUILDING, then locked. Once locked it is read-only, except for
    a short window opened by :meth:`unlock_for_surplus_adjustment` in which winner totals can
    be rewritten. The active ballot total is fixed at lock time and is not changed by
    adjustments.
    """

    def __init__(self, round_num: int, candidates: Iterable[str]) -> None:
        self.round_num = round_num
        self._state = _TallyState.BUILDING
        self._candidate_tallies = {candidate: util.ZERO for candidate in candidates}
        self._ballot_status_tallies = {status: util.ZERO for status in BallotStatus}
        self._winning_threshold = None
        self._active_ballot_sum = None
        self._inactive_ballot_sum = None

    ########################
    # state changes

    def lock(self) -> None:
        if self._state is not _TallyState.BUILDING:
            raise RuntimeError("Round tally can only be locked once, while it is being built.")
        self._active_ballot_sum = self._ballot_status_tallies[BallotStatus.ACTIVE]
        self._inactive_ballot_sum = sum(
            (self._ballot_status_tallies[status] for status in BallotStatus.inactive_statuses()), util.ZERO
        )
        self._state = _TallyState.LOCKED

    def unlock_for_surplus_adjustment(self) -> None:
        if self._state is not _TallyState.LOCKED:
            raise RuntimeError("Round tally must be locked before it can be unlocked for surplus adjustment.")
        self._state = _TallyState.UNLOCKED_FOR_ADJUSTMENT

    def relock(self) -> None:
        if self._state is not _TallyState.UNLOCKED_FOR_ADJUSTMENT:
            raise RuntimeError("Round tally can only be relocked after being unlocked for surplus adjustment.")
        self._state = _TallyState.LOCKED

    @property
    def is_locked(self) -> bool:
        return self._state is _TallyState.LOCKED

    ########################
    # setters

    def _ensure_building(self) -> None:
        if self._state is not _TallyState.BUILDING:
            raise RuntimeError("Cannot set data after round is finalized.")

    def _ensure_finalized(self) -> None:
        if self._state is _TallyState.BUILDING:
            raise RuntimeError("Cannot retrieve data until round is finalized.")

    def add_to_candidate_tally(self, candidate: str, value: decimal.Decimal) -> None:
        self._ensure_building()
        self._candidate_tallies[candidate] = self._candidate_tallies.get(candidate, util.ZERO) + value
        self._ballot_status_tallies[BallotStatus.ACTIVE] += value

    def set_candidate_tally(self, candidate: str, value: decimal.Decimal) -> None:
        """Overwrite a candidate total. Allowed while building or during a surplus adjustment."""
        if self._state is _TallyState.LOCKED:
            raise RuntimeError("Cannot set data after round is finalized.")
        self._candidate_tallies[candidate] = value

    def add_inactive_ballot(self, status: BallotStatus, value: decimal.Decimal) -> None:
        self._ensure_building()
        if status is BallotStatus.ACTIVE:
            raise ValueError("inactive ballots cannot be counted with status ACTIVE")
        self._ballot_status_tallies[status] += value

    @property
    def winning_threshold(self) -> Optional[decimal.Decimal]:
        self._ensure_finalized()
        return self._winning_threshold

    @winning_threshold.setter
    def winning_threshold(self, value: decimal.Decimal) -> None:
        self._ensure_finalized()
        self._winning_threshold = value

    ########################
    # getters

    def get_candidate_tally(self, candidate: str) -> decimal.Decimal:
        self._ensure_finalized()
        return self._candidate_tallies.get(candidate, util.ZERO)

    def candidate_tallies(self) -> Dict[str, decimal.Decimal]:
        self._ensure_finalized()
        return dict(self._candidate_tallies)

    def candidates(self) -> List[str]:
        return list(self._candidate_tallies)

    def get_ballot_status_tally(self, status: BallotStatus) -> decimal.Decimal:
        self._ensure_finalized()
        return self._ballot_status_tallies[status]

    def ballot_status_tallies(self) -> Dict[BallotStatus, decimal.Decimal]:
        self._ensure_finalized()
        return dict(self._ballot_status_tallies)

    def active_ballot_sum(self) -> decimal.Decimal:
        self._ensure_finalized()
        return self._active_ballot_sum

    def inactive_ballot_sum(self) -> decimal.Decimal:
        self._ensure_finalized()
        return self._inactive_ballot_sum

    def get_sorted_candidates_by_tally(self) -> List[str]:
        """Candidates ordered by descending tally, ties by name, with undeclared write-ins always last."""
        self._ensure_finalized()
        return sorted(
            self._candidate_tallies,
            key=lambda c: (c == RankingSet.UNDECLARED_WRITE_IN, -self._candidate_tallies[c], c),
        )

    def __repr__(self) -> str:
        return f"RoundTally(round={self.round_num}, state={self._state.value}, tallies={self._candidate_tallies})"
