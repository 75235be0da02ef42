"""
Contains Ballot class and the BallotStatus categories used to count inactive ballots.
"""

from __future__ import annotations
from typing import List, Optional, Tuple

import decimal
import enum
import logging

import rcv_tabulator.util as util
from rcv_tabulator.rankings import RankingSet

_log = logging.getLogger(__name__)


class BallotStatus(enum.Enum):
    ACTIVE = "active"
    DID_NOT_RANK_ANY_CANDIDATES = "did_not_rank_any_candidates"
    INVALIDATED_BY_OVERVOTE = "invalidated_by_overvote"
    INVALIDATED_BY_SKIPPED_RANKING = "invalidated_by_skipped_ranking"
    INVALIDATED_BY_REPEATED_RANKING = "invalidated_by_repeated_ranking"
    EXHAUSTED_CHOICE = "exhausted_choice"
    FINAL_ROUND_SURPLUS = "final_round_surplus"

    @classmethod
    def inactive_statuses(cls) -> List[BallotStatus]:
        return [status for status in cls if status is not cls.ACTIVE]


class Ballot:
    """
    A single cast vote record: a RankingSet plus the state the tabulation keeps about it.

    The tabulation engine is the only thing that mutates a ballot. Rankings are shared
    between copies, tabulation state is not.
    """

    def __init__(
        self, rankings: RankingSet, ballot_id: Optional[str] = None, slice_key: Optional[str] = None
    ) -> None:
        if not isinstance(rankings, RankingSet):
            raise TypeError("rankings must be a RankingSet")

        self.rankings = rankings
        self.ballot_id = ballot_id
        self.slice_key = slice_key

        self.current_recipient = None
        self.is_exhausted = False
        self.exhaust_status = None
        self.winner_allocations = {}
        self.snapshots = {}

    @classmethod
    def from_marks(
        cls,
        marks: List,
        ballot_id: Optional[str] = None,
        slice_key: Optional[str] = None,
        treat_blank_as_undeclared_write_in: bool = False,
    ) -> Ballot:
        """Shortcut for building a ballot from a positional list of marks. See :meth:`RankingSet.from_marks`.

        :rtype: Ballot
        """
        rankings = RankingSet.from_marks(marks, treat_blank_as_undeclared_write_in=treat_blank_as_undeclared_write_in)
        return cls(rankings, ballot_id=ballot_id, slice_key=slice_key)

    def copy(self) -> Ballot:
        """Return a new ballot with the same rankings and fresh tabulation state."""
        return Ballot(self.rankings, ballot_id=self.ballot_id, slice_key=self.slice_key)

    def fractional_transfer_value(self) -> decimal.Decimal:
        """Portion of this ballot not yet permanently allocated to a past winner."""
        return util.ONE - sum(self.winner_allocations.values(), util.ZERO)

    def record_winner(
        self,
        candidate: str,
        surplus_fraction: decimal.Decimal,
        decimal_places: int,
        rounding: str = decimal.ROUND_DOWN,
    ) -> decimal.Decimal:
        """Allocate the part of this ballot that stays with `candidate`, who was just elected.

        The transferred part is rounded toward the winner (down, by default) so that a surplus
        never pulls the winner below the threshold.

        :param candidate: Winner currently holding this ballot.
        :type candidate: str
        :param surplus_fraction: Share of the winner's tally that is surplus.
        :type surplus_fraction: decimal.Decimal
        :param decimal_places: Decimal places used for vote arithmetic.
        :type decimal_places: int
        :param rounding: decimal rounding mode applied to the transferred amount, defaults to decimal.ROUND_DOWN
        :type rounding: str, optional
        :return: The amount that will transfer onward.
        :rtype: decimal.Decimal
        """
        value = self.fractional_transfer_value()
        transfer_amount = (value * surplus_fraction).quantize(util.smallest_unit(decimal_places), rounding=rounding)
        self.winner_allocations[candidate] = value - transfer_amount
        return transfer_amount

    def exhaust(self, status: BallotStatus) -> None:
        if self.is_exhausted:
            raise RuntimeError(f"ballot {self.ballot_id} is already exhausted")
        if status is BallotStatus.ACTIVE:
            raise ValueError("a ballot cannot be exhausted with status ACTIVE")
        self.is_exhausted = True
        self.exhaust_status = status

    def record_snapshot(self, round_num: int) -> None:
        """Store the ballot's allocations at the end of a round, winners first then the current recipient."""
        self.snapshots[round_num] = self.get_allocation_snapshot()

    def get_allocation_snapshot(self) -> List[Tuple[str, decimal.Decimal]]:
        snapshot = list(self.winner_allocations.items())
        if self.current_recipient is not None:
            snapshot.append((self.current_recipient, self.fractional_transfer_value()))
        return snapshot

    def log_round_outcome(self, round_num: int, outcome: str, target: Optional[str], value: decimal.Decimal) -> None:
        if not _log.isEnabledFor(logging.DEBUG):
            return
        target_text = f" {target}" if target is not None else ""
        value_text = "" if value == util.ONE else f" [value] {value}"
        _log.debug(f"[Round] {round_num} [Ballot] {self.ballot_id} [{outcome}]{target_text}{value_text}")

    def __repr__(self) -> str:
        return f"Ballot(id={self.ballot_id!r}, rankings={self.rankings!r}, recipient={self.current_recipient!r})"
