"""
Contains TallyLedger class, the record of vote movement between candidates in each round.
"""

from typing import Dict, List, Optional, Tuple

import decimal

import rcv_tabulator.util as util


class TallyLedger:
    """
    Append-only record of round -> source -> target -> votes.

    A ballot counted for the first time comes from :attr:`UNCOUNTED`. A ballot that runs out of
    continuing choices goes to :attr:`EXHAUSTED`. Surplus that rounding left with a winner goes
    to :attr:`RESIDUAL_SURPLUS`.
    """

    UNCOUNTED = "uncounted"
    EXHAUSTED = "exhausted"
    RESIDUAL_SURPLUS = "residual surplus"

    def __init__(self) -> None:
        self._transfers = {}

    def add_transfer(
        self, round_num: int, source: Optional[str], target: Optional[str], value: decimal.Decimal
    ) -> None:
        """Record `value` votes moving from `source` to `target` in `round_num`.

        A source of None is recorded as :attr:`UNCOUNTED` and a target of None as :attr:`EXHAUSTED`.
        """
        source = TallyLedger.UNCOUNTED if source is None else source
        target = TallyLedger.EXHAUSTED if target is None else target

        round_transfers = self._transfers.setdefault(round_num, {})
        source_transfers = round_transfers.setdefault(source, {})
        source_transfers[target] = source_transfers.get(target, util.ZERO) + value

    def rounds(self) -> List[int]:
        return sorted(self._transfers)

    def get_transfers_for_round(self, round_num: int) -> Dict[str, Dict[str, decimal.Decimal]]:
        """Copy of source -> target -> votes for one round. Empty if nothing moved."""
        return {
            source: dict(targets) for source, targets in self._transfers.get(round_num, {}).items()
        }

    def get_transfer(self, round_num: int, source: str, target: str) -> decimal.Decimal:
        return self._transfers.get(round_num, {}).get(source, {}).get(target, util.ZERO)

    def total_from(self, round_num: int, source: str) -> decimal.Decimal:
        return sum(self._transfers.get(round_num, {}).get(source, {}).values(), util.ZERO)

    def as_records(self) -> List[Tuple[int, str, str, decimal.Decimal]]:
        """Flatten into (round, source, target, votes) tuples in round order."""
        return [
            (round_num, source, target, value)
            for round_num in self.rounds()
            for source, targets in self._transfers[round_num].items()
            for target, value in targets.items()
        ]
