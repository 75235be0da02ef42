"""
Contains the RCV class.
Defines the class and adds in methods from rcv/stats.py and rcv/tables.py files.
"""
from __future__ import annotations
from typing import Dict, Iterable, List, Optional, Tuple, Union

import decimal
import logging

import tqdm

from rcv_tabulator.ballots import Ballot, BallotStatus
from rcv_tabulator.rcv.engine import TabulationEngine
from rcv_tabulator.rcv.stats import RCV_stats
from rcv_tabulator.rcv.tables import RCV_tables
from rcv_tabulator.rcv.tiebreak import TiebreakOracle
from rcv_tabulator.rules import ContestRules, WinnerElectionMode

_log = logging.getLogger(__name__)


class RCV(RCV_stats, RCV_tables):
    """
    A tabulated RCV contest. Runs one tabulation, or one tabulation per seat for sequential
    multi-pass contests, and exposes round by round results of each tabulation.
    """

    def __init__(
        self,
        ballots: Iterable[Ballot],
        rules: Union[ContestRules, Dict],
        tiebreak_oracle: Optional[TiebreakOracle] = None,
        slices: Optional[Iterable[str]] = None,
        progress: bool = False,
    ) -> None:
        """
        Constructor. Validates the rules and tabulates the contest. The ballots passed in are not modified, each tabulation works on fresh copies.

        :param ballots: Ballots cast in the contest.
        :type ballots: Iterable[Ballot]
        :param rules: Contest rules, or a dictionary of keyword arguments for :meth:`ContestRules.new_rule_set`.
        :type rules: Union[ContestRules, Dict]
        :param tiebreak_oracle: Decision source for interactive tie-break modes, defaults to None
        :type tiebreak_oracle: Optional[TiebreakOracle], optional
        :param slices: Declared slice keys for by-slice tallies, defaults to None
        :type slices: Optional[Iterable[str]], optional
        :param progress: Show a progress bar over the seats of a sequential contest, defaults to False
        :type progress: bool, optional
        """
        if isinstance(rules, dict):
            rules = ContestRules.new_rule_set(**rules)
        rules.validate()

        self._rules = rules
        self._ballots = list(ballots)
        self._tiebreak_oracle = tiebreak_oracle
        self._slices = list(slices) if slices is not None else None
        self._progress = progress

        self._tabulations = []

        # RUN
        self._run_contest()

    @property
    def rules(self) -> ContestRules:
        return self._rules

    def _run_contest(self) -> None:
        if self._rules.is_sequential:
            self._run_sequential()
        else:
            self._new_tabulation(self._rules).tabulate()

    def _new_tabulation(self, rules: ContestRules) -> TabulationEngine:
        engine = TabulationEngine(
            [b.copy() for b in self._ballots], rules, tiebreak_oracle=self._tiebreak_oracle, slices=self._slices
        )
        self._tabulations.append(engine)
        return engine

    def _run_sequential(self) -> None:
        """
        Fill seats one at a time with single winner tabulations. Each tabulation gets its own
        rule set in which all previous winners are excluded.
        """
        n_winners = self._rules.number_of_winners
        winners = []

        with tqdm.tqdm(
            total=n_winners,
            bar_format="{l_bar}{bar}| {n_fmt}/{total_fmt}{postfix}",
            disable=not self._progress,
        ) as pbar:

            # continue until the number of winners is reached OR until candidates run out
            while len(winners) < n_winners:

                excluded = self._rules.excluded_candidates.union(winners)
                if not set(self._rules.candidates) - excluded:
                    break

                _log.info("Beginning tabulation for seat #%d...", len(winners) + 1)
                seat_rules = self._rules._replace(
                    number_of_winners=1,
                    winner_election_mode=WinnerElectionMode.STANDARD_SINGLE_WINNER,
                    excluded_candidates=excluded,
                )
                seat_winners = self._new_tabulation(seat_rules).tabulate()
                if not seat_winners:
                    break

                winners.extend(seat_winners)
                pbar.set_postfix_str(", ".join(winners))
                pbar.update(1)

    ########################
    # accessors

    def get_tabulation(self, tabulation_num: int = 1) -> TabulationEngine:
        if tabulation_num < 1 or tabulation_num > len(self._tabulations):
            raise ValueError(f"tabulation_num must be between 1 and {len(self._tabulations)}")
        return self._tabulations[tabulation_num - 1]

    def n_tabulations(self) -> int:
        """Returns number of tabulations in election

        :return: Number of tabulations in election
        :rtype: int
        """
        return len(self._tabulations)

    def n_rounds(self, tabulation_num: int = 1) -> int:
        """Return the number of rounds used in tabulation, for a given tabulation in the election.

        :param tabulation_num: Tabulation number, defaults to 1
        :type tabulation_num: int, optional
        :return: Number of rounds in the tabulation
        :rtype: int
        """
        return len(self.get_tabulation(tabulation_num).round_tallies)

    def winners(self, tabulation_num: Optional[int] = None) -> List[str]:
        """Winners in the order they were elected. All tabulations are combined unless `tabulation_num` is given.

        :rtype: List[str]
        """
        if tabulation_num is not None:
            return self.get_tabulation(tabulation_num).winners
        return [w for engine in self._tabulations for w in engine.winners]

    def get_win_threshold(self, tabulation_num: int = 1) -> Optional[decimal.Decimal]:
        """Final winning threshold of a tabulation, in votes.

        :param tabulation_num: Tabulation number, defaults to 1
        :type tabulation_num: int, optional
        :rtype: Optional[decimal.Decimal]
        """
        return self.get_tabulation(tabulation_num).winning_threshold

    def get_round_tally_tuple(
        self,
        round_num: int,
        tabulation_num: int = 1,
        only_round_active_candidates: bool = False,
    ) -> List[Tuple]:
        """
        Return a list of two tuples, candidate names and candidate vote counts, for round in tabulation. Sorted in descending order by vote count and then by ascending order by candidate name.

        :param round_num: Round number for which to return vote counts for.
        :type round_num: int
        :param tabulation_num: Tabulation number from which to index round number, defaults to 1
        :type tabulation_num: int, optional
        :param only_round_active_candidates: If True, only candidates continuing at the start of the round are returned. Otherwise winners of earlier rounds are included too. Defaults to False
        :type only_round_active_candidates: bool, optional
        :return: List containing a tuple of candidate names and a tuple of vote totals.
        :rtype: List[Tuple]
        """
        engine = self.get_tabulation(tabulation_num)
        round_tally = engine.round_tallies[round_num - 1]
        tallies = round_tally.candidate_tallies()

        # remove winners of earlier rounds
        if only_round_active_candidates:
            tallies = {
                cand: tally
                for cand, tally in tallies.items()
                if cand not in engine.winner_to_round or engine.winner_to_round[cand] >= round_num
            }

        return list(zip(*sorted(tallies.items(), key=lambda x: (-x[1], x[0]))))

    def get_round_tally_dict(
        self,
        round_num: int,
        tabulation_num: int = 1,
        only_round_active_candidates: bool = False,
    ) -> Dict[str, decimal.Decimal]:
        """
        Return a dictionary containing candidate names as keys and vote counts as values.

        :param round_num: Round number for which to return vote counts for.
        :type round_num: int
        :param tabulation_num: Tabulation number from which to index round number, defaults to 1
        :type tabulation_num: int, optional
        :param only_round_active_candidates: See :meth:`RCV.get_round_tally_tuple`. Defaults to False
        :type only_round_active_candidates: bool, optional
        :return: Dictionary containing candidate names and vote totals.
        :rtype: Dict[str, decimal.Decimal]
        """
        # convert to dict
        return {
            cand: count
            for cand, count in zip(
                *self.get_round_tally_tuple(
                    round_num,
                    tabulation_num,
                    only_round_active_candidates=only_round_active_candidates,
                )
            )
        }

    def get_round_inactive_dict(self, round_num: int, tabulation_num: int = 1) -> Dict[str, decimal.Decimal]:
        """Inactive ballot totals for a round, keyed by ballot status value. Totals are cumulative over rounds."""
        round_tally = self.get_tabulation(tabulation_num).round_tallies[round_num - 1]
        return {status.value: round_tally.get_ballot_status_tally(status) for status in BallotStatus.inactive_statuses()}

    def get_round_transfer_dict(self, round_num: int, tabulation_num: int = 1) -> Dict[str, Dict[str, decimal.Decimal]]:
        """Return the vote flows of a round as source -> target -> votes. Sources include 'uncounted' for first round assignment, targets include 'exhausted' and 'residual surplus'.

        :param round_num: Round number to get transfer info for
        :type round_num: int
        :param tabulation_num: Tabulation in which to index round number, defaults to 1
        :type tabulation_num: int, optional
        :rtype: Dict[str, Dict[str, decimal.Decimal]]
        """
        return self.get_tabulation(tabulation_num).tally_ledger.get_transfers_for_round(round_num)

    def get_residual_surplus(self, round_num: int, tabulation_num: int = 1) -> decimal.Decimal:
        """Cumulative residual surplus up to and including `round_num`."""
        return self.get_tabulation(tabulation_num).round_to_residual_surplus[round_num]

    def get_candidate_outcomes(self, tabulation_num: int = 1) -> List[Dict]:
        """Return a list of dictionaries containing candidate outcome information for a given tabulation. Keys are name, round_elected, and round_eliminated. Values for round_elected and round_eliminated are either integers indicating round numbers or None.

        :param tabulation_num: Tabulation for which to return candidate outcomes, defaults to 1
        :type tabulation_num: int, optional
        :return: List of dictionaries containing candidate outcome information for a given tabulation
        :rtype: List[Dict]
        """
        engine = self.get_tabulation(tabulation_num)
        return [
            {
                "name": cand,
                "round_eliminated": engine.candidate_to_round_eliminated.get(cand),
                "round_elected": engine.winner_to_round.get(cand),
            }
            for cand in engine.candidates
        ]

    def get_slice_round_tally_dict(
        self, slice_key: str, round_num: int, tabulation_num: int = 1
    ) -> Dict[str, decimal.Decimal]:
        """Candidate totals of one slice in a round. Requires the tabulate_by_slice rule."""
        engine = self.get_tabulation(tabulation_num)
        if slice_key not in engine.slice_round_tallies:
            raise KeyError(f"no slice tallies for slice {slice_key!r}")
        return engine.slice_round_tallies[slice_key][round_num - 1].candidate_tallies()

    def get_ballot_snapshots(self, tabulation_num: int = 1) -> List[Dict]:
        """Per-ballot, per-round allocations recorded when the record_ballot_snapshots rule is set.

        :return: One dictionary per ballot with keys ballot_id, slice_key and snapshots (round -> list of (candidate, votes)).
        :rtype: List[Dict]
        """
        return [
            {"ballot_id": b.ballot_id, "slice_key": b.slice_key, "snapshots": dict(b.snapshots)}
            for b in self.get_tabulation(tabulation_num).ballots
        ]
