"""
Contains TabulationEngine, which runs the round loop of a single tabulation.
"""

from __future__ import annotations
from typing import Dict, Iterable, List, Optional

import decimal
import enum
import logging
import random

import rcv_tabulator.util as util
from rcv_tabulator.ballots import Ballot, BallotStatus
from rcv_tabulator.errors import InvalidContestRulesError, TabulationAbortedError
from rcv_tabulator.rankings import RankingSet
from rcv_tabulator.rcv.tally import RoundTally
from rcv_tabulator.rcv.tiebreak import Tiebreak, TiebreakOracle
from rcv_tabulator.rcv.transfers import TallyLedger
from rcv_tabulator.rules import ContestRules, OvervoteRule, TiebreakMode

_log = logging.getLogger(__name__)


class CandidateStatus(enum.Enum):
    CONTINUING = "continuing"
    WINNER = "winner"
    ELIMINATED = "eliminated"
    EXCLUDED = "excluded"
    INVALID = "invalid"


class _OvervoteDecision(enum.Enum):
    NONE = "none"
    EXHAUST = "exhaust"
    SKIP_TO_NEXT_RANK = "skip_to_next_rank"


class TabulationEngine:
    """
    One complete tabulation of a contest: repeated rounds of tallying, threshold setting,
    winner detection, elimination and surplus transfer until the election mode says to stop.

    Ballots passed in are mutated. Results are kept on the engine:

    - round_tallies: locked RoundTally per round, round 1 first
    - winner_to_round / candidate_to_round_eliminated
    - tally_ledger: vote movement per round
    - round_to_residual_surplus: cumulative residual surplus per round
    - slice_round_tallies / slice_tally_ledgers: the same bookkeeping per slice
    """

    def __init__(
        self,
        ballots: Iterable[Ballot],
        rules: ContestRules,
        tiebreak_oracle: Optional[TiebreakOracle] = None,
        slices: Optional[Iterable[str]] = None,
    ) -> None:
        """Constructor. Validates the rules and ballots, seeds the random generator and prepares slices.

        :param ballots: Ballots to tabulate. Each must be fresh (never tabulated).
        :type ballots: Iterable[Ballot]
        :param rules: Contest rules.
        :type rules: ContestRules
        :param tiebreak_oracle: Decision source for interactive tie-breaks, defaults to None
        :type tiebreak_oracle: Optional[TiebreakOracle], optional
        :param slices: Declared slice keys, used when rules.tabulate_by_slice is set. Defaults to the slice keys found on the ballots.
        :type slices: Optional[Iterable[str]], optional
        :raises InvalidContestRulesError: if the rules are invalid, or an interactive mode has no oracle.
        :raises TabulationAbortedError: if the ballots cannot be tabulated under these rules.
        """
        rules.validate()
        if rules.tiebreak_mode.is_interactive and tiebreak_oracle is None:
            raise InvalidContestRulesError(
                f"tiebreak mode {rules.tiebreak_mode.value} requires a tie-break oracle"
            )

        self._rules = rules
        self._oracle = tiebreak_oracle
        self.ballots = list(ballots)

        uses_undeclared_write_in = self._check_ballots()
        self.candidates = list(rules.candidates)
        if rules.treat_blank_as_undeclared_write_in or uses_undeclared_write_in:
            self.candidates.append(RankingSet.UNDECLARED_WRITE_IN)

        self._rng = None
        if rules.tiebreak_mode.needs_random_seed:
            self._rng = random.Random(rules.random_seed)

        self.candidate_permutation = list(rules.get_candidate_permutation())
        if rules.tiebreak_mode is TiebreakMode.GENERATE_PERMUTATION:
            self.candidate_permutation = sorted(rules.candidates)
            self._rng.shuffle(self.candidate_permutation)

        self.slice_keys = self._get_slice_keys(slices)

        # results
        self.current_round = 0
        self.winning_threshold = None
        self.round_tallies = []
        self.winner_to_round = {}
        self.candidate_to_round_eliminated = {}
        self.round_to_residual_surplus = {}
        self.tally_ledger = TallyLedger()
        self.slice_round_tallies = {s: [] for s in self.slice_keys}
        self.slice_tally_ledgers = {s: TallyLedger() for s in self.slice_keys}
        self._tabulated = False

    @property
    def rules(self) -> ContestRules:
        return self._rules

    @property
    def winners(self) -> List[str]:
        """Winners in the order they were elected."""
        return list(self.winner_to_round)

    ########################
    # setup checks

    def _check_ballots(self) -> bool:
        """Reject ballots the rules cannot handle. Returns True if any ballot ranks undeclared write-ins."""
        declared = set(self._rules.candidates)
        unknown = set()
        uses_undeclared_write_in = False
        uses_overvote_label = False

        for ballot in self.ballots:

            if not isinstance(ballot, Ballot):
                raise TypeError("ballots must be Ballot objects")
            if ballot.current_recipient is not None or ballot.is_exhausted or ballot.winner_allocations:
                raise ValueError(f"ballot {ballot.ballot_id} has already been tabulated, pass a fresh copy")

            for rank, candidates in ballot.rankings:
                if RankingSet.OVERVOTE in candidates:
                    uses_overvote_label = True
                    if len(candidates) > 1:
                        raise TabulationAbortedError(
                            f'ballot {ballot.ballot_id} marks "{RankingSet.OVERVOTE}" alongside other '
                            f"candidates at rank {rank}"
                        )
                for candidate in candidates:
                    if candidate == RankingSet.UNDECLARED_WRITE_IN:
                        uses_undeclared_write_in = True
                    elif candidate != RankingSet.OVERVOTE and candidate not in declared:
                        unknown.add(candidate)

        if unknown:
            raise TabulationAbortedError(
                f"ballots rank undeclared candidate(s): {util.list_to_sentence_with_quotes(sorted(unknown))}"
            )

        if uses_overvote_label and self._rules.overvote_rule is OvervoteRule.EXHAUST_IF_MULTIPLE_CONTINUING:
            raise TabulationAbortedError(
                f'ballots use the explicit "{RankingSet.OVERVOTE}" label, which cannot be combined with '
                f"the {OvervoteRule.EXHAUST_IF_MULTIPLE_CONTINUING.value} overvote rule"
            )

        return uses_undeclared_write_in

    def _get_slice_keys(self, slices: Optional[Iterable[str]]) -> List[str]:
        if not self._rules.tabulate_by_slice:
            return []

        ballot_slices = {b.slice_key for b in self.ballots if b.slice_key is not None}

        if slices is None:
            if not ballot_slices:
                raise TabulationAbortedError("tabulation by slice is enabled but no ballots have a slice key")
            return sorted(ballot_slices)

        slices = list(slices)
        missing = [s for s in slices if s not in ballot_slices]
        if missing:
            raise TabulationAbortedError(
                f"no ballots found for slice(s): {util.list_to_sentence_with_quotes(missing)}"
            )
        return slices

    ########################
    # candidate status

    def get_candidate_status(self, candidate: str) -> CandidateStatus:
        if candidate in self._rules.excluded_candidates:
            return CandidateStatus.EXCLUDED
        if candidate in self.winner_to_round:
            return CandidateStatus.WINNER
        if candidate in self.candidate_to_round_eliminated:
            return CandidateStatus.ELIMINATED
        if candidate == RankingSet.OVERVOTE:
            return CandidateStatus.INVALID
        return CandidateStatus.CONTINUING

    def is_candidate_continuing(self, candidate: str) -> bool:
        status = self.get_candidate_status(candidate)
        return status is CandidateStatus.CONTINUING or (
            status is CandidateStatus.WINNER and self._rules.continue_until_two_candidates_remain
        )

    def _num_candidates(self) -> int:
        return len([c for c in self.candidates if c not in self._rules.excluded_candidates])

    ########################
    # round loop

    def tabulate(self) -> List[str]:
        """Run rounds until the contest is decided.

        :raises TabulationAbortedError: if the data or rules stop the count.
        :raises TabulationCancelledError: if an operator cancels an interactive tie-break.
        :return: Winners in the order they were elected.
        :rtype: List[str]
        """
        if self._tabulated:
            raise RuntimeError("a TabulationEngine can only tabulate once")
        self._tabulated = True

        self._log_summary_info()

        rules = self._rules
        keep_tabulating = True
        while keep_tabulating:
            self.current_round += 1
            _log.info("Round: %d", self.current_round)

            round_tally = self._compute_tallies_for_round()
            self.round_to_residual_surplus[self.current_round] = self.round_to_residual_surplus.get(
                self.current_round - 1, util.ZERO
            )
            self._set_winning_threshold(round_tally)

            winners = []
            if rules.is_bottoms_up_percentage or len(self.winner_to_round) < rules.number_of_winners:
                winners = self._identify_winners(round_tally)

            if winners:
                for winner in winners:
                    self.winner_to_round[winner] = self.current_round
                if rules.uses_surpluses:
                    for winner in winners:
                        self._transfer_surplus(winner, round_tally)
            elif self._needs_more_eliminations():
                for loser in self._eliminate(round_tally):
                    self.candidate_to_round_eliminated[loser] = self.current_round

            if rules.uses_surpluses:
                self._update_past_winner_tallies()

            if rules.record_ballot_snapshots:
                for ballot in self.ballots:
                    ballot.record_snapshot(self.current_round)

            keep_tabulating = self._should_continue_tabulating()

        return self.winners

    def _log_summary_info(self) -> None:
        _log.info("There are %d declared candidates for this contest:", len(self._rules.candidates))
        for candidate in self._rules.candidates:
            excluded = " (excluded from tabulation)" if candidate in self._rules.excluded_candidates else ""
            _log.info("%s%s", candidate, excluded)

        if self._rules.tiebreak_mode is TiebreakMode.GENERATE_PERMUTATION:
            _log.info("Randomly generated candidate permutation for tie-breaking:")
            for candidate in self.candidate_permutation:
                _log.info("%s", candidate)

    def _needs_more_eliminations(self) -> bool:
        rules = self._rules
        return (
            len(self.winner_to_round) < rules.number_of_winners
            or (
                rules.continue_until_two_candidates_remain
                and len(self.candidate_to_round_eliminated) < self._num_candidates() - 2
            )
            or rules.is_bottoms_up_percentage
        )

    def _should_continue_tabulating(self) -> bool:
        rules = self._rules
        num_eliminated = len(self.candidate_to_round_eliminated)
        num_winners = len(self.winner_to_round)

        if rules.stop_tabulation_early_after_round is not None and (
            self.current_round >= rules.stop_tabulation_early_after_round
        ):
            return False
        if rules.continue_until_two_candidates_remain:
            return (
                num_eliminated + num_winners + 1 < self._num_candidates()
                or self.current_round in self.candidate_to_round_eliminated.values()
            )
        if rules.is_bottoms_up_percentage:
            return num_winners == 0
        return num_winners < rules.number_of_winners or (
            rules.uses_surpluses and self.current_round in self.winner_to_round.values()
        )

    ########################
    # tally

    def _compute_tallies_for_round(self) -> RoundTally:
        rules = self._rules
        round_num = self.current_round

        tally_candidates = [c for c in self.candidates if self.is_candidate_continuing(c)]
        if rules.uses_surpluses:
            tally_candidates += [c for c in self.winner_to_round if c not in tally_candidates]

        round_tally = RoundTally(round_num, tally_candidates)
        slice_tallies = {s: RoundTally(round_num, tally_candidates) for s in self.slice_keys}
        all_seats_filled = rules.uses_surpluses and len(self.winner_to_round) >= rules.number_of_winners

        for ballot in self.ballots:
            slice_tally = slice_tallies.get(ballot.slice_key)

            if ballot.is_exhausted:
                self._add_inactive(round_tally, slice_tally, ballot.exhaust_status, ballot.fractional_transfer_value())
                continue

            recipient = ballot.current_recipient
            if recipient is not None and self.is_candidate_continuing(recipient):
                self._add_to_tally(round_tally, slice_tally, recipient, ballot.fractional_transfer_value())
                continue

            if all_seats_filled:
                self._add_inactive(
                    round_tally, slice_tally, BallotStatus.FINAL_ROUND_SURPLUS, ballot.fractional_transfer_value()
                )
                continue

            self._assign_ballot(ballot, round_tally, slice_tally)

        round_tally.lock()
        self.round_tallies.append(round_tally)
        for slice_key, slice_tally in slice_tallies.items():
            slice_tally.lock()
            self.slice_round_tallies[slice_key].append(slice_tally)

        return round_tally

    def _assign_ballot(self, ballot: Ballot, round_tally: RoundTally, slice_tally: Optional[RoundTally]) -> None:
        """Walk the ballot's rankings and give it to the first continuing candidate, or exhaust it."""
        rules = self._rules
        rankings = ballot.rankings

        if not rankings:
            self._record_selection(ballot, None, round_tally, slice_tally, BallotStatus.DID_NOT_RANK_ANY_CANDIDATES)
            return

        max_rank = rankings.max_ranking_number()
        last_rank_seen = 0
        candidates_seen = set()

        for rank, candidates in rankings:

            if not rules.max_skipped_ranks_unlimited and rank - last_rank_seen > rules.max_skipped_ranks_allowed + 1:
                self._record_selection(
                    ballot, None, round_tally, slice_tally, BallotStatus.INVALIDATED_BY_SKIPPED_RANKING
                )
                return
            last_rank_seen = rank

            if rules.exhaust_on_duplicate_candidate:
                marked = candidates - {RankingSet.OVERVOTE}
                if marked & candidates_seen:
                    self._record_selection(
                        ballot, None, round_tally, slice_tally, BallotStatus.INVALIDATED_BY_REPEATED_RANKING
                    )
                    return
                candidates_seen |= marked

            decision = self._get_overvote_decision(candidates)
            if decision is _OvervoteDecision.EXHAUST:
                self._record_selection(ballot, None, round_tally, slice_tally, BallotStatus.INVALIDATED_BY_OVERVOTE)
                return
            if decision is _OvervoteDecision.SKIP_TO_NEXT_RANK:
                if rank == max_rank:
                    self._record_selection(ballot, None, round_tally, slice_tally, BallotStatus.EXHAUSTED_CHOICE)
                    return
                continue

            selected = next((c for c in sorted(candidates) if self.is_candidate_continuing(c)), None)
            if selected is not None:
                self._record_selection(ballot, selected, round_tally, slice_tally)
                return

            if rank == max_rank:
                # trailing unmarked ranks count as skipped when they exceed the allowed gap
                if (
                    not rules.max_skipped_ranks_unlimited
                    and rules.get_max_rankings_allowed() - rank > rules.max_skipped_ranks_allowed
                ):
                    status = BallotStatus.INVALIDATED_BY_SKIPPED_RANKING
                else:
                    status = BallotStatus.EXHAUSTED_CHOICE
                self._record_selection(ballot, None, round_tally, slice_tally, status)
                return

    def _get_overvote_decision(self, candidates: frozenset) -> _OvervoteDecision:
        rule = self._rules.overvote_rule

        if RankingSet.OVERVOTE in candidates:
            if rule is OvervoteRule.EXHAUST_IMMEDIATELY:
                return _OvervoteDecision.EXHAUST
            if rule is OvervoteRule.ALWAYS_SKIP_TO_NEXT_RANK:
                return _OvervoteDecision.SKIP_TO_NEXT_RANK
            raise TabulationAbortedError(
                f'the explicit "{RankingSet.OVERVOTE}" label cannot be used with the {rule.value} overvote rule'
            )

        if len(candidates) <= 1:
            return _OvervoteDecision.NONE
        if rule is OvervoteRule.EXHAUST_IMMEDIATELY:
            return _OvervoteDecision.EXHAUST
        if rule is OvervoteRule.ALWAYS_SKIP_TO_NEXT_RANK:
            return _OvervoteDecision.SKIP_TO_NEXT_RANK
        if rule is OvervoteRule.EXHAUST_IF_MULTIPLE_CONTINUING:
            continuing = [c for c in candidates if self.is_candidate_continuing(c)]
            return _OvervoteDecision.EXHAUST if len(continuing) > 1 else _OvervoteDecision.NONE
        raise RuntimeError(f"unhandled overvote rule: {rule}")

    def _record_selection(
        self,
        ballot: Ballot,
        selected: Optional[str],
        round_tally: RoundTally,
        slice_tally: Optional[RoundTally],
        status: Optional[BallotStatus] = None,
    ) -> None:
        """Move the ballot to `selected`, or exhaust it with `status` when `selected` is None."""
        value = ballot.fractional_transfer_value()

        if value > 0:
            self.tally_ledger.add_transfer(self.current_round, ballot.current_recipient, selected, value)
            if slice_tally is not None:
                self.slice_tally_ledgers[ballot.slice_key].add_transfer(
                    self.current_round, ballot.current_recipient, selected, value
                )

        ballot.current_recipient = selected
        if selected is None:
            ballot.exhaust(status)
            self._add_inactive(round_tally, slice_tally, status, value)
            ballot.log_round_outcome(self.current_round, "became inactive", status.value, value)
        else:
            self._add_to_tally(round_tally, slice_tally, selected, value)
            ballot.log_round_outcome(self.current_round, "counted for", selected, value)

    @staticmethod
    def _add_to_tally(
        round_tally: RoundTally, slice_tally: Optional[RoundTally], candidate: str, value: decimal.Decimal
    ) -> None:
        round_tally.add_to_candidate_tally(candidate, value)
        if slice_tally is not None:
            slice_tally.add_to_candidate_tally(candidate, value)

    @staticmethod
    def _add_inactive(
        round_tally: RoundTally, slice_tally: Optional[RoundTally], status: BallotStatus, value: decimal.Decimal
    ) -> None:
        round_tally.add_inactive_ballot(status, value)
        if slice_tally is not None:
            slice_tally.add_inactive_ballot(status, value)

    ########################
    # threshold

    def _set_winning_threshold(self, round_tally: RoundTally) -> None:
        rules = self._rules
        if self.current_round == 1 or (
            rules.number_of_winners <= 1 and not rules.first_round_determines_threshold
        ):
            self.winning_threshold = rules.calc_winning_threshold(round_tally.active_ballot_sum())
            _log.info("Winning threshold set to %s.", self.winning_threshold)

        round_tally.winning_threshold = self.winning_threshold
        for slice_key in self.slice_keys:
            self.slice_round_tallies[slice_key][-1].winning_threshold = self.winning_threshold

    ########################
    # winners

    def _continuing_tallies(self, round_tally: RoundTally) -> Dict[str, decimal.Decimal]:
        return {
            c: round_tally.get_candidate_tally(c) for c in round_tally.candidates() if self.is_candidate_continuing(c)
        }

    def _identify_winners(self, round_tally: RoundTally) -> List[str]:
        rules = self._rules
        threshold = self.winning_threshold
        tallies = self._continuing_tallies(round_tally)

        if tallies.get(RankingSet.UNDECLARED_WRITE_IN, util.ZERO) > 0:
            return []

        declared = {c: t for c, t in tallies.items() if c != RankingSet.UNDECLARED_WRITE_IN}
        selected = []
        forced = False

        if rules.is_bottoms_up_percentage:
            if declared and all(t >= threshold for t in declared.values()):
                selected = list(declared)
        else:
            open_seats = rules.number_of_winners - len(self.winner_to_round)
            if len(declared) <= open_seats:
                selected = list(declared)
            elif not rules.is_bottoms_up_until_n:
                selected = [c for c, t in declared.items() if t >= threshold]
                if not selected:
                    forced = (
                        rules.first_round_determines_threshold and len(declared) == rules.number_of_winners + 1
                    ) or (len(declared) == 2 and open_seats == 1)
                    if forced:
                        max_votes = max(declared.values())
                        selected = [c for c, t in declared.items() if t == max_votes]

        if len(selected) > 1 and (forced or rules.allows_only_one_winner_per_round):
            max_votes = max(declared[c] for c in selected)
            selected = sorted(c for c in selected if declared[c] == max_votes)
            if len(selected) > 1:
                selected = [self._break_tie(selected, True, max_votes)]

        selected = sorted(selected, key=lambda c: (-declared[c], c))
        for winner in selected:
            _log.info(
                'Candidate "%s" was elected in round %d with %s votes.', winner, self.current_round, declared[winner]
            )
        return selected

    def _transfer_surplus(self, winner: str, round_tally: RoundTally) -> None:
        rules = self._rules
        candidate_votes = round_tally.get_candidate_tally(winner)
        extra_votes = candidate_votes - self.winning_threshold
        surplus_fraction = rules.divide(extra_votes, candidate_votes) if extra_votes > 0 else util.ZERO
        _log.info('Candidate "%s" was elected with a surplus fraction of %s.', winner, surplus_fraction)

        for ballot in self.ballots:
            if not ballot.is_exhausted and ballot.current_recipient == winner:
                ballot.record_winner(winner, surplus_fraction, rules.decimal_places_for_vote_arithmetic)

    def _update_past_winner_tallies(self) -> None:
        """
        Fill in tallies of winners from earlier rounds. The regular tally only counts continuing
        candidates, so winners of the previous round are rebuilt from the ballots' allocations and
        older winners are copied forward. Whatever a winner holds above the threshold is residual
        surplus and is moved out of the winner's tally.
        """
        round_num = self.current_round
        past_winners = [w for w, r in self.winner_to_round.items() if r < round_num]
        if not past_winners:
            return
        to_compute = {w for w in past_winners if self.winner_to_round[w] == round_num - 1}

        round_tally = self.round_tallies[-1]
        previous_tally = self.round_tallies[-2]
        slice_pairs = [
            (s, self.slice_round_tallies[s][-1], self.slice_round_tallies[s][-2]) for s in self.slice_keys
        ]

        new_tallies = {w: previous_tally.get_candidate_tally(w) for w in past_winners if w not in to_compute}
        slice_new_tallies = {
            s: {w: prev.get_candidate_tally(w) for w in past_winners if w not in to_compute}
            for s, _, prev in slice_pairs
        }
        for w in to_compute:
            new_tallies[w] = util.ZERO
            for s in self.slice_keys:
                slice_new_tallies[s][w] = util.ZERO

        if to_compute:
            for ballot in self.ballots:
                for winner, value in ballot.winner_allocations.items():
                    if winner not in to_compute:
                        continue
                    new_tallies[winner] += value
                    if ballot.slice_key in slice_new_tallies:
                        slice_new_tallies[ballot.slice_key][winner] += value

        round_tally.unlock_for_surplus_adjustment()
        for w in past_winners:
            tally = new_tallies[w]
            if w in to_compute:
                residual = tally - self.winning_threshold
                if residual > 0:
                    _log.debug('Candidate "%s" had residual surplus of %s.', w, residual)
                    self.round_to_residual_surplus[round_num] += residual
                    self.tally_ledger.add_transfer(round_num, w, TallyLedger.RESIDUAL_SURPLUS, residual)
                    tally = self.winning_threshold
            round_tally.set_candidate_tally(w, tally)
        round_tally.relock()

        for s, slice_tally, _ in slice_pairs:
            slice_tally.unlock_for_surplus_adjustment()
            for w in past_winners:
                slice_tally.set_candidate_tally(w, slice_new_tallies[s][w])
            slice_tally.relock()

    ########################
    # elimination

    def _eliminate(self, round_tally: RoundTally) -> List[str]:
        tallies = self._continuing_tallies(round_tally)

        eliminated = self._drop_undeclared_write_ins(tallies)
        if not eliminated:
            eliminated = self._drop_candidates_below_threshold(tallies)
        if not eliminated and self._rules.batch_elimination:
            eliminated = self._do_batch_elimination(tallies)
        if not eliminated:
            eliminated = self._do_regular_elimination(tallies)
        if not eliminated:
            raise TabulationAbortedError(
                f"no candidate could be eliminated in round {self.current_round}"
            )
        return eliminated

    def _drop_undeclared_write_ins(self, tallies: Dict[str, decimal.Decimal]) -> List[str]:
        uwi_votes = tallies.get(RankingSet.UNDECLARED_WRITE_IN, util.ZERO)
        if uwi_votes > 0:
            _log.info(
                'Eliminated candidate "%s" in round %d because it represents undeclared write-ins. It had %s votes.',
                RankingSet.UNDECLARED_WRITE_IN,
                self.current_round,
                uwi_votes,
            )
            return [RankingSet.UNDECLARED_WRITE_IN]
        return []

    def _drop_candidates_below_threshold(self, tallies: Dict[str, decimal.Decimal]) -> List[str]:
        minimum = self._rules.minimum_vote_threshold
        if minimum <= 0 or not tallies or min(tallies.values()) >= minimum:
            return []

        below = sorted(c for c, t in tallies.items() if t < minimum)
        declared = [c for c in tallies if c != RankingSet.UNDECLARED_WRITE_IN]
        if declared and all(c in below for c in declared):
            raise TabulationAbortedError(
                "Tabulation can't proceed because all declared candidates are below the minimum vote threshold."
            )

        for candidate in below:
            _log.info(
                'Eliminated candidate "%s" in round %d because they only had %s vote(s), below the minimum '
                "threshold of %s.",
                candidate,
                self.current_round,
                tallies[candidate],
                minimum,
            )
        return below

    def _do_batch_elimination(self, tallies: Dict[str, decimal.Decimal]) -> List[str]:
        """
        Eliminate every candidate who could not overtake the next candidate up even with all
        votes from everyone below them. Only used when that removes two or more candidates.
        """
        running_total = util.ZERO
        candidates_seen = []
        eliminations = []
        previous_eliminations = []

        for current_tally in sorted(set(tallies.values())):
            if running_total < current_tally:
                new_eliminations = [c for c in candidates_seen if c not in eliminations]
                if new_eliminations:
                    previous_eliminations = eliminations
                    eliminations = eliminations + new_eliminations
            current_candidates = sorted(c for c, t in tallies.items() if t == current_tally)
            running_total += self._rules.multiply(current_tally, decimal.Decimal(len(current_candidates)))
            candidates_seen.extend(current_candidates)

        if (
            self._rules.continue_until_two_candidates_remain
            and len(eliminations) + len(self.candidate_to_round_eliminated) == self._num_candidates() - 1
        ):
            eliminations = previous_eliminations

        if len(eliminations) < 2:
            return []

        for candidate in eliminations:
            _log.info(
                'Batch-eliminated candidate "%s" in round %d. They had %s vote(s).',
                candidate,
                self.current_round,
                tallies[candidate],
            )
        return eliminations

    def _do_regular_elimination(self, tallies: Dict[str, decimal.Decimal]) -> List[str]:
        if not tallies:
            return []

        min_votes = min(tallies.values())
        lowest = sorted(c for c, t in tallies.items() if t == min_votes)
        if len(lowest) > 1:
            eliminated = self._break_tie(lowest, False, min_votes)
        else:
            eliminated = lowest[0]
            _log.info(
                'Candidate "%s" was eliminated in round %d with %s vote(s).', eliminated, self.current_round, min_votes
            )
        return [eliminated]

    ########################
    # ties

    def _break_tie(self, tied: List[str], selecting_winner: bool, num_votes: decimal.Decimal) -> str:
        tiebreak = Tiebreak(
            selecting_winner,
            tied,
            self._rules.tiebreak_mode,
            self.current_round,
            num_votes,
            self.round_tallies,
            candidate_permutation=self.candidate_permutation,
            rng=self._rng,
            oracle=self._oracle,
        )
        selected = tiebreak.select_candidate()
        tiebreak.log_outcome()
        return selected
