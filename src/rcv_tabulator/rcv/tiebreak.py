"""
Tie-break resolution between candidates with equal tallies.
"""

from __future__ import annotations
from typing import Callable, List, Optional, Sequence

import abc
import decimal
import logging
import math
import random

import rcv_tabulator.util as util
from rcv_tabulator.errors import TabulationAbortedError, TabulationCancelledError
from rcv_tabulator.rcv.tally import RoundTally
from rcv_tabulator.rules import TiebreakMode

_log = logging.getLogger(__name__)


class TiebreakOracle(abc.ABC):
    """
    Source of operator decisions for interactive tie-breaks.
    """

    # override me
    @abc.abstractmethod
    def resolve(
        self, tied_candidates: List[str], selecting_winner: bool, round_num: int, num_votes: decimal.Decimal
    ) -> str:
        """
        Return the candidate (one of `tied_candidates`) who should win the tie-break when
        `selecting_winner` is True, or lose it otherwise.

        :raises TabulationCancelledError: if the operator cancels the tabulation.
        """
        pass


class ConsoleTiebreakOracle(TiebreakOracle):
    """Ask on the console. Re-prompts on invalid input, 'x' cancels the tabulation."""

    CANCEL_COMMAND = "x"

    def __init__(
        self, input_func: Optional[Callable[[str], str]] = None, output_func: Optional[Callable[[str], None]] = None
    ) -> None:
        self._input = input_func if input_func is not None else input
        self._output = output_func if output_func is not None else print

    def resolve(
        self, tied_candidates: List[str], selecting_winner: bool, round_num: int, num_votes: decimal.Decimal
    ) -> str:

        self._output(f"Tie in round {round_num} for the following candidates, each of whom has {num_votes} vote(s):")
        for idx, candidate in enumerate(tied_candidates, start=1):
            self._output(f"{idx}. {candidate}")

        prompt = (
            "Enter the number corresponding to the candidate who should "
            f"{'win' if selecting_winner else 'lose'} this tiebreaker (or {self.CANCEL_COMMAND} to cancel): "
        )

        while True:
            try:
                user_input = self._input(prompt).strip()
            except EOFError as e:
                raise TabulationCancelledError() from e

            if user_input.lower() == self.CANCEL_COMMAND:
                self._output("Cancelling tabulation...")
                raise TabulationCancelledError()

            if user_input.isdigit() and 1 <= int(user_input) <= len(tied_candidates):
                return tied_candidates[int(user_input) - 1]

            self._output("Invalid selection. Please try again.")


class Tiebreak:
    """
    Resolve one tie, either choosing a winner among `tied_candidates` or choosing who gets eliminated.

    Tied candidates are sorted before any strategy is applied, so RANDOM draws depend only on the
    seed and the names involved.
    """

    def __init__(
        self,
        selecting_winner: bool,
        tied_candidates: Sequence[str],
        tiebreak_mode: TiebreakMode,
        round_num: int,
        num_votes: decimal.Decimal,
        round_tallies: Sequence[RoundTally],
        candidate_permutation: Sequence[str] = (),
        rng: Optional[random.Random] = None,
        oracle: Optional[TiebreakOracle] = None,
    ) -> None:
        """Constructor.

        :param selecting_winner: True to pick a winner, False to pick a candidate to eliminate.
        :type selecting_winner: bool
        :param tied_candidates: Candidates with equal tallies.
        :type tied_candidates: Sequence[str]
        :param tiebreak_mode: Strategy to use.
        :type tiebreak_mode: TiebreakMode
        :param round_num: Round in which the tie occurred.
        :type round_num: int
        :param num_votes: The shared tally.
        :type num_votes: decimal.Decimal
        :param round_tallies: Locked tallies of all rounds so far, round 1 first.
        :type round_tallies: Sequence[RoundTally]
        :param candidate_permutation: Candidate order used by the permutation modes, defaults to ()
        :type candidate_permutation: Sequence[str], optional
        :param rng: Random generator used by the random modes, defaults to None
        :type rng: Optional[random.Random], optional
        :param oracle: Operator decision source used by the interactive modes, defaults to None
        :type oracle: Optional[TiebreakOracle], optional
        """
        if len(tied_candidates) < 2:
            raise ValueError("a tie-break needs at least two candidates")

        self.selecting_winner = selecting_winner
        self.tied_candidates = sorted(tied_candidates)
        self.tiebreak_mode = tiebreak_mode
        self.round_num = round_num
        self.num_votes = num_votes
        self._round_tallies = round_tallies
        self._candidate_permutation = list(candidate_permutation)
        self._rng = rng
        self._oracle = oracle

        self.selected_candidate = None
        self.explanation = None

    def select_candidate(self) -> str:
        """Apply the tie-break strategy, store and return the selected candidate."""
        mode = self.tiebreak_mode

        if mode is TiebreakMode.RANDOM:
            selection = self._do_random(self.tied_candidates)
        elif mode is TiebreakMode.INTERACTIVE:
            selection = self._do_interactive(self.tied_candidates)
        elif mode in (TiebreakMode.USE_PERMUTATION_IN_CONFIG, TiebreakMode.GENERATE_PERMUTATION):
            selection = self._do_permutation_selection(self.tied_candidates)
        elif mode in (
            TiebreakMode.PREVIOUS_ROUND_COUNTS_THEN_RANDOM,
            TiebreakMode.PREVIOUS_ROUND_COUNTS_THEN_INTERACTIVE,
        ):
            selection = self._do_previous_rounds(self.tied_candidates)
        else:
            raise RuntimeError(f"unhandled tiebreak mode: {mode}")

        self.selected_candidate = selection
        return selection

    def non_selected_candidate_description(self) -> str:
        others = [c for c in self.tied_candidates if c != self.selected_candidate]
        return util.list_to_sentence_with_quotes(others)

    def log_outcome(self) -> None:
        _log.info(
            'Candidate "%s" %s a tie-breaker in round %d against %s. Each candidate had %s vote(s). %s',
            self.selected_candidate,
            "won" if self.selecting_winner else "lost",
            self.round_num,
            self.non_selected_candidate_description(),
            self.num_votes,
            self.explanation,
        )

    ########################
    # strategies

    def _do_random(self, candidates: List[str]) -> str:
        if self._rng is None:
            raise RuntimeError("random tie-break requires a random generator")
        idx = math.floor(self._rng.random() * len(candidates))
        self.explanation = "The candidate was randomly selected."
        return candidates[idx]

    def _do_interactive(self, candidates: List[str]) -> str:
        if self._oracle is None:
            raise TabulationAbortedError("interactive tie-break requested but no tie-break oracle was provided")

        selection = self._oracle.resolve(list(candidates), self.selecting_winner, self.round_num, self.num_votes)
        if selection not in candidates:
            raise TabulationAbortedError(
                f'tie-break oracle returned "{selection}", which is not one of the tied candidates'
            )
        self.explanation = "The selected candidate was supplied by the operator."
        return selection

    def _do_permutation_selection(self, candidates: List[str]) -> str:
        permutation = self._candidate_permutation
        if not self.selecting_winner:
            permutation = list(reversed(permutation))

        selection = next((c for c in permutation if c in candidates), None)
        if selection is None:
            raise TabulationAbortedError(
                f"none of the tied candidates {util.list_to_sentence_with_quotes(candidates)} "
                "appear in the tie-breaking permutation"
            )
        self.explanation = (
            f"The selected candidate appeared {'earliest' if self.selecting_winner else 'latest'} "
            "in the tie-breaking permutation list."
        )
        return selection

    def _do_previous_rounds(self, candidates: List[str]) -> str:
        in_contention = candidates

        for round_to_compare in range(self.round_num - 1, 0, -1):
            round_tally = self._round_tallies[round_to_compare - 1]
            tallies = {c: round_tally.get_candidate_tally(c) for c in in_contention}
            target = max(tallies.values()) if self.selecting_winner else min(tallies.values())
            in_contention = sorted(c for c, tally in tallies.items() if tally == target)

            if len(in_contention) == 1:
                self.explanation = (
                    f"{in_contention[0]} had the {'most' if self.selecting_winner else 'fewest'} votes "
                    f"({target}) in round {round_to_compare}."
                )
                return in_contention[0]

        use_random = self.tiebreak_mode is TiebreakMode.PREVIOUS_ROUND_COUNTS_THEN_RANDOM
        prefix = (
            "Comparing previous round counts still resulted in a tie "
            f"{'among' if len(in_contention) > 2 else 'between'} "
            f"{util.list_to_sentence_with_quotes(in_contention)}, so we fell back to "
            f"{(TiebreakMode.RANDOM if use_random else TiebreakMode.INTERACTIVE).value}."
        )
        if use_random:
            selection = self._do_random(in_contention)
        else:
            selection = self._do_interactive(in_contention)
        self.explanation = f"{prefix} {self.explanation}"
        return selection
