"""
Contest rule configuration: rule enums and the immutable ContestRules set consumed by the tabulation.
"""

from __future__ import annotations
from typing import Dict, FrozenSet, NamedTuple, Optional, Tuple

import decimal
import enum

import rcv_tabulator.util as util
from rcv_tabulator.errors import InvalidContestRulesError
from rcv_tabulator.rankings import RankingSet

decimal.getcontext().prec = 30


class OvervoteRule(enum.Enum):
    ALWAYS_SKIP_TO_NEXT_RANK = "alwaysSkipToNextRank"
    EXHAUST_IMMEDIATELY = "exhaustImmediately"
    EXHAUST_IF_MULTIPLE_CONTINUING = "exhaustIfMultipleContinuing"


class TiebreakMode(enum.Enum):
    RANDOM = "random"
    INTERACTIVE = "stopCountingAndAsk"
    PREVIOUS_ROUND_COUNTS_THEN_RANDOM = "previousRoundCountsThenRandom"
    PREVIOUS_ROUND_COUNTS_THEN_INTERACTIVE = "previousRoundCountsThenAsk"
    USE_PERMUTATION_IN_CONFIG = "useCandidateOrder"
    GENERATE_PERMUTATION = "generatePermutation"

    @property
    def needs_random_seed(self) -> bool:
        return self in (
            TiebreakMode.RANDOM,
            TiebreakMode.PREVIOUS_ROUND_COUNTS_THEN_RANDOM,
            TiebreakMode.GENERATE_PERMUTATION,
        )

    @property
    def is_interactive(self) -> bool:
        return self in (TiebreakMode.INTERACTIVE, TiebreakMode.PREVIOUS_ROUND_COUNTS_THEN_INTERACTIVE)


class WinnerElectionMode(enum.Enum):
    STANDARD_SINGLE_WINNER = "singleWinnerMajority"
    MULTI_SEAT_ALLOW_ONLY_ONE_WINNER_PER_ROUND = "multiWinnerAllowOnlyOneWinnerPerRound"
    MULTI_SEAT_ALLOW_MULTIPLE_WINNERS_PER_ROUND = "multiWinnerAllowMultipleWinnersPerRound"
    MULTI_SEAT_BOTTOMS_UP_UNTIL_N_WINNERS = "bottomsUp"
    MULTI_SEAT_BOTTOMS_UP_USING_PERCENTAGE_THRESHOLD = "bottomsUpUsingPercentageThreshold"
    MULTI_SEAT_SEQUENTIAL_WINNER_TAKES_ALL = "multiPassIrv"


class ContestRules(NamedTuple):
    """
    Immutable rule set for one contest. Build with :meth:`ContestRules.new_rule_set`, which
    coerces and validates the values, or construct directly and call :meth:`validate`.
    """

    candidates: Tuple[str, ...] = ()
    number_of_winners: int = 1
    winner_election_mode: WinnerElectionMode = WinnerElectionMode.STANDARD_SINGLE_WINNER
    overvote_rule: OvervoteRule = OvervoteRule.ALWAYS_SKIP_TO_NEXT_RANK
    tiebreak_mode: TiebreakMode = TiebreakMode.RANDOM
    random_seed: Optional[int] = None
    candidate_permutation: Tuple[str, ...] = ()
    excluded_candidates: FrozenSet[str] = frozenset()
    max_rankings_allowed: Optional[int] = None
    max_skipped_ranks_allowed: Optional[int] = None
    minimum_vote_threshold: decimal.Decimal = util.ZERO
    decimal_places_for_vote_arithmetic: int = 4
    non_integer_winning_threshold: bool = False
    hare_quota: bool = False
    batch_elimination: bool = False
    continue_until_two_candidates_remain: bool = False
    exhaust_on_duplicate_candidate: bool = False
    treat_blank_as_undeclared_write_in: bool = False
    first_round_determines_threshold: bool = False
    bottoms_up_percentage: Optional[decimal.Decimal] = None
    stop_tabulation_early_after_round: Optional[int] = None
    tabulate_by_slice: bool = False
    record_ballot_snapshots: bool = False

    @classmethod
    def new_rule_set(cls, **kwargs) -> ContestRules:
        """A constructor of sorts. Coerces passed values to the types used during tabulation and validates the result.

        Enum fields accept either the enum member, its name (e.g. "EXHAUST_IMMEDIATELY") or its
        value (e.g. "exhaustImmediately"). Vote amounts accept ints, strings and floats.

        :raises InvalidContestRulesError: if a field is unknown or the rule combination is not allowed.
        :rtype: ContestRules
        """
        unknown = set(kwargs) - set(cls._fields)
        if unknown:
            raise InvalidContestRulesError(f"unknown contest rule(s): {', '.join(sorted(unknown))}")

        values = dict(kwargs)
        enum_fields = {
            "winner_election_mode": WinnerElectionMode,
            "overvote_rule": OvervoteRule,
            "tiebreak_mode": TiebreakMode,
        }
        for field, enum_cls in enum_fields.items():
            if field in values:
                values[field] = _coerce_enum(enum_cls, values[field], field)

        if "candidates" in values:
            values["candidates"] = tuple(values["candidates"])
        if "candidate_permutation" in values:
            values["candidate_permutation"] = tuple(values["candidate_permutation"] or ())
        if "excluded_candidates" in values:
            values["excluded_candidates"] = frozenset(values["excluded_candidates"] or ())

        try:
            if "minimum_vote_threshold" in values:
                values["minimum_vote_threshold"] = util.to_decimal(values["minimum_vote_threshold"] or 0)
            if values.get("bottoms_up_percentage") is not None:
                values["bottoms_up_percentage"] = util.to_decimal(values["bottoms_up_percentage"])
        except (TypeError, decimal.InvalidOperation) as e:
            raise InvalidContestRulesError(f"invalid vote amount in contest rules: {e}") from e

        rules = cls(**values)
        rules.validate()
        return rules

    def validate(self) -> None:
        """Check the rule values and their combinations.

        :raises InvalidContestRulesError: on the first problem found.
        """
        mode = self.winner_election_mode
        surplus_modes = (
            WinnerElectionMode.MULTI_SEAT_ALLOW_ONLY_ONE_WINNER_PER_ROUND,
            WinnerElectionMode.MULTI_SEAT_ALLOW_MULTIPLE_WINNERS_PER_ROUND,
        )

        def fail(msg):
            raise InvalidContestRulesError(msg)

        for field, enum_cls in (
            ("winner_election_mode", WinnerElectionMode),
            ("overvote_rule", OvervoteRule),
            ("tiebreak_mode", TiebreakMode),
        ):
            if not isinstance(getattr(self, field), enum_cls):
                fail(f"{field} must be a {enum_cls.__name__}, got {getattr(self, field)!r}")

        if not self.candidates:
            fail("at least one candidate must be declared")
        if len(set(self.candidates)) != len(self.candidates):
            fail("declared candidates must be unique")
        for candidate in self.candidates:
            if candidate in (RankingSet.OVERVOTE, RankingSet.UNDECLARED_WRITE_IN, RankingSet.SKIPPED):
                fail(f'"{candidate}" is a reserved label and cannot be declared as a candidate')

        undeclared_excluded = set(self.excluded_candidates) - set(self.candidates)
        if undeclared_excluded:
            fail(f"excluded candidates are not declared: {', '.join(sorted(undeclared_excluded))}")

        if isinstance(self.number_of_winners, bool) or not isinstance(self.number_of_winners, int):
            fail("number_of_winners must be an int")
        if self.number_of_winners < 0:
            fail("number_of_winners cannot be negative")
        if self.number_of_winners > len(self.candidates):
            fail("number_of_winners cannot be more than the number of declared candidates")

        if mode is WinnerElectionMode.MULTI_SEAT_BOTTOMS_UP_USING_PERCENTAGE_THRESHOLD:
            if self.number_of_winners != 0:
                fail("number_of_winners must be 0 when using the bottoms-up percentage threshold")
            if self.bottoms_up_percentage is None:
                fail("bottoms_up_percentage is required by the bottoms-up percentage threshold mode")
            if not util.ZERO < self.bottoms_up_percentage <= 100:
                fail("bottoms_up_percentage must be above 0 and at most 100")
            if self.batch_elimination:
                fail("batch elimination cannot be used with the bottoms-up percentage threshold")
        else:
            if self.number_of_winners == 0:
                fail("number_of_winners can only be 0 when using the bottoms-up percentage threshold")
            if self.bottoms_up_percentage is not None:
                fail("bottoms_up_percentage is only used by the bottoms-up percentage threshold mode")

        if mode is WinnerElectionMode.STANDARD_SINGLE_WINNER and self.number_of_winners != 1:
            fail("single winner mode requires exactly one winner")
        if self.number_of_winners == 1 and mode is not WinnerElectionMode.STANDARD_SINGLE_WINNER:
            fail("contests with one winner must use single winner mode")

        if self.number_of_winners > 1 and mode is not WinnerElectionMode.MULTI_SEAT_SEQUENTIAL_WINNER_TAKES_ALL:
            if self.continue_until_two_candidates_remain:
                fail("continue until two candidates remain cannot be used in multi-seat contests")
            if self.batch_elimination:
                fail("batch elimination cannot be used in multi-seat contests")

        if self.hare_quota and self.non_integer_winning_threshold:
            fail("hare quota and non-integer winning threshold cannot both be used")
        if (self.hare_quota or self.non_integer_winning_threshold) and mode not in surplus_modes:
            fail("hare quota and non-integer winning threshold are only used by multi-seat surplus modes")

        if not 0 <= self.decimal_places_for_vote_arithmetic <= 20:
            fail("decimal_places_for_vote_arithmetic must be between 0 and 20")

        if self.minimum_vote_threshold < 0:
            fail("minimum_vote_threshold cannot be negative")
        if self.max_rankings_allowed is not None and self.max_rankings_allowed < 1:
            fail("max_rankings_allowed must be at least 1")
        if self.max_skipped_ranks_allowed is not None and self.max_skipped_ranks_allowed < 0:
            fail("max_skipped_ranks_allowed cannot be negative")
        if self.stop_tabulation_early_after_round is not None and self.stop_tabulation_early_after_round < 1:
            fail("stop_tabulation_early_after_round must be at least 1")

        if self.tiebreak_mode.needs_random_seed and self.random_seed is None:
            fail(f"tiebreak mode {self.tiebreak_mode.value} requires a random seed")
        if self.candidate_permutation:
            if sorted(self.candidate_permutation) != sorted(self.candidates):
                fail("candidate_permutation must list each declared candidate exactly once")

    @property
    def uses_surpluses(self) -> bool:
        return self.number_of_winners > 1 and self.winner_election_mode in (
            WinnerElectionMode.MULTI_SEAT_ALLOW_ONLY_ONE_WINNER_PER_ROUND,
            WinnerElectionMode.MULTI_SEAT_ALLOW_MULTIPLE_WINNERS_PER_ROUND,
        )

    @property
    def allows_only_one_winner_per_round(self) -> bool:
        return self.winner_election_mode in (
            WinnerElectionMode.STANDARD_SINGLE_WINNER,
            WinnerElectionMode.MULTI_SEAT_ALLOW_ONLY_ONE_WINNER_PER_ROUND,
        )

    @property
    def is_bottoms_up_percentage(self) -> bool:
        return self.winner_election_mode is WinnerElectionMode.MULTI_SEAT_BOTTOMS_UP_USING_PERCENTAGE_THRESHOLD

    @property
    def is_bottoms_up_until_n(self) -> bool:
        return self.winner_election_mode is WinnerElectionMode.MULTI_SEAT_BOTTOMS_UP_UNTIL_N_WINNERS

    @property
    def is_sequential(self) -> bool:
        return self.winner_election_mode is WinnerElectionMode.MULTI_SEAT_SEQUENTIAL_WINNER_TAKES_ALL

    @property
    def max_skipped_ranks_unlimited(self) -> bool:
        return self.max_skipped_ranks_allowed is None

    def get_max_rankings_allowed(self) -> int:
        if self.max_rankings_allowed is None:
            return len(self.candidates)
        return self.max_rankings_allowed

    def get_candidate_permutation(self) -> Tuple[str, ...]:
        return self.candidate_permutation or self.candidates

    def divide(self, dividend: decimal.Decimal, divisor: decimal.Decimal) -> decimal.Decimal:
        return util.round_down(dividend / divisor, self.decimal_places_for_vote_arithmetic)

    def multiply(self, multiplier: decimal.Decimal, multiplicand: decimal.Decimal) -> decimal.Decimal:
        return util.round_down(multiplier * multiplicand, self.decimal_places_for_vote_arithmetic)

    def calc_winning_threshold(self, active_votes: decimal.Decimal) -> decimal.Decimal:
        """Winning threshold for the given number of active votes.

        Droop style by default, floor(votes / (winners + 1)) plus the smallest unit. Hare quota
        rounds votes / winners up. The bottoms-up percentage mode takes the configured share of
        the votes. The result is never below the minimum vote threshold.

        :param active_votes: Active votes in the round used to set the threshold.
        :type active_votes: decimal.Decimal
        :rtype: decimal.Decimal
        """
        active_votes = util.to_decimal(active_votes)

        if self.is_bottoms_up_percentage:
            threshold = active_votes * self.bottoms_up_percentage / decimal.Decimal(100)
        else:
            divisor = decimal.Decimal(self.number_of_winners if self.hare_quota else self.number_of_winners + 1)
            decimals = self.decimal_places_for_vote_arithmetic if self.non_integer_winning_threshold else 0
            if self.hare_quota:
                threshold = util.round_up(active_votes / divisor, decimals)
            else:
                threshold = util.round_down(active_votes / divisor, decimals) + util.smallest_unit(decimals)

        if self.minimum_vote_threshold > 0 and self.minimum_vote_threshold > threshold:
            threshold = self.minimum_vote_threshold

        return threshold

    def to_dict(self) -> Dict:
        """Plain dictionary of the rules, enums replaced by their values."""
        d = self._asdict()
        for key, value in d.items():
            if isinstance(value, enum.Enum):
                d[key] = value.value
            elif isinstance(value, frozenset):
                d[key] = sorted(value)
            elif isinstance(value, tuple):
                d[key] = list(value)
        return d


def _coerce_enum(enum_cls, value, field):
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        if value in enum_cls.__members__:
            return enum_cls[value]
        for member in enum_cls:
            if member.value == value:
                return member
    raise InvalidContestRulesError(f"invalid {field}: {value!r}")
