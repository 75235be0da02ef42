
import decimal

import pytest

from rcv_tabulator.rules import ContestRules, OvervoteRule, TiebreakMode, WinnerElectionMode

D = decimal.Decimal


def test_new_rule_set_coerces_values():

    rules = ContestRules.new_rule_set(
        candidates=['A', 'B', 'C'],
        number_of_winners=2,
        winner_election_mode='multiWinnerAllowMultipleWinnersPerRound',
        overvote_rule='EXHAUST_IMMEDIATELY',
        tiebreak_mode=TiebreakMode.USE_PERMUTATION_IN_CONFIG,
        candidate_permutation=['C', 'B', 'A'],
        excluded_candidates=['C'],
        minimum_vote_threshold=1.5,
    )

    assert rules.candidates == ('A', 'B', 'C')
    assert rules.winner_election_mode is WinnerElectionMode.MULTI_SEAT_ALLOW_MULTIPLE_WINNERS_PER_ROUND
    assert rules.overvote_rule is OvervoteRule.EXHAUST_IMMEDIATELY
    assert rules.tiebreak_mode is TiebreakMode.USE_PERMUTATION_IN_CONFIG
    assert rules.candidate_permutation == ('C', 'B', 'A')
    assert rules.excluded_candidates == frozenset({'C'})
    assert rules.minimum_vote_threshold == D('1.5')
    assert rules.uses_surpluses
    assert not rules.allows_only_one_winner_per_round


def test_defaults():

    rules = ContestRules.new_rule_set(candidates=['A', 'B'], random_seed=1)

    assert rules.number_of_winners == 1
    assert rules.winner_election_mode is WinnerElectionMode.STANDARD_SINGLE_WINNER
    assert rules.overvote_rule is OvervoteRule.ALWAYS_SKIP_TO_NEXT_RANK
    assert rules.max_skipped_ranks_unlimited
    assert rules.get_max_rankings_allowed() == 2
    assert rules.get_candidate_permutation() == ('A', 'B')
    assert rules.allows_only_one_winner_per_round
    assert not rules.uses_surpluses
    assert not rules.is_sequential


def test_to_dict():

    d = ContestRules.new_rule_set(candidates=['B', 'A'], random_seed=3, excluded_candidates=['B']).to_dict()

    assert d['candidates'] == ['B', 'A']
    assert d['winner_election_mode'] == 'singleWinnerMajority'
    assert d['tiebreak_mode'] == 'random'
    assert d['excluded_candidates'] == ['B']
    assert d['random_seed'] == 3


params = [
    ({
        "input": {"rules": {}, "active": 7},
        "expected": D(4)
    }),
    ({
        "input": {"rules": {}, "active": 8},
        "expected": D(5)
    }),
    ({
        "input": {"rules": {}, "active": D('7.5')},
        "expected": D(4)
    }),
    ({
        "input": {"rules": {"minimum_vote_threshold": 10}, "active": 7},
        "expected": D(10)
    }),
    ({
        "input": {
            "rules": {
                "number_of_winners": 2,
                "winner_election_mode": WinnerElectionMode.MULTI_SEAT_ALLOW_MULTIPLE_WINNERS_PER_ROUND,
            },
            "active": 28,
        },
        "expected": D(10)
    }),
    ({
        "input": {
            "rules": {
                "number_of_winners": 2,
                "winner_election_mode": WinnerElectionMode.MULTI_SEAT_ALLOW_MULTIPLE_WINNERS_PER_ROUND,
                "hare_quota": True,
            },
            "active": 9,
        },
        "expected": D(5)
    }),
    ({
        "input": {
            "rules": {
                "number_of_winners": 2,
                "winner_election_mode": WinnerElectionMode.MULTI_SEAT_ALLOW_MULTIPLE_WINNERS_PER_ROUND,
                "non_integer_winning_threshold": True,
            },
            "active": 10,
        },
        "expected": D('3.3334')
    }),
    ({
        "input": {
            "rules": {
                "number_of_winners": 2,
                "winner_election_mode": WinnerElectionMode.MULTI_SEAT_ALLOW_MULTIPLE_WINNERS_PER_ROUND,
                "non_integer_winning_threshold": True,
                "decimal_places_for_vote_arithmetic": 2,
            },
            "active": 10,
        },
        "expected": D('3.34')
    }),
    ({
        "input": {
            "rules": {
                "number_of_winners": 0,
                "winner_election_mode": WinnerElectionMode.MULTI_SEAT_BOTTOMS_UP_USING_PERCENTAGE_THRESHOLD,
                "bottoms_up_percentage": 25,
            },
            "active": 10,
        },
        "expected": D('2.5')
    }),
]


@pytest.mark.parametrize("param", params)
def test_calc_winning_threshold(param):
    rules = ContestRules.new_rule_set(candidates=['A', 'B', 'C'], random_seed=0, **param["input"]["rules"])
    assert rules.calc_winning_threshold(param["input"]["active"]) == param["expected"]


def test_divide_and_multiply_round_down():

    rules = ContestRules.new_rule_set(candidates=['A'], random_seed=0)

    assert rules.divide(D(2), D(12)) == D('0.1666')
    assert rules.multiply(D('0.1666'), D('0.5')) == D('0.0833')


def test_generate_permutation_needs_seed_only():
    rules = ContestRules.new_rule_set(candidates=['A', 'B'], tiebreak_mode='generatePermutation', random_seed=4)
    assert rules.tiebreak_mode.needs_random_seed
    assert not rules.tiebreak_mode.is_interactive
