import decimal

import pytest

from rcv_tabulator.ballots import BallotStatus
from rcv_tabulator.rcv.base import RCV
from rcv_tabulator.rcv.transfers import TallyLedger

D = decimal.Decimal

MULTIPLE = "multiWinnerAllowMultipleWinnersPerRound"
ONE_PER_ROUND = "multiWinnerAllowOnlyOneWinnerPerRound"


def conservation_holds(rcv, tabulation_num=1):
    """Candidate tallies + inactive ballots + residual surplus equal the number of ballots in every round."""
    engine = rcv.get_tabulation(tabulation_num)
    n_ballots = len(engine.ballots)
    for round_num, round_tally in enumerate(engine.round_tallies, start=1):
        total = (
            sum(round_tally.candidate_tallies().values())
            + round_tally.inactive_ballot_sum()
            + engine.round_to_residual_surplus[round_num]
        )
        if total != n_ballots:
            return False
    return True


params = [
    (
        {
            "input": {
                "rules": {"candidates": ["A", "B", "C"], "number_of_winners": 2, "winner_election_mode": MULTIPLE},
                "ballots": [["A", "B"]] * 12 + [["B"]] * 8 + [["C"]] * 8,
            },
            "expected": {
                "rounds": [
                    {"A": D(12), "B": D(8), "C": D(8)},
                    {"A": D(10), "B": D("9.9992"), "C": D(8)},
                    {"A": D(10), "B": D("9.9992"), "C": D(8)},
                ],
                "winners": ["A", "B"],
                "threshold": D(10),
                "residual": [D(0), D("0.0008"), D("0.0008")],
            },
        }
    ),
    (
        {
            "input": {
                "rules": {"candidates": ["A", "B", "C"], "number_of_winners": 2, "winner_election_mode": MULTIPLE},
                "ballots": [["A"]] * 11 + [["B"]] * 10 + [["C"]] * 3,
            },
            "expected": {
                "rounds": [
                    {"A": D(11), "B": D(10), "C": D(3)},
                    {"A": D(9), "B": D(9), "C": D(3)},
                ],
                "winners": ["A", "B"],
                "threshold": D(9),
                "residual": [D(0), D("0.0002")],
            },
        }
    ),
    (
        {
            "input": {
                "rules": {"candidates": ["A", "B", "C"], "number_of_winners": 2, "winner_election_mode": ONE_PER_ROUND},
                "ballots": [["A"]] * 11 + [["B"]] * 10 + [["C"]] * 3,
            },
            "expected": {
                "rounds": [
                    {"A": D(11), "B": D(10), "C": D(3)},
                    {"A": D(9), "B": D(10), "C": D(3)},
                    {"A": D(9), "B": D(9), "C": D(3)},
                ],
                "winners": ["A", "B"],
                "threshold": D(9),
                "residual": [D(0), D("0.0002"), D("0.0002")],
            },
        }
    ),
]


@pytest.mark.parametrize("param", params)
def test_tabulation(param, ballots_from_marks):

    rcv = RCV(ballots_from_marks(param["input"]["ballots"]), param["input"]["rules"])

    n_round = rcv.n_rounds()
    assert n_round == len(param["expected"]["rounds"])

    tally_dict = [rcv.get_round_tally_dict(round_num=i) for i in range(1, n_round + 1)]
    assert tally_dict == param["expected"]["rounds"]

    assert rcv.winners() == param["expected"]["winners"]
    assert rcv.get_win_threshold() == param["expected"]["threshold"]
    assert [rcv.get_residual_surplus(i) for i in range(1, n_round + 1)] == param["expected"]["residual"]
    assert conservation_holds(rcv)


def test_surplus_transfer(ballots_from_marks):

    rcv = RCV(
        ballots_from_marks([["A", "B"]] * 12 + [["B"]] * 8 + [["C"]] * 8),
        {"candidates": ["A", "B", "C"], "number_of_winners": 2, "winner_election_mode": MULTIPLE},
    )

    assert rcv.get_round_transfer_dict(2) == {
        "A": {"B": D("1.9992"), TallyLedger.RESIDUAL_SURPLUS: D("0.0008")},
    }
    assert rcv.get_round_transfer_dict(3) == {}

    engine = rcv.get_tabulation()
    a_ballot = engine.ballots[0]
    assert a_ballot.winner_allocations == {"A": D("0.8334"), "B": D("0.1666")}
    assert a_ballot.fractional_transfer_value() == D(0)

    outcomes = {d["name"]: d["round_elected"] for d in rcv.get_candidate_outcomes()}
    assert outcomes == {"A": 1, "B": 2, "C": None}

    # earlier winners can be left out of later rounds
    assert rcv.get_round_tally_dict(2, only_round_active_candidates=True) == {"B": D("9.9992"), "C": D(8)}


def test_final_round_surplus(ballots_from_marks):

    rcv = RCV(
        ballots_from_marks([["A"]] * 11 + [["B"]] * 10 + [["C"]] * 3),
        {"candidates": ["A", "B", "C"], "number_of_winners": 2, "winner_election_mode": MULTIPLE},
    )

    inactive = rcv.get_round_inactive_dict(2)
    assert inactive[BallotStatus.FINAL_ROUND_SURPLUS.value] == D("2.9998")
    assert inactive[BallotStatus.EXHAUSTED_CHOICE.value] == D(0)


def test_one_winner_per_round_exhausts_surplus(ballots_from_marks):

    rcv = RCV(
        ballots_from_marks([["A"]] * 11 + [["B"]] * 10 + [["C"]] * 3),
        {"candidates": ["A", "B", "C"], "number_of_winners": 2, "winner_election_mode": ONE_PER_ROUND},
    )

    assert rcv.get_round_inactive_dict(2)[BallotStatus.EXHAUSTED_CHOICE.value] == D("1.9998")
    assert rcv.get_round_inactive_dict(3)[BallotStatus.EXHAUSTED_CHOICE.value] == D("1.9998")
    assert rcv.get_round_inactive_dict(3)[BallotStatus.FINAL_ROUND_SURPLUS.value] == D(1)


def test_hare_quota(ballots_from_marks):

    rcv = RCV(
        ballots_from_marks([["A", "C"]] * 6 + [["B"]] + [["C"]] * 2),
        {
            "candidates": ["A", "B", "C"],
            "number_of_winners": 2,
            "winner_election_mode": MULTIPLE,
            "hare_quota": True,
        },
    )

    # 9 active votes / 2 seats, rounded up
    assert rcv.get_win_threshold() == D(5)
    assert rcv.winners() == ["A", "C"]
    assert conservation_holds(rcv)


def test_stats_multi_winner(ballots_from_marks):

    rcv = RCV(
        ballots_from_marks([["A", "B"]] * 12 + [["B"]] * 8 + [["C"]] * 8),
        {"candidates": ["A", "B", "C"], "number_of_winners": 2, "winner_election_mode": MULTIPLE},
    )

    stats = rcv.get_stats()[0]
    assert stats["winner"].item() == "A, B"
    assert stats["number_of_tabulation_winners"].item() == 2
    assert stats["residual_surplus"].item() == 0.001
    assert stats["first_round_winner_vote"].item() is None
