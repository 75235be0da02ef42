import math

from rcv_tabulator.ballots import BallotStatus
from rcv_tabulator.rcv.base import RCV

STATUS_ROWS = [status.value for status in BallotStatus.inactive_statuses()]


def basic_contest(ballots_from_marks):
    return RCV(
        ballots_from_marks([["A", "B"]] * 3 + [["B", "C"]] * 3 + [["C", "B"]] + [["C"]]),
        {"candidates": ["A", "B", "C"], "random_seed": 0},
    )


def test_round_by_round_table(ballots_from_marks):

    df = basic_contest(ballots_from_marks).get_round_by_round_table()

    assert df["candidate"].tolist() == ["B", "A", "C"] + STATUS_ROWS + ["residual surplus", "colsum"]
    assert df.columns.tolist() == [
        "candidate",
        "r1_count", "r1_active_percent", "r1_transfer",
        "r2_count", "r2_active_percent", "r2_transfer",
    ]

    rows = df.set_index("candidate")

    assert rows.loc[["B", "A", "C"], "r1_count"].tolist() == [3.0, 3.0, 2.0]
    assert rows.loc[["B", "A", "C"], "r2_count"].tolist() == [4.0, 3.0, 0.0]
    assert rows.loc[["B", "A", "C"], "r1_transfer"].tolist() == [1.0, 0.0, -2.0]
    assert rows.loc[["B", "A", "C"], "r1_active_percent"].tolist() == [37.5, 37.5, 25.0]
    assert rows.loc[["B", "A"], "r2_active_percent"].tolist() == [57.143, 42.857]

    assert rows.loc[BallotStatus.EXHAUSTED_CHOICE.value, "r1_count"] == 0.0
    assert rows.loc[BallotStatus.EXHAUSTED_CHOICE.value, "r1_transfer"] == 1.0
    assert rows.loc[BallotStatus.EXHAUSTED_CHOICE.value, "r2_count"] == 1.0
    assert math.isnan(rows.loc[BallotStatus.EXHAUSTED_CHOICE.value, "r1_active_percent"])

    # every ballot is somewhere in every round
    assert rows.loc["colsum", "r1_count"] == 8.0
    assert rows.loc["colsum", "r2_count"] == 8.0
    assert rows.loc["colsum", "r1_transfer"] == 0.0
    assert rows.loc["colsum", "r1_active_percent"] == 100.0


def test_transfer_table(ballots_from_marks):

    df = basic_contest(ballots_from_marks).get_transfer_table()

    assert df.columns.tolist() == ["round", "source", "target", "votes"]
    assert set(df.itertuples(index=False, name=None)) == {
        (1, "uncounted", "A", 3.0),
        (1, "uncounted", "B", 3.0),
        (1, "uncounted", "C", 2.0),
        (2, "C", "B", 1.0),
        (2, "C", "exhausted", 1.0),
    }
