import json

import pytest

from rcv_tabulator.cli import EXIT_ABORTED, EXIT_CANCELLED, EXIT_OK, main, read_contest


def write_contest(tmp_path, contest):
    path = tmp_path / "contest.json"
    path.write_text(json.dumps(contest), encoding="utf8")
    return str(path)


BASIC = {
    "rules": {"candidates": ["A", "B", "C"], "random_seed": 0},
    "ballots": (
        [{"marks": ["A", "B"]}] * 3
        + [{"marks": ["B", "C"]}] * 3
        + [{"marks": ["C", "B"]}, {"marks": ["C"]}]
    ),
}


def test_main(tmp_path, capsys):

    path = write_contest(tmp_path, BASIC)

    assert main([path]) == EXIT_OK

    out = capsys.readouterr().out
    assert "Winner(s): B" in out
    assert "r2_count" in out


def test_main_sequential(tmp_path, capsys):

    contest = {
        "rules": {
            "candidates": ["A", "B", "C"],
            "number_of_winners": 2,
            "winner_election_mode": "multiPassIrv",
            "random_seed": 0,
        },
        "ballots": [{"marks": ["A", "B"]}] * 4 + [{"marks": ["B", "C"]}] * 3 + [{"marks": ["C", "B"]}] * 2,
    }

    assert main([write_contest(tmp_path, contest), "--progress"]) == EXIT_OK

    out = capsys.readouterr().out
    assert "Winner(s): B, C" in out
    assert "Tabulation 2" in out


def test_main_aborted(tmp_path):

    contest = {
        "rules": {"candidates": ["A", "B"], "random_seed": 0},
        "ballots": [{"marks": ["A"]}, {"marks": ["Z"]}],
    }

    assert main([write_contest(tmp_path, contest)]) == EXIT_ABORTED


def test_main_invalid_rules(tmp_path):

    contest = {
        "rules": {"candidates": ["A", "B"]},
        "ballots": [{"marks": ["A"]}],
    }

    assert main([write_contest(tmp_path, contest)]) == EXIT_ABORTED


def test_main_cancelled(tmp_path, monkeypatch, capsys):

    contest = {
        "rules": {"candidates": ["A", "B"], "tiebreak_mode": "stopCountingAndAsk"},
        "ballots": [{"marks": ["A"]}, {"marks": ["B"]}],
    }
    monkeypatch.setattr("builtins.input", lambda prompt: "x")

    assert main([write_contest(tmp_path, contest)]) == EXIT_CANCELLED
    assert "Cancelling tabulation..." in capsys.readouterr().out


def test_main_interactive(tmp_path, monkeypatch, capsys):

    contest = {
        "rules": {"candidates": ["A", "B"], "tiebreak_mode": "stopCountingAndAsk"},
        "ballots": [{"marks": ["A"]}, {"marks": ["B"]}],
    }
    monkeypatch.setattr("builtins.input", lambda prompt: "2")

    assert main([write_contest(tmp_path, contest)]) == EXIT_OK
    assert "Winner(s): B" in capsys.readouterr().out


def test_read_contest_rankings(tmp_path):

    contest = {
        "rules": {"candidates": ["A", "B"], "random_seed": 0, "tabulate_by_slice": True},
        "ballots": [
            {"id": "b1", "rankings": {"1": ["A"], "3": ["B"]}, "slice": "p1"},
            {"rankings": {"1": ["B", "A"]}},
        ],
        "slices": ["p1"],
    }

    rules, ballots, slices = read_contest(write_contest(tmp_path, contest))

    assert rules.candidates == ("A", "B")
    assert rules.tabulate_by_slice
    assert slices == ["p1"]

    assert [b.ballot_id for b in ballots] == ["b1", "2"]
    assert [b.slice_key for b in ballots] == ["p1", None]
    assert list(ballots[0].rankings) == [(1, frozenset({"A"})), (3, frozenset({"B"}))]
    assert list(ballots[1].rankings) == [(1, frozenset({"A", "B"}))]


def test_read_contest_missing_file(tmp_path):

    with pytest.raises(RuntimeError):
        read_contest(str(tmp_path / "nope.json"))


def test_read_contest_bad_ballot(tmp_path):

    contest = {"rules": {"candidates": ["A"], "random_seed": 0}, "ballots": [{"id": "b1"}]}

    with pytest.raises(RuntimeError):
        read_contest(write_contest(tmp_path, contest))
