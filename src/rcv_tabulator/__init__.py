from rcv_tabulator.ballots import Ballot, BallotStatus
from rcv_tabulator.errors import (
    InvalidContestRulesError,
    TabulationAbortedError,
    TabulationCancelledError,
    TabulationError,
)
from rcv_tabulator.rankings import RankingSet
from rcv_tabulator.rcv.base import RCV
from rcv_tabulator.rules import ContestRules, OvervoteRule, TiebreakMode, WinnerElectionMode
