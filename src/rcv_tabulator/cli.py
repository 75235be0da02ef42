"""
Module that contains the command line app.

The contest file is JSON with three keys:

- "rules": keyword arguments for ContestRules.new_rule_set
- "ballots": list of {"id": ..., "marks": [...]} or {"id": ..., "rankings": {"1": ...}}, each with an optional "slice"
- "slices": optional list of declared slice keys
"""
import argparse
import json
import logging
import os
import sys

import pandas as pd

from rcv_tabulator.ballots import Ballot
from rcv_tabulator.errors import TabulationError
from rcv_tabulator.rankings import RankingSet
from rcv_tabulator.rcv.base import RCV
from rcv_tabulator.rcv.tiebreak import ConsoleTiebreakOracle
from rcv_tabulator.rules import ContestRules

_log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ABORTED = 1
EXIT_CANCELLED = 2


def read_contest(contest_path):
    """Read a contest JSON file into rules, ballots and declared slices.

    :raises RuntimeError: if the file is missing or malformed.
    """
    if not os.path.isfile(contest_path):
        raise RuntimeError(f'invalid path [contest_path]: {contest_path}')

    with open(contest_path, encoding='utf8') as contest_file:
        contest = json.load(contest_file)

    if 'rules' not in contest or 'ballots' not in contest:
        raise RuntimeError(f'contest file {contest_path} must contain "rules" and "ballots"')

    rules = ContestRules.new_rule_set(**contest['rules'])

    ballots = []
    for idx, b in enumerate(contest['ballots'], start=1):

        ballot_id = str(b.get('id', idx))
        slice_key = b.get('slice')

        if 'marks' in b:
            ballot = Ballot.from_marks(
                b['marks'],
                ballot_id=ballot_id,
                slice_key=slice_key,
                treat_blank_as_undeclared_write_in=rules.treat_blank_as_undeclared_write_in,
            )
        elif 'rankings' in b:
            rankings = RankingSet({int(rank): cands for rank, cands in b['rankings'].items()})
            ballot = Ballot(rankings, ballot_id=ballot_id, slice_key=slice_key)
        else:
            raise RuntimeError(f'ballot {ballot_id} needs either "marks" or "rankings"')

        ballots.append(ballot)

    return rules, ballots, contest.get('slices')


def main(argv=None):

    # argument parse and valid
    p = argparse.ArgumentParser(description='Tabulate an RCV contest described in a JSON file.')

    p.add_argument('contest_path', help='Path to contest JSON file containing "rules" and "ballots".')
    p.add_argument('--verbose', action='store_true', help='Log per-ballot audit lines.')
    p.add_argument('--progress', action='store_true', help='Show a progress bar over seats of a sequential contest.')

    args = p.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    try:
        rules, ballots, slices = read_contest(args.contest_path)
        rcv = RCV(ballots, rules, tiebreak_oracle=ConsoleTiebreakOracle(), slices=slices, progress=args.progress)
    except TabulationError as e:
        _log.error('%s', e)
        return EXIT_CANCELLED if e.cancelled_by_user else EXIT_ABORTED

    print(f"Winner(s): {', '.join(rcv.winners())}")
    with pd.option_context('display.max_columns', None, 'display.width', None):
        for iTab in range(1, rcv.n_tabulations() + 1):
            if rcv.n_tabulations() > 1:
                print(f"\nTabulation {iTab}")
            print(rcv.get_round_by_round_table(tabulation_num=iTab).to_string(index=False))

    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
