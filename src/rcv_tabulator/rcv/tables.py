"""Contains RCV_tables class which is added into RCV.
"""

from typing import Optional

import pandas as pd

from rcv_tabulator.ballots import BallotStatus
from rcv_tabulator.rcv.transfers import TallyLedger
from rcv_tabulator.util import NAN
import rcv_tabulator.util as util


class RCV_tables:
    """Extra methods added into RCV class"""

    def _ordered_candidate_names(self, tabulation_num: int = 1):
        """
        Winners in ascending order of round won, then candidates still continuing at the end,
        then losers in descending order of round lost. Ties go by first round tally, then name.
        """
        engine = self.get_tabulation(tabulation_num)
        first_round_dict = engine.round_tallies[0].candidate_tallies()

        reorder_dicts = []
        for d in self.get_candidate_outcomes(tabulation_num=tabulation_num):

            if d["name"] in engine.rules.excluded_candidates:
                continue

            if d["round_elected"]:
                d["order"] = -1 * (1 / d["round_elected"])
            elif d["round_eliminated"]:
                d["order"] = 1 / d["round_eliminated"]
            else:
                d["order"] = 0

            reorder_dicts.append(d)

        return [
            d["name"]
            for d in sorted(
                reorder_dicts,
                key=lambda x: (x["order"], -first_round_dict.get(x["name"], util.ZERO), x["name"]),
            )
        ]

    def get_round_by_round_table(self, tabulation_num: int = 1, slice_key: Optional[str] = None) -> pd.DataFrame:
        """Create a table containing round by round details for the tabulation.

        Rows are candidates, then one row per inactive ballot status, then residual surplus and a column sum.
        Each round has a count column, a percent-of-active column, and a transfer column holding the net
        change going into the next round. Inactive counts are cumulative, so the count column sum is the
        same in every round.

        :param tabulation_num: tabulation number, defaults to 1
        :type tabulation_num: int, optional
        :param slice_key: Build the table for a single slice instead of the whole contest, defaults to None
        :type slice_key: Optional[str], optional
        :return: round by round table
        :rtype: pd.DataFrame
        """
        engine = self.get_tabulation(tabulation_num)

        if slice_key is None:
            round_tallies = engine.round_tallies
            residuals = [engine.round_to_residual_surplus[i] for i in range(1, len(round_tallies) + 1)]
        else:
            if slice_key not in engine.slice_round_tallies:
                raise KeyError(f"no slice tallies for slice {slice_key!r}")
            round_tallies = engine.slice_round_tallies[slice_key]
            residuals = [util.ZERO] * len(round_tallies)

        candidate_names = self._ordered_candidate_names(tabulation_num=tabulation_num)
        status_names = [status.value for status in BallotStatus.inactive_statuses()]
        row_names = candidate_names + status_names + [TallyLedger.RESIDUAL_SURPLUS]

        # collect counts for every row in every round
        round_counts = []
        for round_tally, residual in zip(round_tallies, residuals):
            rnd_info = {cand: round_tally.candidate_tallies().get(cand, util.ZERO) for cand in candidate_names}
            for status in BallotStatus.inactive_statuses():
                rnd_info[status.value] = round_tally.get_ballot_status_tally(status)
            rnd_info[TallyLedger.RESIDUAL_SURPLUS] = residual
            round_counts.append(rnd_info)

        # setup data frame columns
        columns = {"candidate": row_names + ["colsum"]}

        # loop through rounds
        for rnd, rnd_info in enumerate(round_counts, start=1):

            next_info = round_counts[rnd] if rnd < len(round_counts) else rnd_info
            active_sum = sum((rnd_info[cand] for cand in candidate_names), util.ZERO)

            counts = [rnd_info[row] for row in row_names]
            percents = [
                100 * (rnd_info[row] / active_sum) if row in candidate_names and active_sum > 0 else NAN
                for row in row_names
            ]
            transfers = [next_info[row] - rnd_info[row] for row in row_names]

            # sum round columns
            columns["r" + str(rnd) + "_count"] = counts + [sum(counts, util.ZERO)]
            columns["r" + str(rnd) + "_active_percent"] = percents + [
                sum(p for p in percents if p is not NAN) if active_sum > 0 else NAN
            ]
            columns["r" + str(rnd) + "_transfer"] = transfers + [sum(transfers, util.ZERO)]

        rcv_df = pd.DataFrame(columns)

        # convert from decimal to float
        value_cols = [col for col in rcv_df.columns if col != "candidate"]
        rcv_df[value_cols] = rcv_df[value_cols].astype(float).round(3)

        return rcv_df

    def get_transfer_table(self, tabulation_num: int = 1, slice_key: Optional[str] = None) -> pd.DataFrame:
        """Long format table of vote movement, one row per (round, source, target).

        :param tabulation_num: tabulation number, defaults to 1
        :type tabulation_num: int, optional
        :param slice_key: Use the ledger of a single slice, defaults to None
        :type slice_key: Optional[str], optional
        :rtype: pd.DataFrame
        """
        engine = self.get_tabulation(tabulation_num)
        if slice_key is None:
            ledger = engine.tally_ledger
        else:
            if slice_key not in engine.slice_tally_ledgers:
                raise KeyError(f"no slice tallies for slice {slice_key!r}")
            ledger = engine.slice_tally_ledgers[slice_key]

        df = pd.DataFrame(ledger.as_records(), columns=["round", "source", "target", "votes"])
        df["votes"] = df["votes"].map(util.decimal2float)
        return df
