
from typing import List

import pandas as pd

from rcv_tabulator.ballots import BallotStatus
import rcv_tabulator.util as util


class RCV_stats:
    """
    Mixin containing all reporting stats.
    """

    ####################
    # OUTCOME STATS

    def _winner(self, tabulation_num=1):
        '''
        The winner(s) of the tabulation.
        '''
        return ", ".join(self.winners(tabulation_num=tabulation_num))

    def _first_round_active_votes(self, tabulation_num=1):
        '''
        The number of votes that were awarded to any candidate in the first round.
        '''
        return self.get_tabulation(tabulation_num).round_tallies[0].active_ballot_sum()

    def _final_round_active_votes(self, tabulation_num=1):
        '''
        The number of votes that were awarded to any candidate in the final round.
        '''
        return self.get_tabulation(tabulation_num).round_tallies[-1].active_ballot_sum()

    def _first_round_winner_vote(self, tabulation_num=1):
        '''
        The number of votes for the winner in the first round.
        In the case of multi-winner tabulations, this result will only pertain to the first candidate elected.
        '''
        winner = self.winners(tabulation_num=tabulation_num)
        tally_dict = self.get_round_tally_dict(1, tabulation_num=tabulation_num, only_round_active_candidates=True)
        return tally_dict[winner[0]]

    def _first_round_winner_percent(self, tabulation_num=1):
        '''
        The percent of votes for the winner in the first round.
        '''
        tally_dict = self.get_round_tally_dict(1, tabulation_num=tabulation_num, only_round_active_candidates=True)
        total = sum(tally_dict.values(), util.ZERO)
        if total == 0:
            return util.NAN
        return self._first_round_winner_vote(tabulation_num=tabulation_num) / total * 100

    def _final_round_winner_vote(self, tabulation_num=1):
        '''
        The number of votes for the winner in the final round.
        '''
        n_rounds = self.n_rounds(tabulation_num=tabulation_num)
        tally_dict = self.get_round_tally_dict(n_rounds, tabulation_num=tabulation_num)
        return tally_dict[self.winners(tabulation_num=tabulation_num)[0]]

    def _final_round_winner_percent(self, tabulation_num=1):
        '''
        The percent of votes for the winner in the final round.
        '''
        n_rounds = self.n_rounds(tabulation_num=tabulation_num)
        tally_dict = self.get_round_tally_dict(n_rounds, tabulation_num=tabulation_num)
        total = sum(tally_dict.values(), util.ZERO)
        if total == 0:
            return util.NAN
        return (self._final_round_winner_vote(tabulation_num=tabulation_num) / total) * 100

    def _first_round_winner_place(self, tabulation_num=1):
        '''
        In terms of first round votes, what place the eventual winner came in.
        '''
        winner = self.winners(tabulation_num=tabulation_num)[0]
        tally_tuple = self.get_round_tally_tuple(1, tabulation_num=tabulation_num, only_round_active_candidates=True)

        # account for ties
        winner_place = None
        for order_rank, unique_tally_val in enumerate(sorted(set(tally_tuple[1]), reverse=True), start=1):
            for cand, tally in zip(*tally_tuple):
                if winner == cand and tally == unique_tally_val:
                    winner_place = order_rank

        return winner_place

    def _come_from_behind(self, tabulation_num=1):
        """
        True if rcv winner is not first round leader.
        """
        return self._first_round_winner_place(tabulation_num=tabulation_num) != 1

    def _compute_summary_contest_stat_tables(self) -> List[pd.DataFrame]:

        tabulation_stats = []

        for iTab in range(1, self.n_tabulations() + 1):

            engine = self.get_tabulation(iTab)
            final_tally = engine.round_tallies[-1]

            s = pd.Series(dtype="object")

            s["winner_election_mode"] = engine.rules.winner_election_mode.value
            s["tabulation_num"] = iTab
            s["n_winners"] = engine.rules.number_of_winners
            s["number_of_tabulation_winners"] = len(self.winners(tabulation_num=iTab))
            s["number_of_contest_winners"] = len(self.winners())
            s["winner"] = self._winner(tabulation_num=iTab)
            s["n_rounds"] = self.n_rounds(tabulation_num=iTab)
            s["win_threshold"] = self.get_win_threshold(tabulation_num=iTab)

            s["first_round_active_votes"] = self._first_round_active_votes(tabulation_num=iTab)
            s["final_round_active_votes"] = self._final_round_active_votes(tabulation_num=iTab)

            for status in BallotStatus.inactive_statuses():
                s[f"total_{status.value}"] = final_tally.get_ballot_status_tally(status)
            s["total_inactive"] = final_tally.inactive_ballot_sum()
            s["residual_surplus"] = self.get_residual_surplus(s["n_rounds"], tabulation_num=iTab)

            if len(self.winners(tabulation_num=iTab)) == 1:

                s["first_round_winner_vote"] = self._first_round_winner_vote(tabulation_num=iTab)
                s["final_round_winner_vote"] = self._final_round_winner_vote(tabulation_num=iTab)
                s["first_round_winner_percent"] = self._first_round_winner_percent(tabulation_num=iTab)
                s["final_round_winner_percent"] = self._final_round_winner_percent(tabulation_num=iTab)
                s["first_round_winner_place"] = self._first_round_winner_place(tabulation_num=iTab)
                s["come_from_behind"] = self._come_from_behind(tabulation_num=iTab)

            else:

                s["first_round_winner_vote"] = None
                s["final_round_winner_vote"] = None
                s["first_round_winner_percent"] = None
                s["final_round_winner_percent"] = None
                s["first_round_winner_place"] = None
                s["come_from_behind"] = None

            tabulation_stats.append(s.to_frame().transpose())

        return tabulation_stats

    def get_stats(self, keep_decimal_type: bool = False) -> List[pd.DataFrame]:
        """Obtain the summary statistics of each tabulation. Statistics are returned in pandas dataframe objects. One dataframe is returned for each tabulation in the contest.

        :param keep_decimal_type: Return the decimal class objects used by internal calculations rather than converting them to floats, defaults to False
        :type keep_decimal_type: bool, optional
        :return: A single row dataframe with statistics organized in multiple columns. One dataframe is returned per tabulation.
        :rtype: List[pd.DataFrame]
        """
        contest_stats = self._compute_summary_contest_stat_tables()

        if not keep_decimal_type:
            contest_stats = [t.map(util.decimal2float) for t in contest_stats]

        return contest_stats
