"""
Contains RankingSet class
"""

from __future__ import annotations
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Set, Tuple, Union


class RankingSet:
    """Immutable mapping of rank position to the set of candidates marked at that rank."""

    # special non-candidate marks
    SKIPPED = "skipped"
    OVERVOTE = "overvote"
    UNDECLARED_WRITE_IN = "Undeclared Write-ins"

    def __init__(self, rankings: Optional[Dict[int, Union[str, Iterable[str]]]] = None) -> None:
        """Constructor. Rankings are passed as a dictionary of rank number to candidate(s).

        :param rankings: Rank number (starting at 1) mapped to a candidate name or a collection of candidate names. A collection with more than one name is an overvote. Defaults to None, an empty ballot.
        :type rankings: Optional[Dict[int, Union[str, Iterable[str]]]], optional
        :raises TypeError: if rankings is not a dict, or if rank numbers or candidate names have the wrong type.
        :raises ValueError: if a rank number is less than 1.
        """
        if rankings is None:
            rankings = {}

        if not isinstance(rankings, dict):
            raise TypeError("rankings must be a dict of rank number to candidate(s)")

        rank_to_candidates = {}
        for rank, candidates in rankings.items():

            if isinstance(rank, bool) or not isinstance(rank, int):
                raise TypeError(f"rank ({rank}) must be an int")
            if rank < 1:
                raise ValueError(f"rank ({rank}) must be 1 or higher")

            if isinstance(candidates, str):
                candidates = [candidates]
            candidate_set = frozenset(candidates)
            for candidate in candidate_set:
                if not isinstance(candidate, str):
                    raise TypeError(f"candidate ({candidate}) at rank {rank} must be a str")

            if candidate_set:
                rank_to_candidates[rank] = candidate_set

        self._rankings = dict(sorted(rank_to_candidates.items()))

    @classmethod
    def from_marks(
        cls, marks: List[Union[str, None, Iterable[str]]], treat_blank_as_undeclared_write_in: bool = False
    ) -> RankingSet:
        """Build from a positional list of marks, the first mark being rank 1.

        A string is a single candidate. None or :attr:`RankingSet.SKIPPED` is a skipped rank.
        A list, tuple or set is an overvote (or a single candidate if it holds one name).
        Blank strings become :attr:`RankingSet.UNDECLARED_WRITE_IN` when `treat_blank_as_undeclared_write_in` is True,
        otherwise they are treated as a skipped rank.

        :param marks: Marks in rank order.
        :type marks: List[Union[str, None, Iterable[str]]]
        :param treat_blank_as_undeclared_write_in: Count blank marks as undeclared write-ins, defaults to False
        :type treat_blank_as_undeclared_write_in: bool, optional
        :rtype: RankingSet
        """
        if not isinstance(marks, (list, tuple)):
            raise TypeError("marks must be a list or tuple")

        rankings = {}
        for rank, mark in enumerate(marks, start=1):

            if mark is None or mark == cls.SKIPPED:
                continue

            if isinstance(mark, str):
                mark = [mark]

            candidates = []
            for candidate in mark:
                if isinstance(candidate, str) and not candidate.strip():
                    if treat_blank_as_undeclared_write_in:
                        candidates.append(cls.UNDECLARED_WRITE_IN)
                    continue
                candidates.append(candidate)

            if candidates:
                rankings[rank] = candidates

        return cls(rankings)

    def ranking_at(self, rank: int) -> FrozenSet[str]:
        return self._rankings.get(rank, frozenset())

    def has_ranking_at(self, rank: int) -> bool:
        return rank in self._rankings

    def max_ranking_number(self) -> int:
        """Highest rank with at least one candidate marked.

        :raises ValueError: if the ballot has no rankings.
        """
        if not self._rankings:
            raise ValueError("ballot has no rankings")
        return max(self._rankings)

    def num_rankings(self) -> int:
        return len(self._rankings)

    def is_overvote_at(self, rank: int) -> bool:
        candidates = self.ranking_at(rank)
        return len(candidates) > 1 or RankingSet.OVERVOTE in candidates

    @property
    def unique_candidates(self) -> Set[str]:
        return {candidate for candidates in self._rankings.values() for candidate in candidates}

    def __iter__(self) -> Iterator[Tuple[int, FrozenSet[str]]]:
        return iter(self._rankings.items())

    def __len__(self) -> int:
        return len(self._rankings)

    def __eq__(self, other) -> bool:
        if not isinstance(other, RankingSet):
            return NotImplemented
        return self._rankings == other._rankings

    def __hash__(self) -> int:
        return hash(tuple(self._rankings.items()))

    def __repr__(self) -> str:
        ranks = ", ".join(f"{rank}: {sorted(candidates)}" for rank, candidates in self._rankings.items())
        return f"RankingSet({{{ranks}}})"
