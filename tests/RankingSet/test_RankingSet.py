
import pytest

from rcv_tabulator.rankings import RankingSet


def test_rankings_are_sorted_and_frozen():

    r = RankingSet({3: "C", 1: "A", 2: ["B", "D"]})

    assert list(r) == [(1, frozenset({"A"})), (2, frozenset({"B", "D"})), (3, frozenset({"C"}))]
    assert r.ranking_at(2) == frozenset({"B", "D"})
    assert r.ranking_at(5) == frozenset()
    assert r.has_ranking_at(1)
    assert not r.has_ranking_at(4)
    assert r.max_ranking_number() == 3
    assert r.num_rankings() == 3
    assert len(r) == 3
    assert r.unique_candidates == {"A", "B", "C", "D"}


def test_empty_rank_dropped():

    r = RankingSet({1: "A", 2: []})

    assert r.num_rankings() == 1
    assert not r.has_ranking_at(2)


def test_empty_ballot():

    r = RankingSet()

    assert len(r) == 0
    assert not r
    assert r.unique_candidates == set()


param_dicts = [
    ({
        'input': {'marks': ['A', 'B', 'C']},
        'expected': RankingSet({1: 'A', 2: 'B', 3: 'C'})
    }),
    ({
        'input': {'marks': ['A', None, 'C']},
        'expected': RankingSet({1: 'A', 3: 'C'})
    }),
    ({
        'input': {'marks': [RankingSet.SKIPPED, 'B']},
        'expected': RankingSet({2: 'B'})
    }),
    ({
        'input': {'marks': [['A', 'B'], 'C']},
        'expected': RankingSet({1: ['A', 'B'], 2: 'C'})
    }),
    ({
        'input': {'marks': [('A',), 'C']},
        'expected': RankingSet({1: 'A', 2: 'C'})
    }),
    ({
        'input': {'marks': ['', 'A']},
        'expected': RankingSet({2: 'A'})
    }),
    ({
        'input': {'marks': ['', 'A'], 'treat_blank_as_undeclared_write_in': True},
        'expected': RankingSet({1: RankingSet.UNDECLARED_WRITE_IN, 2: 'A'})
    }),
    ({
        'input': {'marks': []},
        'expected': RankingSet()
    }),
]


@pytest.mark.parametrize("param", param_dicts)
def test_from_marks(param):
    assert RankingSet.from_marks(**param['input']) == param['expected']


param_dicts = [
    ({
        'input': RankingSet({1: ['A', 'B'], 2: 'C'}),
        'expected': {1: True, 2: False, 3: False}
    }),
    ({
        'input': RankingSet({1: RankingSet.OVERVOTE, 2: 'C'}),
        'expected': {1: True, 2: False, 3: False}
    }),
]


@pytest.mark.parametrize("param", param_dicts)
def test_is_overvote_at(param):
    assert {rank: param['input'].is_overvote_at(rank) for rank in (1, 2, 3)} == param['expected']


def test_equality_and_hash():

    a = RankingSet({1: ['A', 'B'], 2: 'C'})
    b = RankingSet({2: 'C', 1: ['B', 'A']})

    assert a == b
    assert hash(a) == hash(b)
    assert a != RankingSet({1: 'A'})
    assert len({a, b}) == 1
