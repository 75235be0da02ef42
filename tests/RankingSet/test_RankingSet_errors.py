
import pytest

from rcv_tabulator.rankings import RankingSet


param_dicts = [
    ({
        'input': ['A', 'B'],
        'expected': TypeError
    }),
    ({
        'input': {'1': 'A'},
        'expected': TypeError
    }),
    ({
        'input': {True: 'A'},
        'expected': TypeError
    }),
    ({
        'input': {1: 5},
        'expected': TypeError
    }),
    ({
        'input': {1: ['A', None]},
        'expected': TypeError
    }),
    ({
        'input': {0: 'A'},
        'expected': ValueError
    }),
    ({
        'input': {-2: 'A'},
        'expected': ValueError
    }),
]


@pytest.mark.parametrize("param", param_dicts)
def test_constructor_errors(param):
    with pytest.raises(param['expected']):
        RankingSet(param['input'])


def test_from_marks_requires_sequence():
    with pytest.raises(TypeError):
        RankingSet.from_marks("ABC")


def test_max_ranking_number_empty():
    with pytest.raises(ValueError):
        RankingSet().max_ranking_number()
