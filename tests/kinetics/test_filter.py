import sqlite3

from ParametrizationTools.inputs.model import Model, Regulation, Species
from ParametrizationTools.kinetics.builder import build_kinetics
from ParametrizationTools.kinetics.filter import ExplicitFilter
from ParametrizationTools.kinetics.translators import get_column_names
from ParametrizationTools.util.errors import FormatError
import pytest


def get_kinetics():
    model = Model([
        Species('A'),
        Species('B', regulations=[Regulation('A')]),
    ])
    return build_kinetics(model)


def create_database(database_file, columns, rows):
    with sqlite3.connect(database_file) as con:
        cur = con.cursor()
        cur.execute('CREATE TABLE Parametrizations ({});'.format(
            ', '.join(f'{column} INTEGER' for column in columns)))
        cur.executemany(
            'INSERT INTO Parametrizations VALUES ({});'.format(', '.join(
                '?' * len(columns))), rows)
        con.commit()


def test_inactive_filter():
    explicit_filter = ExplicitFilter(get_kinetics())
    assert not explicit_filter.is_active
    assert all(explicit_filter.is_allowed(n) for n in range(8))
    assert len(explicit_filter) == 0


def test_add_allowed(tmp_path):
    database_file = f'{tmp_path}/parametrizations.db'
    create_database(database_file, ['K_A_', 'K_B_0', 'K_B_1'],
                    [(0, 1, None), (1, 0, 0)])

    explicit_filter = ExplicitFilter(get_kinetics())
    assert explicit_filter.add_allowed(database_file) == 2
    assert explicit_filter.is_active
    assert explicit_filter.allowed == {1, 4, 6}
    assert len(explicit_filter) == 3
    assert explicit_filter.is_allowed(4)
    assert not explicit_filter.is_allowed(0)


def test_multiple_databases(tmp_path):
    first = f'{tmp_path}/first.db'
    second = f'{tmp_path}/second.db'
    # Columns that are missing or not parameters match anything
    create_database(first, ['id', 'K_B_1'], [(0, 1)])
    create_database(second, ['K_A_'], [(1, )])

    explicit_filter = ExplicitFilter(get_kinetics(), [first, second])
    assert explicit_filter.allowed == {2, 3, 6, 7, 1, 5}


def test_unknown_column(tmp_path):
    database_file = f'{tmp_path}/parametrizations.db'
    create_database(database_file, ['K_A_', 'K_C_0'], [(0, 1)])

    with pytest.raises(FormatError):
        ExplicitFilter(get_kinetics(), [database_file])


def test_ambiguous_columns(tmp_path):
    # A:1,C:10 and A:11,C:0 are both named K_X_110
    model = Model([
        Species('A', 11),
        Species('C', 10),
        Species('X',
                regulations=[
                    Regulation('A', 1),
                    Regulation('A', 11),
                    Regulation('C', 10)
                ])
    ])
    kinetics = build_kinetics(model)
    assert get_column_names(kinetics).count('K_X_110') == 2

    database_file = f'{tmp_path}/parametrizations.db'
    create_database(database_file, ['K_A_'], [(0, )])
    with pytest.raises(FormatError, match='K_X_110'):
        ExplicitFilter(kinetics, [database_file])
