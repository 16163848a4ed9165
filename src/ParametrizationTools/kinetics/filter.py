import sqlite3
from typing import Optional, Sequence, Set

from ParametrizationTools.inputs.model import Kinetics
from ParametrizationTools.kinetics.translators import (find_matching,
                                                       get_column_names)
from ParametrizationTools.util.errors import FormatError

sql_get_parametrizations = """
    SELECT * FROM Parametrizations;
"""


class ExplicitFilter:
    """
    Remembers the parametrizations allowed by parametrization databases.
    Until a database is added, every parametrization is allowed.

    A database holds a table ``Parametrizations`` whose ``K_*`` columns are
    named as by :func:`ParametrizationTools.kinetics.translators.make_concise`.
    Each row allows all the parametrizations agreeing with it, NULL values
    and missing columns match anything.

    Args:
        kinetics (Kinetics): The kinetics the numbers refer to.
        database_files (Sequence[str], None): Databases to read right away.
    """

    def __init__(self,
                 kinetics: Kinetics,
                 database_files: Optional[Sequence[str]] = None):
        self.kinetics = kinetics
        self.allowed: Set[int] = set()
        self.is_active = False
        for database_file in database_files or []:
            self.add_allowed(database_file)

    def add_allowed(self, database_file: str) -> int:
        """
        Add the parametrizations listed in the database.

        Returns:
            int: The number of rows read.
        """
        names = get_column_names(self.kinetics)
        positions = {name: i for i, name in enumerate(names)}
        if len(positions) != len(names):
            duplicates = sorted(
                set(name for name in names if names.count(name) > 1))
            raise FormatError(
                f'The columns {duplicates} name several contexts, '
                f'{database_file} can not be matched unambiguously')

        with sqlite3.connect(database_file) as con:
            cur = con.cursor()
            cur.execute(sql_get_parametrizations)
            columns = [description[0] for description in cur.description]
            for column in columns:
                if column.startswith('K_') and column not in positions:
                    raise FormatError(
                        f'The column {column} of {database_file} does not '
                        'match any context of the model')

            n_rows = 0
            for row in cur:
                values = [None] * len(names)
                for column, value in zip(columns, row):
                    if column in positions and value is not None:
                        values[positions[column]] = int(value)
                self.allowed.update(find_matching(self.kinetics, values))
                n_rows += 1

        self.is_active = True
        return n_rows

    def is_allowed(self, number: int) -> bool:
        """
        True iff the parametrization is not filtered out.
        """
        if not self.is_active:
            return True
        return number in self.allowed

    def __len__(self) -> int:
        return len(self.allowed)
