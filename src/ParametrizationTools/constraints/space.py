from typing import (Dict, Iterable, Iterator, List, Optional, Sequence, Tuple,
                    Union)

import numpy as np

from ParametrizationTools.constraints.formula import (BoolExpr, And,
                                                      FormulaParser, Variable)
from ParametrizationTools.util.errors import FormatError


class ConstraintSpace:
    """
    A finite-domain constraint space. Every variable ranges over the
    integers [0, max] and the imposed constraints are boolean expressions
    over these variables.

    Solutions are enumerated by a depth-first search that assigns the
    variables in their declared order, smallest value first. After every
    assignment the constraints touching the variable are evaluated on the
    partial assignment and constraints with a single unassigned variable
    left prune the domain of that variable (forward checking). The order of
    the solutions is therefore lexicographic.

    Args:
        names (Sequence[str]): Names of the variables.
        maxes (Union[int, Sequence[int]]): The maximal value of each
            variable, or a single maximum shared by all of them.
    """

    def __init__(self, names: Sequence[str], maxes: Union[int,
                                                          Sequence[int]]):
        self.names = list(names)
        if isinstance(maxes, (int, np.integer)):
            maxes = [int(maxes)] * len(self.names)
        if len(maxes) != len(self.names):
            raise ValueError('The number of maximal values does not match '
                             'the number of variables')
        if any(m < 0 for m in maxes):
            raise ValueError('Maximal values must be non-negative')

        self.maxes = [int(m) for m in maxes]
        self.domains: List[List[int]] = [
            list(range(m + 1)) for m in self.maxes
        ]
        self.constraints: List[BoolExpr] = []
        self.parser = FormulaParser(self.names)
        self._infeasible = False

    def __len__(self) -> int:
        return len(self.names)

    def variable(self, key: Union[str, int]) -> Variable:
        """
        Get a variable of this space by its name or index.
        """
        if isinstance(key, str):
            try:
                index = self.names.index(key)
            except ValueError:
                raise FormatError(
                    f'Unrecognized variable name "{key}"') from None
        else:
            index = key
        return Variable(index, self.names[index])

    def apply_formula(self, formula: str) -> BoolExpr:
        """
        Parse the formula and impose it on the space.

        Returns:
            BoolExpr: The parsed expression.
        """
        expr = self.parser.parse(formula)
        self.impose(expr)
        return expr

    def impose(self, expr: BoolExpr) -> None:
        """
        Add a constraint. Top-level conjunctions are split into separate
        constraints, constraints over a single variable narrow its domain
        right away.
        """
        if expr.placeholders:
            raise FormatError(f'Unresolved placeholders in "{expr}"')
        if any(index >= len(self.names) for index in expr.variables):
            raise FormatError(f'The expression "{expr}" refers to variables '
                              'outside of the space')

        parts = expr.operands if isinstance(expr, And) else (expr, )
        for part in parts:
            variables = part.variables
            if not variables:
                if not part.evaluate([]):
                    self._infeasible = True
            elif len(variables) == 1:
                index, = variables
                self.restrict(index, [
                    value for value in self.domains[index]
                    if part.evaluate(self._single(index, value))
                ])
            else:
                self.constraints.append(part)

    def restrict(self, index: int, values: Iterable[int]) -> None:
        """
        Intersect the domain of a variable with the given values.
        """
        allowed = set(values)
        self.domains[index] = [v for v in self.domains[index] if v in allowed]

    def _single(self, index: int, value: int) -> List[Optional[int]]:
        values: List[Optional[int]] = [None] * len(self.names)
        values[index] = value
        return values

    def _watches(self) -> Tuple[List[List[BoolExpr]], List[List[Tuple[
            BoolExpr, int]]]]:
        touching = [[] for _ in self.names]
        forward = [[] for _ in self.names]
        for constraint in self.constraints:
            indices = sorted(constraint.variables)
            for index in indices:
                touching[index].append(constraint)
            forward[indices[-2]].append((constraint, indices[-1]))
        return touching, forward

    def solutions(self) -> Iterator[Tuple[int, ...]]:
        """
        Lazily enumerate all the assignments satisfying every constraint.

        Yields:
            Tuple[int, ...]: The values of the variables, in declared order.
        """
        return self._search([list(d) for d in self.domains])

    def _search(self,
                domains: List[List[int]]) -> Iterator[Tuple[int, ...]]:
        if self._infeasible or any(not domain for domain in domains):
            return
        n_vars = len(domains)
        if n_vars == 0:
            yield ()
            return

        touching, forward = self._watches()
        values: List[Optional[int]] = [None] * n_vars
        candidates = [iter(())] * n_vars
        trails: List[List[Tuple[int, List[int]]]] = [[]
                                                     for _ in range(n_vars)]

        depth = 0
        candidates[0] = iter(domains[0])
        while depth >= 0:
            # Undo the pruning caused by the previous value on this level
            for index, old_domain in trails[depth]:
                domains[index] = old_domain
            trails[depth] = []

            value = next(candidates[depth], None)
            if value is None:
                values[depth] = None
                depth -= 1
                continue

            values[depth] = value
            if not self._propagate(depth, values, domains, touching[depth],
                                   forward[depth], trails[depth]):
                continue

            if depth == n_vars - 1:
                yield tuple(values)
            else:
                depth += 1
                candidates[depth] = iter(domains[depth])

    @staticmethod
    def _propagate(depth: int, values: List[Optional[int]],
                   domains: List[List[int]], touching: List[BoolExpr],
                   forward: List[Tuple[BoolExpr, int]],
                   trail: List[Tuple[int, List[int]]]) -> bool:
        for constraint in touching:
            if constraint.evaluate(values) is False:
                return False

        for constraint, index in forward:
            old_domain = domains[index]
            new_domain = []
            for candidate in old_domain:
                values[index] = candidate
                if constraint.evaluate(values) is not False:
                    new_domain.append(candidate)
            values[index] = None

            if len(new_domain) != len(old_domain):
                trail.append((index, old_domain))
                domains[index] = new_domain
            if not new_domain:
                return False
        return True

    def first_solution(
            self,
            fixed: Optional[Dict[int, int]] = None
    ) -> Optional[Tuple[int, ...]]:
        """
        Find the lexicographically smallest solution.

        Args:
            fixed (Dict[int, int], None): Values some variables are fixed to.

        Returns:
            Tuple[int, ...], None: The solution or None if there is none.
        """
        domains = [list(d) for d in self.domains]
        for index, value in (fixed or {}).items():
            domains[index] = [value] if value in domains[index] else []
        return next(self._search(domains), None)

    def bounds(self) -> Optional[List[Tuple[int, int]]]:
        """
        Compute the smallest and the largest value each variable takes in
        some solution.

        Returns:
            List[Tuple[int, int]], None: The (min, max) pair for each
                variable, None if the space has no solution.
        """
        result = []
        for index, domain in enumerate(self.domains):
            feasible = [
                value for value in domain
                if self.first_solution({index: value}) is not None
            ]
            if not feasible:
                return None
            result.append((feasible[0], feasible[-1]))
        return result

    def solve(self) -> np.ndarray:
        """
        Enumerate all the solutions into an array of the shape
        (n_solutions, n_variables).
        """
        solutions = list(self.solutions())
        return np.array(solutions, dtype=np.int64).reshape(
            len(solutions), len(self.names))

    def __repr__(self) -> str:
        return (f'ConstraintSpace({len(self.names)} variables, '
                f'{len(self.constraints)} constraints)')
