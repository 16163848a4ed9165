"""
Propositional formulae over named finite-domain integer variables.

The language consists of the constants ``tt`` and ``ff``, negation ``!``,
conjunction ``&``, disjunction ``|`` and the comparisons ``<, <=, =, !=, >,
>=`` between two operands, each being either a variable name or a
non-negative integer literal. A bare variable name ``x`` stands for ``x = 1``.
Conjunctions and disjunctions may not be mixed on the same bracket level.

Expressions are immutable trees. They are either parsed from text with
:class:`FormulaParser` or composed directly with :func:`conjunction`,
:func:`disjunction`, :func:`negation` and :func:`relation`.
"""
import operator
import re
from functools import cached_property
from typing import (Callable, Dict, FrozenSet, Iterable, Optional, Sequence,
                    Union)

from ParametrizationTools.util.errors import FormatError

# Order matters, two-character operators must be tried first
COMPARISONS: Dict[str, Callable[[int, int], bool]] = {
    '<=': operator.le,
    '>=': operator.ge,
    '!=': operator.ne,
    '=': operator.eq,
    '<': operator.lt,
    '>': operator.gt,
}

PLUS = '+'
MINUS = '-'

_LITERAL = re.compile(r'\d+')


class Variable:
    """
    A reference to one variable of a constraint space.

    Args:
        index (int): Position of the variable in the space.
        name (str): Name of the variable, used for printing only.
    """

    __slots__ = ('index', 'name')

    def __init__(self, index: int, name: str = ''):
        self.index = index
        self.name = name

    def __eq__(self, other) -> bool:
        return isinstance(other, Variable) and self.index == other.index

    def __hash__(self) -> int:
        return hash(('var', self.index))

    def __str__(self) -> str:
        return self.name if self.name else f'x{self.index}'

    def __repr__(self) -> str:
        return f'Variable({self.index}, {self.name!r})'


Operand = Union[Variable, int]
Values = Sequence[Optional[int]]


class BoolExpr:
    """
    Base class of the expression tree.

    :meth:`evaluate` works on partial assignments and uses three-valued logic:
    it returns None when the value of the expression is not decided yet.
    """

    def evaluate(self, values: Values) -> Optional[bool]:
        raise NotImplementedError

    @cached_property
    def variables(self) -> FrozenSet[int]:
        return frozenset()

    @cached_property
    def placeholders(self) -> FrozenSet[str]:
        return frozenset()

    def substitute(self, plus: 'BoolExpr', minus: 'BoolExpr') -> 'BoolExpr':
        """
        Replace the placeholders ``+`` and ``-`` with the given expressions.
        """
        return self

    def __eq__(self, other) -> bool:
        return type(self) is type(other) and self._key() == other._key()

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._key()))

    def _key(self):
        raise NotImplementedError

    def __repr__(self) -> str:
        return f'{type(self).__name__}({str(self)!r})'


class Constant(BoolExpr):

    def __init__(self, value: bool):
        self.value = value

    def evaluate(self, values: Values) -> Optional[bool]:
        return self.value

    def _key(self):
        return self.value

    def __str__(self) -> str:
        return 'tt' if self.value else 'ff'


TRUE = Constant(True)
FALSE = Constant(False)


class Placeholder(BoolExpr):
    """
    Stands for "a dominant activating (``+``) or inhibiting (``-``) regulator
    is present". Placeholders only appear in regulation label templates and
    must be substituted before solving.
    """

    def __init__(self, symbol: str):
        if symbol not in (PLUS, MINUS):
            raise ValueError(f'Unknown placeholder {symbol}')
        self.symbol = symbol

    def evaluate(self, values: Values) -> Optional[bool]:
        return None

    @cached_property
    def placeholders(self) -> FrozenSet[str]:
        return frozenset(self.symbol)

    def substitute(self, plus: BoolExpr, minus: BoolExpr) -> BoolExpr:
        return plus if self.symbol == PLUS else minus

    def _key(self):
        return self.symbol

    def __str__(self) -> str:
        return self.symbol


class Not(BoolExpr):

    def __init__(self, operand: BoolExpr):
        self.operand = operand

    def evaluate(self, values: Values) -> Optional[bool]:
        result = self.operand.evaluate(values)
        return None if result is None else not result

    @cached_property
    def variables(self) -> FrozenSet[int]:
        return self.operand.variables

    @cached_property
    def placeholders(self) -> FrozenSet[str]:
        return self.operand.placeholders

    def substitute(self, plus: BoolExpr, minus: BoolExpr) -> BoolExpr:
        return negation(self.operand.substitute(plus, minus))

    def _key(self):
        return self.operand

    def __str__(self) -> str:
        return f'!{_bracketed(self.operand)}'


class _Junction(BoolExpr):
    symbol = ''

    def __init__(self, operands: Iterable[BoolExpr]):
        self.operands = tuple(operands)

    @cached_property
    def variables(self) -> FrozenSet[int]:
        return frozenset().union(*(op.variables for op in self.operands))

    @cached_property
    def placeholders(self) -> FrozenSet[str]:
        return frozenset().union(*(op.placeholders for op in self.operands))

    def _key(self):
        return self.operands

    def __str__(self) -> str:
        return f' {self.symbol} '.join(
            _bracketed(operand) for operand in self.operands)


class And(_Junction):
    symbol = '&'

    def evaluate(self, values: Values) -> Optional[bool]:
        undecided = False
        for operand in self.operands:
            result = operand.evaluate(values)
            if result is False:
                return False
            if result is None:
                undecided = True
        return None if undecided else True

    def substitute(self, plus: BoolExpr, minus: BoolExpr) -> BoolExpr:
        return conjunction(*(op.substitute(plus, minus)
                             for op in self.operands))


class Or(_Junction):
    symbol = '|'

    def evaluate(self, values: Values) -> Optional[bool]:
        undecided = False
        for operand in self.operands:
            result = operand.evaluate(values)
            if result is True:
                return True
            if result is None:
                undecided = True
        return None if undecided else False

    def substitute(self, plus: BoolExpr, minus: BoolExpr) -> BoolExpr:
        return disjunction(*(op.substitute(plus, minus)
                             for op in self.operands))


class Relation(BoolExpr):
    """
    Comparison of two operands, each a :class:`Variable` or an integer.
    """

    def __init__(self, left: Operand, comparison: str, right: Operand):
        if comparison not in COMPARISONS:
            raise ValueError(f'Unknown comparison {comparison}')
        self.left = left
        self.comparison = comparison
        self.right = right
        self._compare = COMPARISONS[comparison]

    def evaluate(self, values: Values) -> Optional[bool]:
        left = _value_of(self.left, values)
        if left is None:
            return None
        right = _value_of(self.right, values)
        if right is None:
            return None
        return self._compare(left, right)

    @cached_property
    def variables(self) -> FrozenSet[int]:
        return frozenset(operand.index for operand in (self.left, self.right)
                         if isinstance(operand, Variable))

    def _key(self):
        return (self.left, self.comparison, self.right)

    def __str__(self) -> str:
        return f'{self.left} {self.comparison} {self.right}'


def _value_of(operand: Operand, values: Values) -> Optional[int]:
    if isinstance(operand, Variable):
        return values[operand.index]
    return operand


def _bracketed(expr: BoolExpr) -> str:
    if isinstance(expr, _Junction) and len(expr.operands) > 1:
        return f'({expr})'
    return str(expr)


def conjunction(*operands: BoolExpr) -> BoolExpr:
    """
    Conjoin the operands. Nested conjunctions are flattened and constants
    are folded, an empty conjunction is ``tt``.
    """
    flat = []
    for operand in operands:
        if operand == FALSE:
            return FALSE
        if operand == TRUE:
            continue
        if isinstance(operand, And):
            flat.extend(operand.operands)
        else:
            flat.append(operand)
    if not flat:
        return TRUE
    if len(flat) == 1:
        return flat[0]
    return And(flat)


def disjunction(*operands: BoolExpr) -> BoolExpr:
    """
    Disjoin the operands. Nested disjunctions are flattened and constants
    are folded, an empty disjunction is ``ff``.
    """
    flat = []
    for operand in operands:
        if operand == TRUE:
            return TRUE
        if operand == FALSE:
            continue
        if isinstance(operand, Or):
            flat.extend(operand.operands)
        else:
            flat.append(operand)
    if not flat:
        return FALSE
    if len(flat) == 1:
        return flat[0]
    return Or(flat)


def negation(operand: BoolExpr) -> BoolExpr:
    if isinstance(operand, Constant):
        return FALSE if operand.value else TRUE
    return Not(operand)


def relation(left: Operand, comparison: str, right: Operand) -> BoolExpr:
    if not isinstance(left, Variable) and not isinstance(right, Variable):
        return TRUE if COMPARISONS[comparison](left, right) else FALSE
    return Relation(left, comparison, right)


class FormulaParser:
    """
    Recursive descent parser for the formula language.

    Args:
        names (Sequence[str]): Names of the variables, in the order of the
            constraint space they refer to.
        allow_placeholders (bool): If True, the atoms ``+`` and ``-`` are
            read as :class:`Placeholder` nodes. Defaults to False.
    """

    def __init__(self,
                 names: Sequence[str],
                 allow_placeholders: bool = False):
        self.names = list(names)
        self.allow_placeholders = allow_placeholders
        self._name_map = {name: i for i, name in enumerate(self.names)}
        self._formula = ''

    def parse(self, formula: str) -> BoolExpr:
        """
        Parse the formula into an expression tree.

        Args:
            formula (str): The formula. Whitespace is ignored.

        Returns:
            BoolExpr: The root of the expression tree.

        Raises:
            FormatError: If the formula is malformed.
        """
        self._formula = formula
        stripped = ''.join(formula.split())
        if not stripped:
            raise FormatError('Empty formula')
        return self._resolve(stripped)

    def _resolve(self, part: str) -> BoolExpr:
        part = self._strip_parentheses(part)
        if not part:
            raise FormatError(
                f'Empty operand in the formula "{self._formula}".')

        disjuncts = self._split(part, '|')
        conjuncts = self._split(part, '&')

        if len(disjuncts) > 1 and len(conjuncts) > 1:
            raise FormatError(
                f'Error when parsing the part "{part}" of the formula '
                f'"{self._formula}". Operators | and & are mixed, '
                'add parenthesis.')
        elif len(disjuncts) > 1:
            return disjunction(*[self._resolve(d) for d in disjuncts])
        elif len(conjuncts) > 1:
            return conjunction(*[self._resolve(c) for c in conjuncts])
        elif part[0] == '!':
            return negation(self._resolve(part[1:]))
        return self._atom(part)

    def _split(self, part: str, symbol: str) -> list:
        """
        Split by the operator symbol, ignoring symbols inside brackets.
        """
        result = []
        depth = 0
        last = 0
        for pos, char in enumerate(part):
            if char == '(':
                depth += 1
            elif char == ')':
                depth -= 1
            if depth < 0:
                raise FormatError(
                    f'There is a right bracket without matching left bracket'
                    f' in the part "{part}" of the formula '
                    f'"{self._formula}".')
            if depth == 0 and char == symbol:
                result.append(part[last:pos])
                last = pos + 1
        result.append(part[last:])

        if depth > 0:
            raise FormatError(
                f'There is a left bracket without matching right bracket in '
                f'the part "{part}" of the formula "{self._formula}".')
        return result

    @staticmethod
    def _strip_parentheses(part: str) -> str:
        # Remove enclosing brackets until a fixpoint is reached
        while len(part) >= 2 and part[0] == '(' and part[-1] == ')':
            depth = 1
            for char in part[1:-1]:
                if char == '(':
                    depth += 1
                elif char == ')':
                    depth -= 1
                if depth == 0:
                    # The first bracket closes before the end
                    return part
            part = part[1:-1]
        return part

    def _atom(self, atom: str) -> BoolExpr:
        if atom == 'tt':
            return TRUE
        if atom == 'ff':
            return FALSE
        if atom in (PLUS, MINUS):
            if not self.allow_placeholders:
                raise FormatError(
                    f'Placeholder "{atom}" is not allowed in the formula '
                    f'"{self._formula}".')
            return Placeholder(atom)

        for comparison in COMPARISONS:
            pos = atom.find(comparison)
            if pos != -1:
                left = self._operand(atom[:pos])
                right = self._operand(atom[pos + len(comparison):])
                return relation(left, comparison, right)

        return relation(self._variable(atom), '=', 1)

    def _operand(self, text: str) -> Operand:
        if not text:
            raise FormatError(
                f'Missing operand of a comparison in the formula '
                f'"{self._formula}".')
        if _LITERAL.fullmatch(text):
            return int(text)
        return self._variable(text)

    def _variable(self, name: str) -> Variable:
        try:
            return Variable(self._name_map[name], name)
        except KeyError:
            raise FormatError(f'Unrecognized variable name "{name}" in the '
                              f'formula "{self._formula}".') from None


def parse_formula(formula: str,
                  names: Sequence[str],
                  allow_placeholders: bool = False) -> BoolExpr:
    """
    Shorthand for ``FormulaParser(names, allow_placeholders).parse(formula)``.
    """
    return FormulaParser(names, allow_placeholders).parse(formula)
