from functools import lru_cache
from typing import Dict, Tuple

from monty.json import MSONable

from ParametrizationTools.constraints.formula import (BoolExpr, FALSE, TRUE,
                                                      FormulaParser, Variable)


class Label:
    """
    Names of the predefined regulation labels.
    """
    ACTIVATING = 'Activating'
    ACTIVATING_ONLY = 'ActivatingOnly'
    INHIBITING = 'Inhibiting'
    INHIBITING_ONLY = 'InhibitingOnly'
    NOT_ACTIVATING = 'NotActivating'
    NOT_INHIBITING = 'NotInhibiting'
    OBSERVABLE = 'Observable'
    NOT_OBSERVABLE = 'NotObservable'
    FREE = 'Free'


# The placeholder + reads "some activating regulator is dominant",
# - reads "some inhibiting regulator is dominant"
LABEL_FORMULAE: Dict[str, str] = {
    Label.ACTIVATING: '+',
    Label.ACTIVATING_ONLY: '(+ & !-)',
    Label.INHIBITING: '-',
    Label.INHIBITING_ONLY: '(- & !+)',
    Label.NOT_ACTIVATING: '!+',
    Label.NOT_INHIBITING: '!-',
    Label.OBSERVABLE: '(+ | -)',
    Label.NOT_OBSERVABLE: '(!+ & !-)',
    Label.FREE: 'tt',
}


def read_label(label: str) -> str:
    """
    Translate a regulation label to its canonical formula over the
    placeholders ``+`` and ``-``. Any string that is not a predefined label
    is returned unchanged, i.e. it is taken as a formula itself.

    Args:
        label (str): The label of the regulation.

    Returns:
        str: The formula fragment.
    """
    return LABEL_FORMULAE.get(label, label)


def label_expression(label: str, names=()) -> BoolExpr:
    """
    Parse the label into an expression tree with placeholder nodes.

    Args:
        label (str): The label of the regulation.
        names (Sequence[str]): Variables a custom label may refer to.
            Defaults to none.

    Returns:
        BoolExpr: The expression, placeholders not substituted yet.
    """
    if label in LABEL_FORMULAE:
        return _predefined_expression(label)
    parser = FormulaParser(names, allow_placeholders=True)
    return parser.parse(read_label(label))


@lru_cache(maxsize=None)
def _predefined_expression(label: str) -> BoolExpr:
    return FormulaParser((), allow_placeholders=True).parse(
        LABEL_FORMULAE[label])


class Satisfaction(MSONable):
    """
    Which of the four combinations of the placeholders a label admits.

    Args:
        none (bool): Neither an activating nor an inhibiting effect.
        activ (bool): Only an activating effect.
        inhib (bool): Only an inhibiting effect.
        both (bool): Both effects at once.
    """

    def __init__(self, none: bool, activ: bool, inhib: bool, both: bool):
        self.none = none
        self.activ = activ
        self.inhib = inhib
        self.both = both

    @classmethod
    def from_label(cls, label: str) -> 'Satisfaction':
        """
        Evaluate the label for every combination of the placeholders.
        Custom labels that refer to other variables are treated
        permissively, an undecided combination counts as admitted.
        """
        expr, n_variables = _permissive_expression(label)
        undecided = [None] * n_variables

        def admits(plus: bool, minus: bool) -> bool:
            substituted = expr.substitute(TRUE if plus else FALSE,
                                          TRUE if minus else FALSE)
            result = substituted.evaluate(undecided)
            return result is not False

        return cls(none=admits(False, False),
                   activ=admits(True, False),
                   inhib=admits(False, True),
                   both=admits(True, True))

    @property
    def is_activating(self) -> bool:
        """
        True if the label admits an activating effect only.
        """
        return self.activ and not self.none and not self.inhib

    @property
    def is_inhibiting(self) -> bool:
        """
        True if the label admits an inhibiting effect only.
        """
        return self.inhib and not self.none and not self.activ

    @property
    def sign(self) -> int:
        """
        1 for activating, -1 for inhibiting, 0 if the sign is undeterminable.
        """
        if self.is_activating:
            return 1
        if self.is_inhibiting:
            return -1
        return 0

    def __eq__(self, other) -> bool:
        return (isinstance(other, Satisfaction)
                and (self.none, self.activ, self.inhib, self.both)
                == (other.none, other.activ, other.inhib, other.both))

    def __repr__(self) -> str:
        flags = [
            name for name in ('none', 'activ', 'inhib', 'both')
            if getattr(self, name)
        ]
        return f'Satisfaction({", ".join(flags)})'


class _PermissiveParser(FormulaParser):
    """
    Accepts any variable name, used to inspect custom labels without knowing
    the variables they refer to.
    """

    def _variable(self, name: str) -> Variable:
        index = self._name_map.setdefault(name, len(self._name_map))
        return Variable(index, name)


def _permissive_expression(label: str) -> Tuple[BoolExpr, int]:
    if label in LABEL_FORMULAE:
        return _predefined_expression(label), 0
    parser = _PermissiveParser((), allow_placeholders=True)
    expr = parser.parse(read_label(label))
    return expr, len(parser._name_map)
