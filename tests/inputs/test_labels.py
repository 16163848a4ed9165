from ParametrizationTools.constraints.formula import Placeholder
from ParametrizationTools.inputs.labels import (LABEL_FORMULAE, Label,
                                                Satisfaction,
                                                label_expression, read_label)
from ParametrizationTools.util.errors import FormatError
import pytest


def test_read_label():
    assert read_label(Label.ACTIVATING) == '+'
    assert read_label(Label.ACTIVATING_ONLY) == '(+ & !-)'
    assert read_label(Label.INHIBITING) == '-'
    assert read_label(Label.INHIBITING_ONLY) == '(- & !+)'
    assert read_label(Label.NOT_ACTIVATING) == '!+'
    assert read_label(Label.NOT_INHIBITING) == '!-'
    assert read_label(Label.OBSERVABLE) == '(+ | -)'
    assert read_label(Label.NOT_OBSERVABLE) == '(!+ & !-)'
    assert read_label(Label.FREE) == 'tt'

    # Anything else is a formula itself
    assert read_label('+ | A:1 > 0') == '+ | A:1 > 0'


@pytest.mark.parametrize('label, flags, sign', [
    (Label.ACTIVATING, (False, True, False, True), 1),
    (Label.ACTIVATING_ONLY, (False, True, False, False), 1),
    (Label.INHIBITING, (False, False, True, True), -1),
    (Label.INHIBITING_ONLY, (False, False, True, False), -1),
    (Label.NOT_ACTIVATING, (True, False, True, False), 0),
    (Label.NOT_INHIBITING, (True, True, False, False), 0),
    (Label.OBSERVABLE, (False, True, True, True), 0),
    (Label.NOT_OBSERVABLE, (True, False, False, False), 0),
    (Label.FREE, (True, True, True, True), 0),
    ('+', (False, True, False, True), 1),
    ('-', (False, False, True, True), -1),
])
def test_satisfaction(label, flags, sign):
    satisfaction = Satisfaction.from_label(label)
    assert (satisfaction.none, satisfaction.activ, satisfaction.inhib,
            satisfaction.both) == flags
    assert satisfaction.sign == sign
    assert satisfaction.is_activating == (sign == 1)
    assert satisfaction.is_inhibiting == (sign == -1)


def test_satisfaction_of_custom_labels():
    # The variable is unknown, so nothing can be excluded
    satisfaction = Satisfaction.from_label('+ | A:1 > 0')
    assert satisfaction == Satisfaction(True, True, True, True)

    satisfaction = Satisfaction.from_label('+ & A:1 > 0')
    assert satisfaction == Satisfaction(False, True, False, True)
    assert satisfaction.sign == 1

    assert repr(Satisfaction.from_label(Label.ACTIVATING)) == \
        'Satisfaction(activ, both)'


def test_label_expression():
    assert label_expression(Label.ACTIVATING) == Placeholder('+')
    assert set(LABEL_FORMULAE) == {
        'Activating', 'ActivatingOnly', 'Inhibiting', 'InhibitingOnly',
        'NotActivating', 'NotInhibiting', 'Observable', 'NotObservable', 'Free'
    }

    expr = label_expression('+ & A:0 = 1', ['A:0', 'A:1'])
    assert expr.variables == {0}
    assert expr.placeholders == {'+'}

    with pytest.raises(FormatError):
        label_expression('+ & B:0 = 1', ['A:0', 'A:1'])
