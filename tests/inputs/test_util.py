from ParametrizationTools.inputs.model import Model, Regulation, Species
from ParametrizationTools.inputs.util import (get_regulators_ids,
                                              get_regulators_names,
                                              get_thresholds, make_canonic,
                                              match_context)
from ParametrizationTools.kinetics.contexts import enumerate_contexts
from ParametrizationTools.util.errors import FormatError, ModelInconsistency
import pytest


def get_model():
    # B regulates itself at two thresholds
    return Model([
        Species('A', 1),
        Species('B',
                5,
                regulations=[
                    Regulation('B', 4),
                    Regulation('A', 1),
                    Regulation('B', 2)
                ])
    ])


def test_regulators():
    model = get_model()
    species = model.species[1]
    assert get_regulators_ids(species) == [0, 1]
    assert get_regulators_names(model, 'B') == ['A', 'B']
    assert get_regulators_names(model, 'A') == []
    assert get_thresholds(species) == {0: [1], 1: [2, 4]}


def test_make_canonic():
    model = get_model()
    assert make_canonic(model, 'A', 'B') == 'A:1,B:0'
    assert make_canonic(model, 'B:2', 'B') == 'A:0,B:2'
    assert make_canonic(model, 'B:4,A:0', 'B') == 'A:0,B:4'
    assert make_canonic(model, ' A , B:0 ', 'B') == 'A:1,B:0'
    assert make_canonic(model, '', 'B') == 'A:0,B:0'
    assert make_canonic(model, '', 'A') == ''


def test_make_canonic_errors():
    model = get_model()
    with pytest.raises(FormatError, match='Ambiguous'):
        make_canonic(model, 'B', 'B')
    with pytest.raises(FormatError, match='not valid'):
        make_canonic(model, 'B:3', 'B')
    with pytest.raises(FormatError, match='Unrecognized'):
        make_canonic(model, 'C:1', 'B')
    with pytest.raises(FormatError):
        make_canonic(model, 'B:', 'B')
    with pytest.raises(FormatError):
        make_canonic(model, 'A:1,A:0', 'B')


def test_match_context():
    model = get_model()
    contexts = enumerate_contexts(model, model.species[1])
    assert match_context(model, contexts, 'A,B:2', 'B') == 3
    assert match_context(model, contexts, 'B:4', 'B') == 4
    assert contexts[match_context(model, contexts, 'A', 'B')].context == \
        'A:1,B:0'
    with pytest.raises(ModelInconsistency):
        match_context(model, [], 'A', 'B')

