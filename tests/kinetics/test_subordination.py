from ParametrizationTools.inputs.model import (Model, Regulation, Restrictions,
                                               Species)
from ParametrizationTools.kinetics.contexts import enumerate_contexts
from ParametrizationTools.kinetics.subordination import (contains_regulation,
                                                         is_subordinate,
                                                         subordinate_pairs)


def get_contexts():
    model = Model([
        Species('A', 1),
        Species('B',
                5,
                regulations=[
                    Regulation('A', 1),
                    Regulation('B', 2),
                    Regulation('B', 4)
                ])
    ],
                  restrictions=Restrictions(bounded_loops=True))
    return model, enumerate_contexts(model, model.species[1])


def test_is_subordinate():
    _, contexts = get_contexts()
    assert is_subordinate(contexts[1], contexts[0], 0)
    assert not is_subordinate(contexts[0], contexts[1], 0)
    assert is_subordinate(contexts[3], contexts[1], 1)
    assert is_subordinate(contexts[5], contexts[3], 1)
    # Two intervals apart
    assert not is_subordinate(contexts[4], contexts[0], 1)
    # Differs in another regulator
    assert not is_subordinate(contexts[3], contexts[0], 0)
    assert not is_subordinate(contexts[3], contexts[0], 1)
    # Not a regulator
    assert not is_subordinate(contexts[1], contexts[0], 2)


def test_contains_regulation():
    model, contexts = get_contexts()
    regulation_a, _, regulation_b4 = model.species[1].regulations

    assert contains_regulation(contexts[1], regulation_a)
    assert not contains_regulation(contexts[0], regulation_a)
    assert contains_regulation(contexts[4], regulation_b4)
    assert not contains_regulation(contexts[2], regulation_b4)


def test_subordinate_pairs():
    model, contexts = get_contexts()
    regulation_a, regulation_b2, regulation_b4 = model.species[1].regulations
    assert subordinate_pairs(contexts, regulation_a) == [(1, 0), (3, 2),
                                                         (5, 4)]
    assert subordinate_pairs(contexts, regulation_b2) == [(2, 0), (3, 1)]
    assert subordinate_pairs(contexts, regulation_b4) == [(4, 2), (5, 3)]
