import logging

from ParametrizationTools.inputs.labels import Label
from ParametrizationTools.inputs.model import (Kinetics, Model, Regulation,
                                               Restrictions, Species)
from ParametrizationTools.kinetics.builder import (KineticsBuilder,
                                                   build_kinetics,
                                                   canonize_formula,
                                                   create_formula,
                                                   remove_redundant,
                                                   solve_species)
from ParametrizationTools.kinetics.contexts import enumerate_contexts
from ParametrizationTools.kinetics.translators import create_param_string
from ParametrizationTools.util.errors import (FormatError, ModelInconsistency,
                                              ParametrizationOverflow)
from ParametrizationTools.util.settings import KineticsSettings
import numpy as np
import pytest


def get_model(label=Label.ACTIVATING, **kwargs):
    return Model([
        Species('A'),
        Species('B', regulations=[Regulation('A', 1, label)], **kwargs)
    ])


def test_remove_redundant():
    solutions = np.array([[0, 1, 0], [0, 1, 1], [1, 1, 0], [0, 1, 0]])
    functional = [True, True, False]

    reduced = remove_redundant(solutions, functional)
    assert reduced.tolist() == [[0, 1, 0], [1, 1, 0]]
    assert remove_redundant(reduced, functional).tolist() == reduced.tolist()

    assert remove_redundant(solutions, [True] * 3).tolist() == [[0, 1, 0],
                                                                [0, 1, 1],
                                                                [1, 1, 0]]
    assert remove_redundant(solutions, [False] * 3).tolist() == [[0, 1, 0]]
    assert remove_redundant(np.zeros((0, 3), dtype=np.int64),
                            functional).shape == (0, 3)


def test_create_formula():
    model = get_model()
    species = model.species[1]
    contexts = enumerate_contexts(model, species)
    formula = create_formula(model, species, contexts)
    assert str(formula) == ('A:1 > A:0 & (A:0 = 0 | A:0 = 1) & '
                            '(A:1 = 0 | A:1 = 1)')

    model = get_model(Label.NOT_ACTIVATING, basals=[0])
    species = model.species[1]
    contexts = enumerate_contexts(model, species)
    formula = create_formula(model, species, contexts)
    assert str(formula) == '!A:1 > A:0 & A:0 = 0 & A:1 = 0'


def test_canonize_formula():
    model = get_model()
    assert canonize_formula(model, 'A = 0', 'B') == 'A:1 = 0'
    assert canonize_formula(model, '(A:0 < A) | ff', 'B') == \
        '(A:0 < A:1) | ff'
    with pytest.raises(FormatError):
        canonize_formula(model, 'C = 0', 'B')


def test_solve_species():
    model = get_model()
    kinetics = solve_species(model, model.species[1])
    assert kinetics.subcolors == [[0, 1]]
    assert kinetics.col_count == 1
    assert [c.target_in_subcolor for c in kinetics.contexts] == [[0], [1]]

    kinetics = solve_species(model, model.species[0])
    assert kinetics.subcolors == [[0], [1]]

    model = get_model(Label.FREE)
    kinetics = solve_species(model, model.species[1])
    assert kinetics.subcolors == [[0, 0], [0, 1], [1, 0], [1, 1]]

    model = get_model(Label.OBSERVABLE)
    kinetics = solve_species(model, model.species[1])
    assert kinetics.subcolors == [[0, 1], [1, 0]]

    model = get_model(Label.NOT_OBSERVABLE)
    kinetics = solve_species(model, model.species[1])
    assert kinetics.subcolors == [[0, 0], [1, 1]]


def test_build_kinetics():
    model = get_model()
    kinetics = build_kinetics(model)

    assert isinstance(kinetics, Kinetics)
    assert model.kinetics is kinetics
    assert [s.col_count for s in kinetics.species] == [2, 1]
    assert [s.step_size for s in kinetics.species] == [1, 2]
    assert kinetics.space_size == 2
    assert create_param_string(kinetics, 0) == '(0,0,1)'
    assert create_param_string(kinetics, 1) == '(1,0,1)'


def test_step_sizes():
    model = Model([
        Species('A'),
        Species('B', 2, regulations=[Regulation('A', 1, Label.ACTIVATING)]),
        Species('C', regulations=[Regulation('B', 1),
                                  Regulation('B', 2)]),
        Species('D', is_input=True),
        Species('E', regulations=[Regulation('D', 1, Label.INHIBITING)])
    ])
    kinetics = build_kinetics(model)

    col_counts = [s.col_count for s in kinetics.species]
    assert col_counts == [2, 3, 8, 1, 1]
    product = 1
    for spec, col_count in zip(kinetics.species, col_counts):
        assert spec.step_size == product
        product *= col_count
    assert kinetics.space_size == product == 48

    assert kinetics['D'].contexts == []
    assert kinetics['D'].subcolors == [[]]


def test_negative_loop():
    model = Model([
        Species('A', regulations=[Regulation('B', 1, '-')]),
        Species('B', regulations=[Regulation('A', 1, '+')])
    ],
                  restrictions=Restrictions(force_extremes=True))
    kinetics = build_kinetics(model)
    assert kinetics.space_size == 1
    assert kinetics['A'].subcolors == [[1, 0]]
    assert kinetics['B'].subcolors == [[0, 1]]
    assert create_param_string(kinetics, 0) == '(1,0,0,1)'


def test_bounded_loop_build():
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
    kinetics = build_kinetics(model)
    assert kinetics['B'].col_count == 3 * 3 * 4 * 4 * 3 * 3
    assert kinetics['B'].step_size == 2
    assert kinetics['B'].subcolors[0] == [0, 0, 1, 1, 3, 3]
    assert kinetics['B'].subcolors[-1] == [2, 2, 4, 4, 5, 5]


def test_experiment():
    model = get_model(Label.FREE)
    model.experiment = 'A = 1'
    kinetics = build_kinetics(model)

    assert [c.functional for c in kinetics['B'].contexts] == [False, True]
    assert kinetics['B'].subcolors == [[0, 0], [0, 1]]
    assert kinetics['B'].contexts[0].target_in_subcolor == []
    assert kinetics['B'].contexts[1].target_in_subcolor == [0, 1]
    assert create_param_string(kinetics, 0) == '(0,-1,0)'
    assert create_param_string(kinetics, 3) == '(1,-1,1)'


def test_constraints():
    model = get_model(Label.FREE, constraints=['A <= A:0', 'A:0 != 1'])
    kinetics = build_kinetics(model)
    assert kinetics['B'].subcolors == [[0, 0]]


def test_empty_species(caplog):
    model = get_model(constraints=['A = 0'])
    with caplog.at_level(logging.WARNING):
        kinetics = build_kinetics(model)
    assert kinetics['B'].col_count == 0
    assert kinetics.space_size == 0
    assert 'no admissible kinetics' in caplog.text


def test_overflow():
    model = get_model()
    with pytest.raises(ParametrizationOverflow):
        build_kinetics(model, KineticsSettings(max_space_size=1))
    assert model.kinetics is None


def test_no_partial_kinetics():
    model = Model([
        Species('A'),
        Species('B', regulations=[Regulation('A', 1, Label.FREE)])
    ],
                  restrictions=Restrictions(force_extremes=True))
    builder = KineticsBuilder(model)
    with pytest.raises(ModelInconsistency):
        builder.run()
    assert model.kinetics is None

    # A completed build is kept until the next one succeeds
    model.restrictions.force_extremes = False
    kinetics = build_kinetics(model)
    model.species[1].regulations[0] = Regulation('A', 1, Label.OBSERVABLE)
    model.restrictions.force_extremes = True
    with pytest.raises(ModelInconsistency):
        build_kinetics(model)
    assert model.kinetics is kinetics


def test_builder():
    model = get_model()
    builder = KineticsBuilder(model, KineticsSettings(chunk_size=2))
    assert builder.chunk_size == 2
    assert builder.settings.strict_extremes

    items = list(builder.get_items())
    assert [species.name for species in items] == ['A', 'B']
    processed = [builder.process_item(item) for item in items]
    builder.update_targets(processed)
    builder.finalize()
    assert model.kinetics.space_size == 2
