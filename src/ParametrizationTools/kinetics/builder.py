import logging
import re
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np
from maggma.core import Builder

from ParametrizationTools.constraints.formula import (BoolExpr, Variable,
                                                      conjunction,
                                                      disjunction,
                                                      parse_formula, relation)
from ParametrizationTools.constraints.space import ConstraintSpace
from ParametrizationTools.inputs.labels import label_expression
from ParametrizationTools.inputs.model import (Context, Kinetics, Model,
                                               Species, SpeciesKinetics)
from ParametrizationTools.inputs.util import make_canonic
from ParametrizationTools.kinetics.contexts import enumerate_contexts
from ParametrizationTools.kinetics.functional import (get_bounds,
                                                      mark_functional)
from ParametrizationTools.kinetics.subordination import subordinate_pairs
from ParametrizationTools.util.errors import (ParametrizationError,
                                              ParametrizationOverflow)
from ParametrizationTools.util.settings import KineticsSettings

# A (possibly partial) context, e.g. "A:1,B"
_CONTEXT = re.compile(r'[A-Za-z_][\w:]*(?:,[A-Za-z_][\w:]*)*')


def canonize_formula(model: Model, formula: str, target: str) -> str:
    """
    Replace every context in the formula by its canonical form.
    """

    def replace(match: re.Match) -> str:
        text = match.group(0)
        if text in ('tt', 'ff'):
            return text
        return make_canonic(model, text, target)

    return _CONTEXT.sub(replace, formula)


def create_formula(model: Model, species: Species,
                   contexts: Sequence[Context]) -> BoolExpr:
    """
    Build the constraint on the target values of the contexts of the
    species. There is one variable per context, in the order of the contexts.

    The formula conjoins:
        - the label of every regulation, where ``+`` reads "the target
          rises over some threshold of the regulation" and ``-`` reads
          "the target drops over some threshold of the regulation",
        - the admissible target values of every context,
        - the additional constraints of the species.

    Args:
        model (Model): The model.
        species (Species): The regulated species.
        contexts (Sequence[Context]): Its contexts.

    Returns:
        BoolExpr: The constraint.
    """
    names = [context.context for context in contexts]
    variables = [Variable(i, name) for i, name in enumerate(names)]

    parts = []
    for regulation in species.regulations:
        pairs = subordinate_pairs(contexts, regulation)
        plus = disjunction(*[
            relation(variables[upper], '>', variables[lower])
            for upper, lower in pairs
        ])
        minus = disjunction(*[
            relation(variables[upper], '<', variables[lower])
            for upper, lower in pairs
        ])
        label = label_expression(regulation.label, names)
        parts.append(label.substitute(plus, minus))

    for variable, context in zip(variables, contexts):
        allowed = [relation(variable, '=', t) for t in context.targets]
        parts.append(disjunction(*allowed))

    for formula in species.constraints:
        parts.append(
            parse_formula(canonize_formula(model, formula, species.name),
                          names))
    return conjunction(*parts)


def remove_redundant(solutions: np.ndarray,
                     functional: Sequence[bool]) -> np.ndarray:
    """
    Remove the solutions that agree with some previous solution on every
    functional context. The first occurrence is kept and the order is
    preserved.

    Args:
        solutions (np.ndarray): Solutions, one row each.
        functional (Sequence[bool]): Which of the columns are functional.

    Returns:
        np.ndarray: The distinct solutions.
    """
    if len(solutions) == 0:
        return solutions
    mask = np.asarray(functional, dtype=bool)
    if not mask.any():
        return solutions[:1]
    _, indices = np.unique(solutions[:, mask], axis=0, return_index=True)
    return solutions[np.sort(indices)]


def solve_species(model: Model,
                  species: Species,
                  bounds: Optional[Sequence[Tuple[int, int]]] = None,
                  settings: Optional[KineticsSettings] = None
                  ) -> SpeciesKinetics:
    """
    Compute the subcolors of a single species.

    Args:
        model (Model): The model.
        species (Species): The species.
        bounds (Sequence[Tuple[int, int]], None): Bounds of the species
            under the experiment. Computed from the model if not given.
        settings (KineticsSettings, None): Defaults to KineticsSettings().

    Returns:
        SpeciesKinetics: The contexts and the subcolors, step size not set.
    """
    if species.is_input:
        return SpeciesKinetics(species.name, species.species_id, [], [[]])
    if bounds is None:
        bounds = get_bounds(model)

    contexts = enumerate_contexts(model, species, settings)
    mark_functional(contexts, bounds)

    space = ConstraintSpace([context.context for context in contexts],
                            species.max_value)
    space.impose(create_formula(model, species, contexts))
    subcolors = remove_redundant(space.solve(),
                                 [context.functional for context in contexts])

    for i, context in enumerate(contexts):
        if context.functional:
            context.target_in_subcolor = subcolors[:, i].tolist()
    return SpeciesKinetics(species.name, species.species_id, contexts,
                           subcolors.tolist())


class KineticsBuilder(Builder):
    """
    Builder that computes the kinetics of all the species of a model.

    The species are processed one by one in the order of their IDs, each
    receiving the product of the subcolor counts of the preceding species as
    its step size. The result is attached to the model as
    ``model.kinetics`` only once every species has been processed.

    Args:
        model (Model): The model to build the kinetics for.
        settings (KineticsSettings, None): Defaults to KineticsSettings().
    """

    def __init__(self,
                 model: Model,
                 settings: Optional[KineticsSettings] = None):
        self.model = model
        if settings is None:
            settings = KineticsSettings()
        self.settings = settings
        self._bounds = None
        self._staged: List[SpeciesKinetics] = []
        self._step_size = 1

        super().__init__(sources=[],
                         targets=[],
                         chunk_size=self.settings.chunk_size)

    def connect(self):
        # Since we aren't using stores, do nothing
        return

    def get_items(self) -> Iterator[Species]:
        self.model.validate()
        self._bounds = get_bounds(self.model)
        self._staged = []
        self._step_size = 1
        self.total = len(self.model.species)
        for species in self.model.species:
            yield species

    def process_item(self, item: Species) -> SpeciesKinetics:
        self.logger.info(
            f'Testing edge constraints for species {item.species_id + 1}/'
            f'{len(self.model.species)} ({item.name}).')
        if item.is_input:
            self.logger.debug(f'Species {item.name} is an input, skipped.')

        kinetics = solve_species(self.model, item, self._bounds,
                                 self.settings)
        if kinetics.col_count == 0:
            self.logger.warning(
                f'The species {item.name} has no admissible kinetics, '
                'the parametrization space is empty.')
        return kinetics

    def update_targets(self, items: List[SpeciesKinetics]) -> None:
        for item in items:
            item.step_size = self._step_size
            self._step_size *= item.col_count
            if self._step_size > self.settings.max_space_size:
                raise ParametrizationOverflow(
                    f'The parametrization space exceeds '
                    f'{self.settings.max_space_size} at the species '
                    f'{item.name}.')
            self.logger.debug(f'Species {item.name}: col_count '
                              f'{item.col_count}, step_size {item.step_size}')
            self._staged.append(item)

    def finalize(self) -> None:
        if len(self._staged) != len(self.model.species):
            raise ParametrizationError(
                f'Only {len(self._staged)} of {len(self.model.species)} '
                'species were processed.')
        self.model.kinetics = Kinetics(self._staged)
        self.logger.info(f'There are {self._step_size} parametrizations.')


def build_kinetics(model: Model,
                   settings: Optional[KineticsSettings] = None,
                   log_level: int = logging.INFO) -> Kinetics:
    """
    Run the :class:`KineticsBuilder` on the model.

    Returns:
        Kinetics: The kinetics, also attached to the model.
    """
    builder = KineticsBuilder(model, settings)
    builder.run(log_level=log_level)
    return model.kinetics
