from typing import List, Sequence, Tuple

from ParametrizationTools.constraints.space import ConstraintSpace
from ParametrizationTools.inputs.model import Context, Model
from ParametrizationTools.util.errors import ModelInconsistency


def get_bounds(model: Model) -> List[Tuple[int, int]]:
    """
    Compute the activity levels each species can take under the experiment
    of the model.

    Args:
        model (Model): The model, its experiment is a formula over the names
            of the species.

    Returns:
        List[Tuple[int, int]]: (min, max) for each species, in ID order.
    """
    if model.experiment.strip() == 'tt':
        return [(0, species.max_value) for species in model.species]

    space = ConstraintSpace(model.names,
                            [species.max_value for species in model.species])
    space.apply_formula(model.experiment)
    bounds = space.bounds()
    if bounds is None:
        raise ModelInconsistency(
            f'The experiment "{model.experiment}" can not be satisfied')
    return bounds


def is_functional(context: Context, bounds: Sequence[Tuple[int,
                                                           int]]) -> bool:
    """
    A context is functional iff the levels it requires of every regulator
    intersect the bounds of that regulator.
    """
    for regulator, levels in zip(context.regulators, context.requirements):
        low, high = bounds[regulator]
        if levels[-1] < low or levels[0] > high:
            return False
    return True


def mark_functional(contexts: Sequence[Context],
                    bounds: Sequence[Tuple[int, int]]) -> int:
    """
    Set the functional flag of the contexts.

    Returns:
        int: The number of functional contexts.
    """
    count = 0
    for context in contexts:
        context.functional = is_functional(context, bounds)
        count += context.functional
    return count
