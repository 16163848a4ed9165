"""
Translation between the global parametrization numbers and the values of
the individual contexts.

The subcolor index of each species is a digit of a mixed-radix number: the
species with the ID 0 is the least significant digit and the radix of each
species is its number of subcolors, so that

    number = sum(index_i * step_size_i)
"""
import itertools
from typing import List, Optional, Sequence

from ParametrizationTools.inputs.model import Context, Kinetics


def get_space_size(kinetics: Kinetics) -> int:
    return kinetics.space_size


def get_species_values(kinetics: Kinetics, number: int) -> List[int]:
    """
    Decode the subcolor index of each species from a parametrization number.

    Args:
        kinetics (Kinetics): The computed kinetics.
        number (int): The parametrization number.

    Returns:
        List[int]: Subcolor index for each species, in ID order.
    """
    space_size = kinetics.space_size
    if number < 0 or number >= space_size:
        raise ValueError(f'The parametrization number {number} is outside '
                         f'of the range 0..{space_size - 1}')

    values = [0] * len(kinetics)
    divisor = space_size
    for i in reversed(range(len(kinetics))):
        divisor //= kinetics[i].col_count
        values[i] = number // divisor
        number %= divisor
    return values


def encode_subcolors(kinetics: Kinetics, indices: Sequence[int]) -> int:
    """
    Compose the parametrization number from the subcolor index of each
    species, the inverse of :func:`get_species_values`.
    """
    if len(indices) != len(kinetics):
        raise ValueError('There has to be one subcolor index per species')

    number = 0
    for spec, index in zip(kinetics.species, indices):
        if index < 0 or index >= spec.col_count:
            raise ValueError(f'The subcolor index {index} of {spec.name} is '
                             f'outside of the range 0..{spec.col_count - 1}')
        number += index * spec.step_size
    return number


def create_param_vector(kinetics: Kinetics, number: int) -> List[int]:
    """
    Get the target values of all the contexts of all the species, -1 for
    the contexts that are not functional.
    """
    vector = []
    for spec, index in zip(kinetics.species,
                           get_species_values(kinetics, number)):
        subcolor = spec.subcolors[index]
        for value, context in zip(subcolor, spec.contexts):
            vector.append(value if context.functional else -1)
    return vector


def create_param_string(kinetics: Kinetics, number: int) -> str:
    """
    Render the parametrization, e.g. ``'(0,1,-1,2)'``.
    """
    return '(' + ','.join(
        str(value) for value in create_param_vector(kinetics, number)) + ')'


def make_concise(context: Context, target_name: str) -> str:
    """
    Name of the context in parametrization databases: ``K_`` followed by the
    target name and the lowest required level of every regulator.
    """
    return f'K_{target_name}_' + ''.join(
        str(levels[0]) for levels in context.requirements)


def get_column_names(kinetics: Kinetics) -> List[str]:
    return [
        make_concise(context, spec.name) for spec in kinetics.species
        for context in spec.contexts
    ]


def find_matching(kinetics: Kinetics,
                  values: Sequence[Optional[int]]) -> List[int]:
    """
    Find all the parametrizations whose vector agrees with the given one.

    Args:
        kinetics (Kinetics): The computed kinetics.
        values (Sequence[Optional[int]]): One value per context of all the
            species, as in :func:`create_param_vector`. None matches
            anything.

    Returns:
        List[int]: The matching parametrization numbers, ascending.
    """
    total = sum(len(spec.contexts) for spec in kinetics.species)
    if len(values) != total:
        raise ValueError(f'Expected {total} values, got {len(values)}')

    matching = []
    begin = 0
    for spec in kinetics.species:
        end = begin + len(spec.contexts)
        required = values[begin:end]
        matching.append([
            index * spec.step_size
            for index, subcolor in enumerate(spec.subcolors)
            if _agrees(subcolor, spec.contexts, required)
        ])
        begin = end

    return sorted(
        sum(combination) for combination in itertools.product(*matching))


def _agrees(subcolor: Sequence[int], contexts: Sequence[Context],
            required: Sequence[Optional[int]]) -> bool:
    for value, context, expected in zip(subcolor, contexts, required):
        if expected is None:
            continue
        if expected != (value if context.functional else -1):
            return False
    return True
