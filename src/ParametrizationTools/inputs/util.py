import re
from typing import Dict, List, Union

from ParametrizationTools.inputs.model import Context, Model, Species
from ParametrizationTools.util.errors import FormatError, ModelInconsistency

_THRESHOLD = re.compile(r'\d+')


def get_regulators_ids(species: Species) -> List[int]:
    """
    IDs of the distinct regulators of the species, ascending.
    """
    return sorted(set(regulation.source_id
                      for regulation in species.regulations))


def get_regulators_names(model: Model, target: Union[str, int]) -> List[str]:
    species = model.get_species(target)
    return [model.species[i].name for i in get_regulators_ids(species)]


def get_thresholds(species: Species) -> Dict[int, List[int]]:
    """
    Get the sorted thresholds of each regulator of the species.

    Args:
        species (Species): The regulated species.

    Returns:
        Dict[int, List[int]]: Regulator ID to its thresholds.
    """
    thresholds = {}
    for regulation in species.regulations:
        thresholds.setdefault(regulation.source_id,
                              []).append(regulation.threshold)
    return {
        source_id: sorted(values)
        for source_id, values in sorted(thresholds.items())
    }


def get_threshold(model: Model, context: str, target: Union[str, int],
                  name: str, token: Union[str, None]) -> int:
    """
    Find out the threshold a (possibly partial) context assigns to a
    regulator.

    Args:
        model (Model): The model.
        context (str): The whole context, for error reporting.
        target (Union[str, int]): The regulated species.
        name (str): Name of the regulator.
        token (str, None): The part of the context referring to the
            regulator, None if the regulator is not mentioned.

    Returns:
        int: The threshold, 0 stands for the lowest interval.
    """
    if token is None:
        return 0

    species = model.get_species(target)
    thresholds = get_thresholds(species)[model.find_id(name)]

    if ':' not in token:
        if len(thresholds) > 1:
            raise FormatError(
                f'Ambiguous context "{context}" - no threshold specified for '
                f'a regulator {name} that has multiple regulations.')
        return thresholds[0]

    value = token.split(':', 1)[1]
    if not _THRESHOLD.fullmatch(value):
        raise FormatError(f'No threshold given after colon in the context '
                          f'"{context}" of the regulator {name}')
    threshold = int(value)
    if threshold != 0 and threshold not in thresholds:
        raise FormatError(f'The threshold value "{value}" is not valid for '
                          f'the context "{context}".')
    return threshold


def make_canonic(model: Model, context: str, target: Union[str, int]) -> str:
    """
    Transform a context into its canonical form ``'A:t,B:t,...'`` listing
    every regulator of the target in the order of IDs. Regulators that are
    not mentioned are at the threshold 0, a regulator mentioned without a
    threshold is at its only threshold.

    Args:
        model (Model): The model.
        context (str): The (possibly partial) context, e.g. ``'A,C:2'``.
        target (Union[str, int]): The regulated species.

    Returns:
        str: The canonical context.
    """
    names = get_regulators_names(model, target)
    tokens = {}
    for token in ''.join(context.split()).split(','):
        if not token:
            continue
        name = token.split(':', 1)[0]
        if name not in names:
            raise FormatError(f'Unrecognized species "{name}" in the context '
                              f'"{context}".')
        if name in tokens:
            raise FormatError(f'The regulator {name} is specified multiple '
                              f'times in the context "{context}".')
        tokens[name] = token

    canonic = []
    for name in names:
        threshold = get_threshold(model, context, target, name,
                                  tokens.get(name))
        canonic.append(f'{name}:{threshold}')
    return ','.join(canonic)


def match_context(model: Model, contexts: List[Context], context: str,
                  target: Union[str, int]) -> int:
    """
    Find the position of the context among the contexts of the target.
    """
    canonic = make_canonic(model, context, target)
    for index, candidate in enumerate(contexts):
        if candidate.context == canonic:
            return index
    raise ModelInconsistency(
        f'Failed to match the context {context} for the species '
        f'{model.get_species(target).name}')
