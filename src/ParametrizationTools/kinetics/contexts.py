"""
Enumeration of the regulatory contexts of a species and of the target values
admissible in each of them.
"""
import itertools
import logging
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from ParametrizationTools.inputs.model import Context, Model, Species
from ParametrizationTools.inputs.util import get_thresholds, match_context
from ParametrizationTools.util.errors import FormatError, ModelInconsistency
from ParametrizationTools.util.settings import KineticsSettings


def iterate_intervals(counts: Sequence[int]) -> Iterator[Tuple[int, ...]]:
    """
    Iterate all the combinations of interval indices, the first position
    changing the fastest.

    Args:
        counts (Sequence[int]): Number of intervals at each position.
    """
    ranges = [range(count) for count in reversed(counts)]
    for combination in itertools.product(*ranges):
        yield combination[::-1]


def interval_levels(thresholds: Sequence[int], interval: int,
                    max_value: int) -> List[int]:
    """
    Levels of a regulator belonging to the given threshold interval.
    """
    low = thresholds[interval - 1] if interval > 0 else 0
    high = (thresholds[interval]
            if interval < len(thresholds) else max_value + 1)
    return list(range(low, high))


def enumerate_contexts(model: Model,
                       species: Species,
                       settings: Optional[KineticsSettings] = None
                       ) -> List[Context]:
    """
    Create all the contexts of the species together with their admissible
    target values. Input species have no contexts.

    Args:
        model (Model): The model the species belongs to.
        species (Species): The regulated species.
        settings (KineticsSettings, None): Defaults to KineticsSettings().

    Returns:
        List[Context]: The contexts, the first regulator changing the
            fastest.
    """
    if species.is_input:
        return []
    if settings is None:
        settings = KineticsSettings()

    thresholds = get_thresholds(species)
    regulators = list(thresholds)
    counts = [len(thresholds[regulator]) + 1 for regulator in regulators]

    contexts = []
    for intervals in iterate_intervals(counts):
        requirements = [
            interval_levels(thresholds[regulator], interval,
                            model.species[regulator].max_value)
            for regulator, interval in zip(regulators, intervals)
        ]
        name = ','.join(
            f'{model.species[regulator].name}:{levels[0]}'
            for regulator, levels in zip(regulators, requirements))
        targets = get_target_values(model, species, regulators, intervals,
                                    settings)
        contexts.append(
            Context(name, regulators, intervals, requirements, targets))

    apply_overrides(model, species, contexts)
    return contexts


def get_target_values(model: Model, species: Species,
                      regulators: Sequence[int], intervals: Sequence[int],
                      settings: KineticsSettings) -> List[int]:
    """
    Compute the target values admissible in a context under the
    restrictions of the model.

    Args:
        model (Model): The model.
        species (Species): The regulated species.
        regulators (Sequence[int]): IDs of the regulators.
        intervals (Sequence[int]): Interval index of each regulator.
        settings (KineticsSettings): Run settings.

    Returns:
        List[int]: Ascending admissible values, a subset of the basals.
    """
    targets = list(species.basals)
    restrictions = model.restrictions

    if restrictions.bounded_loops and species.species_id in regulators:
        self_interval = intervals[regulators.index(species.species_id)]
        targets = bound_loop(targets,
                             get_thresholds(species)[species.species_id],
                             self_interval, species.max_value)

    if restrictions.force_extremes:
        targets = force_extremes(species, regulators, intervals, targets,
                                 settings.strict_extremes)
    return targets


def bound_loop(targets: Sequence[int], thresholds: Sequence[int],
               interval: int, max_value: int) -> List[int]:
    """
    Keep the targets within the current self-regulation interval,
    extended by the closest value on each side the basal values reach over.

    Args:
        targets (Sequence[int]): Ascending admissible values.
        thresholds (Sequence[int]): Thresholds of the self-regulation.
        interval (int): The interval of the species' own level.
        max_value (int): The maximal level of the species.

    Returns:
        List[int]: The bounded values.
    """
    bottom = thresholds[interval - 1] if interval > 0 else 0
    top = (thresholds[interval]
           if interval < len(thresholds) else max_value + 1)

    below = [t for t in targets if t < bottom]
    inside = [t for t in targets if bottom <= t < top]
    above = [t for t in targets if t >= top]
    return below[-1:] + inside + above[:1]


def force_extremes(species: Species, regulators: Sequence[int],
                   intervals: Sequence[int], targets: Sequence[int],
                   strict: bool = True) -> List[int]:
    """
    Force the target to an extreme value if all the regulators push in the
    same direction. An activating regulator pushes up when present and down
    when absent, an inhibiting one the other way round. The extreme is the
    highest or lowest of the admissible targets, not the level 0 or the
    maximal level of the species, so the result stays within the basals.

    Args:
        species (Species): The regulated species.
        regulators (Sequence[int]): IDs of the regulators.
        intervals (Sequence[int]): Interval index of each regulator.
        targets (Sequence[int]): Ascending admissible values.
        strict (bool): Raise on regulators whose direction can not be
            decided, otherwise leave the context unforced. Defaults to True.

    Returns:
        List[int]: The maximum, the minimum or all the targets.
    """
    directions = []
    for regulator, interval in zip(regulators, intervals):
        regulations = [
            regulation for regulation in species.regulations
            if regulation.source_id == regulator
        ]
        if len(regulations) > 1:
            problem = 'has multiple thresholds'
        elif regulations[0].satisfaction.sign == 0:
            problem = 'has an undeterminable sign'
        else:
            sign = regulations[0].satisfaction.sign
            directions.append(sign if interval > 0 else -sign)
            continue

        message = (f'Cannot force extremes of {species.name}: the regulation '
                   f'from {regulations[0].source} {problem}')
        if strict:
            raise ModelInconsistency(message)
        logging.warning(message + ', the context is left unforced.')
        return list(targets)

    if not directions or not targets:
        return list(targets)
    if all(direction > 0 for direction in directions):
        return [max(targets)]
    if all(direction < 0 for direction in directions):
        return [min(targets)]
    return list(targets)


def parse_levels(text: str, max_value: int) -> Optional[List[int]]:
    """
    Parse explicit target values.

    Args:
        text (str): Either '?' (anything) or a comma separated list of
            levels, e.g. '0,2'.
        max_value (int): The maximal admissible level.

    Returns:
        List[int], None: The ascending levels, None for '?'.
    """
    text = ''.join(text.split())
    if text == '?':
        return None

    levels = set()
    for part in text.split(','):
        if not part.isdigit():
            raise FormatError(
                f'The target value "{part}" in "{text}" is not a number')
        level = int(part)
        if level > max_value:
            raise FormatError(
                f'The target value {level} in "{text}" is above the '
                f'maximum {max_value}')
        levels.add(level)
    return sorted(levels)


def apply_overrides(model: Model, species: Species,
                    contexts: List[Context]) -> Dict[str, List[int]]:
    """
    Intersect the targets of the contexts with the explicitly given values.

    Returns:
        Dict[str, List[int]]: The canonical contexts that were overridden
            and their resulting targets.
    """
    applied = {}
    for context, text in species.overrides.items():
        levels = parse_levels(text, species.max_value)
        if levels is None:
            continue
        matched = contexts[match_context(model, contexts, context,
                                         species.name)]
        matched.targets = [t for t in matched.targets if t in levels]
        if not matched.targets:
            logging.warning(
                f'The override "{text}" of the context {matched.context} of '
                f'{species.name} leaves no admissible target value.')
        applied[matched.context] = matched.targets
    return applied
