from typing import List, Sequence, Tuple

from ParametrizationTools.inputs.model import Context, Regulation


def is_subordinate(current: Context, compare: Context, source_id: int) -> bool:
    """
    Check whether ``compare`` is the context right below ``current`` along
    the given regulator: both agree on the interval of every other
    regulator and the interval of the source in ``current`` is the next one
    above its interval in ``compare``.

    Args:
        current (Context): The upper context.
        compare (Context): The candidate lower context.
        source_id (int): ID of the regulator that differs.

    Returns:
        bool: True iff ``compare`` is subordinate to ``current``.
    """
    if current.regulators != compare.regulators:
        return False
    if source_id not in current.regulators:
        return False

    for regulator, upper, lower in zip(current.regulators, current.intervals,
                                       compare.intervals):
        if regulator == source_id:
            if upper != lower + 1:
                return False
        elif upper != lower:
            return False
    return True


def contains_regulation(context: Context, regulation: Regulation) -> bool:
    """
    True iff the regulation becomes active exactly in this context, i.e. the
    lowest level the context requires of the source is the threshold.
    """
    if regulation.source_id not in context.regulators:
        return False
    return context.requirement(regulation.source_id)[0] == regulation.threshold


def subordinate_pairs(contexts: Sequence[Context],
                      regulation: Regulation) -> List[Tuple[int, int]]:
    """
    Pairs of context indices ``(upper, lower)`` across the threshold of the
    regulation.
    """
    pairs = []
    for i, current in enumerate(contexts):
        if not contains_regulation(current, regulation):
            continue
        for j, compare in enumerate(contexts):
            if is_subordinate(current, compare, regulation.source_id):
                pairs.append((i, j))
    return pairs
