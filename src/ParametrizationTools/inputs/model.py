from typing import Dict, List, Optional, Sequence, Union

from monty.json import MSONable

from ParametrizationTools.inputs.labels import Label, Satisfaction
from ParametrizationTools.util.errors import ModelInconsistency


class Regulation(MSONable):
    """
    A regulatory edge from the source species to the species that owns the
    regulation.

    Args:
        source (str): Name of the regulating species.
        threshold (int): The activity level of the source from which the
            regulation is considered active. Defaults to 1.
        label (str): Either one of the predefined labels (see
            :class:`ParametrizationTools.inputs.labels.Label`) or a formula
            over the placeholders ``+`` and ``-``. Defaults to 'Free'.
    """

    def __init__(self,
                 source: str,
                 threshold: int = 1,
                 label: str = Label.FREE):
        self.source = source
        self.threshold = int(threshold)
        self.label = label
        self.satisfaction = Satisfaction.from_label(label)
        # Resolved by the model the regulation is added to
        self.source_id: Optional[int] = None

    def __str__(self) -> str:
        return f'{self.source} -{self.threshold}-> ({self.label})'

    def __repr__(self) -> str:
        return f'Regulation({self.source!r}, {self.threshold}, {self.label!r})'


class Species(MSONable):
    """
    A species (gene) of the regulatory network.

    Args:
        name (str): Unique name of the species.
        max_value (int): The maximal activity level. Defaults to 1.
        basals (Sequence[int], None): Target levels admitted when no
            regulation is distinguished. Defaults to every level
            0..max_value.
        is_input (bool): Input species have no computed kinetics.
            Defaults to False.
        is_output (bool): Output species regulate nothing. Defaults to False.
        regulations (Sequence[Regulation], None): Incoming regulations.
        overrides (Dict[str, str], None): Explicit target values of
            contexts. Maps a (possibly partial) context string to either
            ``'?'`` or a comma separated list of levels.

            Example:
                overrides = {'A:1': '0,1', 'A:0': '?'}
        constraints (Sequence[str], None): Additional formulas over the
            contexts of this species.
        species_id (int, None): The ordinal of the species in the model,
            assigned when the species is added to a model.
    """

    def __init__(self,
                 name: str,
                 max_value: int = 1,
                 basals: Optional[Sequence[int]] = None,
                 is_input: bool = False,
                 is_output: bool = False,
                 regulations: Optional[Sequence[Regulation]] = None,
                 overrides: Optional[Dict[str, str]] = None,
                 constraints: Optional[Sequence[str]] = None,
                 species_id: Optional[int] = None):
        if max_value < 0:
            raise ModelInconsistency(
                f'The maximal value of the species {name} is negative')
        if basals is None:
            basals = range(max_value + 1)

        self.name = name
        self.max_value = int(max_value)
        self.basals = sorted(set(int(b) for b in basals))
        if not self.basals:
            raise ModelInconsistency(
                f'The species {name} has no basal target values')
        if self.basals[0] < 0 or self.basals[-1] > self.max_value:
            raise ModelInconsistency(
                f'The basal values {self.basals} of the species {name} are '
                f'out of the range 0..{self.max_value}')

        self.is_input = is_input
        self.is_output = is_output
        self.regulations = list(regulations) if regulations else []
        self.overrides = dict(overrides) if overrides else {}
        self.constraints = list(constraints) if constraints else []
        self.species_id = species_id

    def __str__(self) -> str:
        return f'{self.name} (0..{self.max_value})'

    def __repr__(self) -> str:
        return f'Species({self.name!r}, {self.max_value})'

    @classmethod
    def from_dict(cls, d: dict) -> 'Species':
        d = {k: v for k, v in d.items() if not k.startswith('@')}
        d['regulations'] = [
            r if isinstance(r, Regulation) else Regulation.from_dict(r)
            for r in d.get('regulations') or []
        ]
        return cls(**d)


class Restrictions(MSONable):
    """
    Structural restrictions applied to the admissible target values.

    Args:
        bounded_loops (bool): A self-regulating species may only move by
            one level across its own threshold. Defaults to False.
        force_extremes (bool): When all the regulators of a context agree
            on the direction, the target is forced to the extreme value.
            Defaults to False.
    """

    def __init__(self,
                 bounded_loops: bool = False,
                 force_extremes: bool = False):
        self.bounded_loops = bounded_loops
        self.force_extremes = force_extremes

    def __repr__(self) -> str:
        return (f'Restrictions(bounded_loops={self.bounded_loops}, '
                f'force_extremes={self.force_extremes})')


class Model(MSONable):
    """
    The regulatory network: species, their regulations and the restrictions
    on their kinetics.

    Args:
        species (Sequence[Species], None): The species, the order of the
            list defines their IDs.
        restrictions (Restrictions, None): Defaults to no restrictions.
        experiment (str): A formula over species names that bounds the
            activity levels considered. Defaults to 'tt'.
        kinetics (Kinetics, None): The computed kinetics, if any.
    """

    def __init__(self,
                 species: Optional[Sequence[Species]] = None,
                 restrictions: Optional[Restrictions] = None,
                 experiment: str = 'tt',
                 kinetics: Optional['Kinetics'] = None):
        self.species: List[Species] = []
        self.restrictions = restrictions if restrictions else Restrictions()
        self.experiment = experiment
        self.kinetics = kinetics

        for spec in species or []:
            self.add_species(spec)
        self.validate()

    def add_species(self, species: Species) -> Species:
        """
        Append a species. Its regulations are checked by :meth:`validate`.
        """
        if species.name in self.names:
            raise ModelInconsistency(
                f'The species {species.name} is already present')
        species.species_id = len(self.species)
        self.species.append(species)
        return species

    def add_regulation(self, target: Union[str, int], source: str,
                       threshold: int = 1,
                       label: str = Label.FREE) -> Regulation:
        """
        Add a regulation of the target species.

        Args:
            target (Union[str, int]): Name or ID of the regulated species.
            source (str): Name of the regulator.
            threshold (int): Threshold of the regulation. Defaults to 1.
            label (str): Label of the regulation. Defaults to 'Free'.

        Returns:
            Regulation: The added regulation.
        """
        spec = self.get_species(target)
        regulation = Regulation(source, threshold, label)
        self._resolve(spec, regulation)
        self._check_thresholds(spec, spec.regulations + [regulation])
        spec.regulations.append(regulation)
        return regulation

    def validate(self) -> None:
        """
        Resolve the sources of all the regulations and check the thresholds.

        Raises:
            ModelInconsistency: If a regulation comes from an unknown
                species or its threshold is invalid.
        """
        for spec in self.species:
            for regulation in spec.regulations:
                self._resolve(spec, regulation)
            self._check_thresholds(spec, spec.regulations)

    def _resolve(self, target: Species, regulation: Regulation) -> None:
        source_id = self.find_id(regulation.source)
        if source_id is None:
            raise ModelInconsistency(
                f'The regulation of {target.name} comes from an unknown '
                f'species {regulation.source}')
        max_value = self.species[source_id].max_value
        if regulation.threshold < 1 or regulation.threshold > max_value:
            raise ModelInconsistency(
                f'The threshold {regulation.threshold} of the regulation '
                f'{regulation.source} -> {target.name} is outside of the '
                f'range 1..{max_value}')
        regulation.source_id = source_id

    @staticmethod
    def _check_thresholds(target: Species,
                          regulations: Sequence[Regulation]) -> None:
        seen = set()
        for regulation in regulations:
            key = (regulation.source_id, regulation.threshold)
            if key in seen:
                raise ModelInconsistency(
                    f'The regulation {regulation.source} -> {target.name} '
                    f'with the threshold {regulation.threshold} is '
                    'specified multiple times')
            seen.add(key)

    @property
    def names(self) -> List[str]:
        return [spec.name for spec in self.species]

    def find_id(self, name: str) -> Optional[int]:
        """
        Get the ID of the species with the given name, None if there is none.
        """
        for spec in self.species:
            if spec.name == name:
                return spec.species_id
        return None

    def get_species(self, key: Union[str, int]) -> Species:
        if isinstance(key, str):
            species_id = self.find_id(key)
            if species_id is None:
                raise ModelInconsistency(f'Unknown species {key}')
            return self.species[species_id]
        return self.species[key]

    def __len__(self) -> int:
        return len(self.species)

    def __repr__(self) -> str:
        return f'Model({", ".join(self.names)})'

    @classmethod
    def from_dict(cls, d: dict) -> 'Model':
        """
        Also accepts hand written dictionaries without the ``@module`` and
        ``@class`` keys, as read from a plain JSON or YAML file.
        """
        d = {k: v for k, v in d.items() if not k.startswith('@')}
        species = [
            s if isinstance(s, Species) else Species.from_dict(s)
            for s in d.pop('species', None) or []
        ]
        restrictions = d.pop('restrictions', None)
        if isinstance(restrictions, dict):
            restrictions = Restrictions.from_dict(restrictions)
        kinetics = d.pop('kinetics', None)
        if isinstance(kinetics, dict):
            kinetics = Kinetics.from_dict(kinetics)
        return cls(species=species,
                   restrictions=restrictions,
                   kinetics=kinetics,
                   **d)


class Context(MSONable):
    """
    One regulatory context (kinetic parameter) of a species, i.e. one
    combination of the threshold intervals of its regulators.

    Args:
        context (str): The canonical identifier, e.g. ``'A:0,B:2'``.
        regulators (Sequence[int]): IDs of the regulators, ascending.
        intervals (Sequence[int]): For each regulator the index of its
            threshold interval, 0 being below the lowest threshold.
        requirements (Sequence[Sequence[int]]): For each regulator the
            activity levels the context requires.
        targets (Sequence[int]): Admissible target values.
        functional (bool): Whether the context can occur at all under the
            experiment. Defaults to True.
        target_in_subcolor (Sequence[int], None): The target value selected
            by each subcolor of the species.
    """

    def __init__(self,
                 context: str,
                 regulators: Sequence[int],
                 intervals: Sequence[int],
                 requirements: Sequence[Sequence[int]],
                 targets: Sequence[int],
                 functional: bool = True,
                 target_in_subcolor: Optional[Sequence[int]] = None):
        self.context = context
        self.regulators = list(regulators)
        self.intervals = list(intervals)
        self.requirements = [list(levels) for levels in requirements]
        self.targets = list(targets)
        self.functional = functional
        self.target_in_subcolor = (list(target_in_subcolor)
                                   if target_in_subcolor is not None else [])

    def requirement(self, source_id: int) -> List[int]:
        """
        The levels of the regulator required by this context.
        """
        return self.requirements[self.regulators.index(source_id)]

    def __str__(self) -> str:
        return self.context

    def __repr__(self) -> str:
        return f'Context({self.context!r}, targets={self.targets})'


class SpeciesKinetics(MSONable):
    """
    The computed kinetics of a single species.

    Args:
        name (str): Name of the species.
        species_id (int): ID of the species.
        contexts (Sequence[Context]): The contexts, in enumeration order.
        subcolors (Sequence[Sequence[int]]): The distinct solutions, one
            target value per context.
        step_size (int): Product of the subcolor counts of all the
            preceding species. Defaults to 1.
    """

    def __init__(self,
                 name: str,
                 species_id: int,
                 contexts: Sequence[Context],
                 subcolors: Sequence[Sequence[int]],
                 step_size: int = 1):
        self.name = name
        self.species_id = species_id
        self.contexts = list(contexts)
        self.subcolors = [[int(v) for v in row] for row in subcolors]
        self.step_size = int(step_size)

    @property
    def col_count(self) -> int:
        return len(self.subcolors)

    def __repr__(self) -> str:
        return (f'SpeciesKinetics({self.name!r}, col_count={self.col_count}, '
                f'step_size={self.step_size})')


class Kinetics(MSONable):
    """
    The kinetics of all the species, ordered by species ID.

    Args:
        species (Sequence[SpeciesKinetics]): Per species kinetics.
    """

    def __init__(self, species: Sequence[SpeciesKinetics]):
        self.species = list(species)

    @property
    def space_size(self) -> int:
        size = 1
        for spec in self.species:
            size *= spec.col_count
        return size

    def __getitem__(self, key: Union[str, int]) -> SpeciesKinetics:
        if isinstance(key, str):
            for spec in self.species:
                if spec.name == key:
                    return spec
            raise KeyError(key)
        return self.species[key]

    def __len__(self) -> int:
        return len(self.species)

    def __repr__(self) -> str:
        return (f'Kinetics({len(self.species)} species, '
                f'{self.space_size} parametrizations)')
