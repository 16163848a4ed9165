from monty.json import MSONable

# Parametrization numbers are stored as unsigned 64-bit integers downstream
MAX_PARAM_NO = 2**64 - 1


class KineticsSettings(MSONable):
    """
    Options of a single kinetics construction. An instance is passed to the
    builder explicitly, there is no global state.

    Args:
        max_space_size (int): The largest admissible number of
            parametrizations of the whole model. Defaults to 2**64 - 1.
        strict_extremes (bool): If True, forcing extremal targets on a model
            with multi-threshold regulators or edges with an undeterminable
            sign raises a ModelInconsistency. If False, such contexts are
            left unforced and a warning is logged. Defaults to True.
        chunk_size (int): Number of species processed per chunk by the
            builder. Defaults to 1.
    """

    def __init__(self,
                 max_space_size: int = MAX_PARAM_NO,
                 strict_extremes: bool = True,
                 chunk_size: int = 1):
        if max_space_size < 1:
            raise ValueError('max_space_size must be positive')
        if chunk_size < 1:
            raise ValueError('chunk_size must be positive')

        self.max_space_size = max_space_size
        self.strict_extremes = strict_extremes
        self.chunk_size = chunk_size

    def __repr__(self) -> str:
        return (f'KineticsSettings(max_space_size={self.max_space_size}, '
                f'strict_extremes={self.strict_extremes}, '
                f'chunk_size={self.chunk_size})')
