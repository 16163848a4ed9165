class ParametrizationError(Exception):
    """
    Base class for every error raised while building the kinetics of a model.
    """


class FormatError(ParametrizationError, ValueError):
    """
    Raised when a constraint formula, a context string or an explicit list of
    target values cannot be interpreted.
    """


class ModelInconsistency(ParametrizationError):
    """
    Raised when the model violates a structural precondition, e.g. a
    restriction is applied to a model shape it is not defined for.
    """


class ParametrizationOverflow(ParametrizationError, OverflowError):
    """
    Raised when the size of the parametrization space exceeds the
    representable range.
    """
