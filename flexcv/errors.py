"""Exception types raised by the resampling, fitting and scoring helpers."""


class FlexCVError(Exception):
    """Base class for every error raised by flexcv."""


class ConfigurationError(FlexCVError, ValueError):
    """Invalid split size, column name or model parameter."""


class InsufficientDataError(FlexCVError, ValueError):
    """A table or subset is too small to split, fit or score."""


class FittingError(FlexCVError, RuntimeError):
    """The underlying fitting routine failed or produced unusable output."""


class CrossValidationError(FlexCVError):
    """A fit or score failed inside a cross-validation run.

    Carries the split and model variant that triggered the failure; the
    original exception is available as ``__cause__``.
    """

    def __init__(self, message, split_id=None, model=None):
        super().__init__(message)
        self.split_id = split_id
        self.model = model
