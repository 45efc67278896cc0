class ValidationError(ValueError):
    """Raised when caller-supplied input is malformed or out of range."""


class EmptyCorpusError(ValueError):
    """Raised when statistics or training are requested on an empty corpus."""


class PredictionTierFailure(RuntimeError):
    """Internal signal that a prediction tier could not produce a usable probability."""
