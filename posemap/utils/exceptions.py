"""A set of custom exceptions and warnings."""


class ValidationError(Exception):
    """An error indicating that data-object does not comply with the guidelines."""


class SkeletonValidationError(ValidationError):
    """An error indicating that a joint hierarchy is not a single valid tree."""


class MalformedSampleError(ValidationError):
    """An error indicating that an ingress message does not contain a usable orientation sample."""


class CalibrationStateError(RuntimeError):
    """An error indicating that a calibration operation was called in a state that does not allow it."""

    def __init__(self, operation: str, state) -> None:
        self.operation = operation
        self.state = state
        super().__init__()

    def __str__(self) -> str:
        """Return a string representation of the error."""
        return f"`{self.operation}` can not be called while the calibration is in state {self.state}."


class OrientationAnomalyWarning(UserWarning):
    """A degenerate or unusable orientation was encountered and passed through or dropped."""


class SensorLinkWarning(UserWarning):
    """Sending a control token to a single sensor link failed."""
