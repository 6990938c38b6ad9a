from typing import Optional


class StretchPyError(Exception):
    """
    Base class for every failure surfaced by the library.
    `stage` names where it happened (decode, an operator name, stretch, encode)
    so callers can report it precisely.
    """

    default_stage = "pipeline"

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.stage = stage or self.default_stage

    def __str__(self) -> str:
        return f"[{self.stage}] {super().__str__()}"


class DecodeFailureError(StretchPyError):
    """Source is unreadable or structurally unsupported. Never retried."""

    default_stage = "decode"


class OperatorError(StretchPyError):
    """A pipeline operator could not process its input."""


class UnsupportedColorDepthError(OperatorError):
    """Operator was handed a sample format it does not implement."""


class DimensionLimitExceededError(OperatorError):
    """Requested crop/scale would produce non-positive dimensions."""


class NumericDegenerateError(OperatorError):
    """Statistics needed by the tone stretch cannot be computed."""

    default_stage = "stretch"


class EncodeFailureError(StretchPyError):
    default_stage = "encode"


class UnsupportedFormatError(EncodeFailureError):
    pass
