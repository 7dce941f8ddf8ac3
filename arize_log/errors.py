"""Exception types raised by the logging client.

Validation errors are always raised before any network activity; transport
errors wrap the underlying `requests` exception as their ``__cause__``.
"""

from __future__ import annotations


class ArizeLogError(Exception):
    """Base class for every error raised by this package."""


class ValidationError(ArizeLogError, ValueError):
    """A record could not be built from the supplied arguments."""


class UnsupportedTypeError(ValidationError, TypeError):
    """A feature, tag, label or timestamp has a type outside the wire schema."""


class LabelMismatchError(ValidationError):
    """Prediction and actual labels are not the same kind of label."""


class EmptyVectorError(ValidationError):
    """An embedding was given with a zero-length vector."""


class TransportError(ArizeLogError):
    """Base class for failures while talking to the ingestion API."""


class RequestConstructionError(TransportError):
    """The request body or HTTP request could not be built."""


class RequestExecutionError(TransportError):
    """The HTTP request was built but sending it failed."""


class DecodeError(ArizeLogError, ValueError):
    """A wire payload could not be decoded back into a record."""


__all__ = [
    "ArizeLogError",
    "ValidationError",
    "UnsupportedTypeError",
    "LabelMismatchError",
    "EmptyVectorError",
    "TransportError",
    "RequestConstructionError",
    "RequestExecutionError",
    "DecodeError",
]
