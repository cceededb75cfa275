"""
decode_errors.py - Exceptions raised while decoding device payloads

Every error aborts the whole decode call; no partial measurement list is
ever returned alongside one of these.
"""

from typing import Optional


class DecodeError(Exception):
    """Base class for payload decoding failures."""
    pass


class MissingConfiguration(DecodeError):
    """Device record does not name a decoding profile."""
    pass


class UnsupportedProfile(DecodeError):
    """Named decoding profile is not registered."""

    def __init__(self, profile: str):
        self.profile = profile
        super().__init__(f"profile '{profile}' is not supported")


class LengthMismatch(DecodeError):
    """Payload length differs from the profile's declared layout."""

    def __init__(self, expected: int, actual: Optional[int] = None):
        self.expected = expected
        self.actual = actual
        msg = f"incorrect payload size: expected {expected} bytes"
        if actual is not None:
            msg += f", got {actual}"
        super().__init__(msg)


class InvalidProfileOptions(DecodeError):
    """Profile-specific settings of a device cannot be used."""
    pass


class PayloadFormatError(DecodeError):
    """Payload could not be converted to bytes."""
    pass


class MeasurementValidationError(DecodeError):
    """Decoded measurement rejected by the validator."""

    def __init__(self, message: str, index: Optional[int] = None):
        self.index = index
        if index is not None:
            message = f"measurement {index}: {message}"
        super().__init__(message)


class ConfigurationError(DecodeError):
    """Settings or device file is unreadable or malformed."""
    pass
