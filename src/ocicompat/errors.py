"""
Error hierarchy for dialect detection and translation.

Every failure surfaced by the package is a ``CompatError``. The concrete
class names the stage that failed; the message names the operation and
carries the underlying cause, which is also chained via ``__cause__``.
"""


class CompatError(Exception):
    """Base class for all translation errors."""
    pass


class ReadError(CompatError):
    """Raised when the raw document cannot be read from the caller's handle."""
    pass


class DetectError(CompatError):
    """Raised when ``ociVersion`` is missing, not a string, or unreadable."""
    pass


class UnknownOCIVersionError(CompatError):
    """Raised when the declared version matches no known dialect."""

    def __init__(self, version: str):
        super().__init__(f"unknown oci version: {version!r}")
        self.version = version


class DecodeParseError(CompatError):
    """Raised when the raw bytes are not a valid old-dialect document."""
    pass


class DecodeCarryError(CompatError):
    """Raised when carrying the old document over to the new dialect fails."""
    pass


class DecodeEmitError(CompatError):
    """Raised when the decoded new-dialect document cannot be serialised."""
    pass


class EncodeCarryError(CompatError):
    """Raised when carrying a new-dialect document back to the old dialect fails."""
    pass
