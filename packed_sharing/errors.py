"""
Packed Sharing: error types.

Every error derives from ValueError, so callers that already guard
secret-sharing calls with ``except ValueError`` keep working.
"""


class PackedSharingError(ValueError):
    """Base class for all packed sharing errors."""


class ParameterError(PackedSharingError):
    """Invalid scheme configuration or transform precondition."""


class ShareError(PackedSharingError):
    """Malformed call: wrong lengths, too few shares, duplicate indices."""


class NotInvertibleError(PackedSharingError):
    """Modular inverse requested for a value with no inverse."""
